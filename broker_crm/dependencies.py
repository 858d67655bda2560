"""Centralized dependency injection for FastAPI application.

This module provides factory functions for creating service and repository
instances. The database handles come from the single ``db_client`` created at
startup; nothing below keeps module-level state.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from broker_crm.config import settings
from broker_crm.database.client import db_client
from broker_crm.database.session import get_async_session
from broker_crm.repositories.contact_repository import ContactRepository
from broker_crm.repositories.policy_repository import PolicyRepository
from broker_crm.services.directorio.contact_service import ContactService
from broker_crm.services.reconciliation.facade import ReconciliationService


async def get_contact_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ContactRepository:
    """Get contact repository instance.

    Args:
        db_session: Database session from dependency injection

    Returns:
        ContactRepository: Repository for contact CRUD operations
    """
    return ContactRepository(db_session)


async def get_policy_repository() -> PolicyRepository:
    """Get policy repository instance.

    Returns:
        PolicyRepository: Read-only repository over the policy-line tables
    """
    return PolicyRepository(db_client.get_session_maker())


async def get_contact_service(
    repository: Annotated[ContactRepository, Depends(get_contact_repository)]
) -> ContactService:
    """Get contact directory service instance."""
    return ContactService(
        repository,
        default_country=settings.default_country,
        max_page_size=settings.max_page_size,
    )


async def get_reconciliation_service(
    contact_repository: Annotated[ContactRepository, Depends(get_contact_repository)],
    policy_repository: Annotated[PolicyRepository, Depends(get_policy_repository)],
) -> ReconciliationService:
    """Get reconciliation service instance.

    Args:
        contact_repository: Contact store
        policy_repository: Policy store

    Returns:
        ReconciliationService: Service with the configured thresholds and lines
    """
    return ReconciliationService(
        contact_store=contact_repository,
        policy_store=policy_repository,
        policy_lines=settings.policy_lines,
        relationship_threshold=settings.relationship_threshold,
        contact_policy_threshold=settings.contact_policy_threshold,
        max_concurrent_lines=settings.max_concurrent_lines,
    )
