"""Contact directory and reconciliation API endpoints."""

from dataclasses import asdict
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from broker_crm.api.errors import to_http_exception
from broker_crm.core.exceptions import AppError
from broker_crm.dependencies import get_contact_service, get_reconciliation_service
from broker_crm.repositories.contact_repository import ContactFilters
from broker_crm.schemas.directorio import (
    ContactCreatedResponse,
    ContactListResponse,
    ContactPayload,
    ContactPoliciesResponse,
    ContactResponse,
    ContactSearchResponse,
    ContactStatsResponse,
    MessageResponse,
)
from broker_crm.schemas.reconciliation import (
    ClientStatusUpdateResponse,
    RelationshipsResponse,
)
from broker_crm.services.directorio.contact_service import ContactService
from broker_crm.services.reconciliation.facade import ReconciliationService
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ContactListResponse,
    summary="List contacts",
    description="Paginated contact list with optional filters",
    operation_id="list_directorio_contacts",
)
async def list_contacts(
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
    status_filter: Optional[str] = Query(None, alias="status"),
    origen: Optional[str] = Query(None),
    genero: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    letter: Optional[str] = Query(None, max_length=1),
    page: int = Query(1),
    limit: int = Query(50),
) -> ContactListResponse:
    """List contacts ordered by name."""
    filters = ContactFilters(
        status=status_filter, origen=origen, genero=genero, search=search, letter=letter
    )
    try:
        return await contact_service.list_contacts(filters, page=page, limit=limit)
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/search",
    response_model=ContactSearchResponse,
    summary="Search contacts",
    operation_id="search_directorio_contacts",
)
async def search_contacts(
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
    q: Optional[str] = Query(None),
) -> ContactSearchResponse:
    """Free-text search over name, company, email, phones and occupation."""
    try:
        return await contact_service.search_contacts(q)
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/stats",
    response_model=ContactStatsResponse,
    summary="Contact statistics",
    operation_id="get_directorio_stats",
)
async def get_stats(
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactStatsResponse:
    try:
        return await contact_service.get_stats()
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/relationships",
    response_model=RelationshipsResponse,
    summary="Find contact/policy relationships",
    description="Match every contact against every policy line by name similarity and email",
    operation_id="find_directorio_relationships",
)
async def find_relationships(
    reconciliation_service: Annotated[
        ReconciliationService, Depends(get_reconciliation_service)
    ],
) -> RelationshipsResponse:
    """Find relationships between directory contacts and policy tables.

    Policy lines that cannot be read are listed in ``failed_lines`` and do not
    fail the request.

    Raises:
        HTTPException: 503 if the contact directory cannot be read
    """
    try:
        report = await reconciliation_service.find_relationships()
    except AppError as e:
        LOGGER.error("Error finding relationships", extra={"error": str(e)})
        raise to_http_exception(e)

    return RelationshipsResponse(
        success=report.success,
        summary=report.summary,
        relationships=[group.to_dict() for group in report.relationships],
        failed_lines=report.failed_lines,
        skipped_lines=report.skipped_lines,
        cancelled=report.cancelled,
    )


@router.post(
    "/update-client-status",
    response_model=ClientStatusUpdateResponse,
    summary="Promote matched prospects to clients",
    operation_id="update_directorio_client_status",
)
async def update_client_status(
    reconciliation_service: Annotated[
        ReconciliationService, Depends(get_reconciliation_service)
    ],
) -> ClientStatusUpdateResponse:
    """Set ``status = cliente`` on every prospect with at least one policy."""
    try:
        result = await reconciliation_service.reconcile_statuses()
    except AppError as e:
        LOGGER.error("Error updating client status", extra={"error": str(e)})
        raise to_http_exception(e)

    return ClientStatusUpdateResponse(**asdict(result))


@router.get(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Get contact",
    operation_id="get_directorio_contact",
)
async def get_contact(
    contact_id: int,
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactResponse:
    try:
        return await contact_service.get_contact(contact_id)
    except AppError as e:
        raise to_http_exception(e)


@router.get(
    "/{contact_id}/policies",
    response_model=ContactPoliciesResponse,
    summary="Get policies of a contact",
    operation_id="get_directorio_contact_policies",
)
async def get_contact_policies(
    contact_id: int,
    reconciliation_service: Annotated[
        ReconciliationService, Depends(get_reconciliation_service)
    ],
) -> ContactPoliciesResponse:
    """Policies whose holder name or email matches the contact."""
    try:
        result = await reconciliation_service.find_policies_for_contact(contact_id)
    except AppError as e:
        raise to_http_exception(e)

    return ContactPoliciesResponse(**asdict(result))


@router.post(
    "",
    response_model=ContactCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create contact",
    operation_id="create_directorio_contact",
)
async def create_contact(
    payload: ContactPayload,
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> ContactCreatedResponse:
    try:
        return await contact_service.create_contact(payload)
    except AppError as e:
        raise to_http_exception(e)


@router.put(
    "/{contact_id}",
    response_model=MessageResponse,
    summary="Update contact",
    operation_id="update_directorio_contact",
)
async def update_contact(
    contact_id: int,
    payload: ContactPayload,
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> MessageResponse:
    try:
        return await contact_service.update_contact(contact_id, payload)
    except AppError as e:
        raise to_http_exception(e)


@router.delete(
    "/{contact_id}",
    response_model=MessageResponse,
    summary="Delete contact",
    operation_id="delete_directorio_contact",
)
async def delete_contact(
    contact_id: int,
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> MessageResponse:
    try:
        return await contact_service.delete_contact(contact_id)
    except AppError as e:
        raise to_http_exception(e)


@router.post(
    "/{contact_id}/link-cliente",
    response_model=MessageResponse,
    summary="Link contact as client",
    operation_id="link_directorio_contact_as_client",
)
async def link_contact_as_client(
    contact_id: int,
    contact_service: Annotated[ContactService, Depends(get_contact_service)],
) -> MessageResponse:
    try:
        return await contact_service.link_contact_as_client(contact_id)
    except AppError as e:
        raise to_http_exception(e)
