"""Repository for contact directory data access operations.

This module provides data access operations for the contact directory,
following the repository pattern for clean separation of concerns. It also
serves as the contact store of the reconciliation engine.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from broker_crm.core.exceptions import (
    DatabaseError,
    ReconciliationWriteError,
    StoreUnavailableError,
)
from broker_crm.database.models import CONTACT_MUTABLE_FIELDS, DirectoryContact
from broker_crm.services.reconciliation.contracts import ContactSummary
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)

NO_STATUS_LABEL = "sin_estado"


@dataclass
class ContactFilters:
    """Filters for the paginated directory listing."""
    status: Optional[str] = None
    origen: Optional[str] = None
    genero: Optional[str] = None
    search: Optional[str] = None
    letter: Optional[str] = None


class ContactRepository:
    """Repository for DirectoryContact operations."""

    def __init__(self, db_session: AsyncSession):
        """Initialize repository with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.db_session = db_session

    # Reconciliation store

    async def list_contacts(self) -> List[ContactSummary]:
        """All contacts, projected to the fields the matcher reads.

        Raises:
            StoreUnavailableError: If the directory table cannot be read
        """
        stmt = select(
            DirectoryContact.id,
            DirectoryContact.nombre_completo,
            DirectoryContact.email,
            DirectoryContact.status,
        ).order_by(DirectoryContact.id)
        try:
            result = await self.db_session.execute(stmt)
        except SQLAlchemyError as e:
            LOGGER.error("Failed to read directorio_contactos", exc_info=True)
            raise StoreUnavailableError(f"Contact store unavailable: {e}", original_error=e)

        return [
            ContactSummary(id=row.id, full_name=row.nombre_completo, email=row.email, status=row.status)
            for row in result.all()
        ]

    async def get_contact(self, contact_id: int) -> Optional[Dict[str, Any]]:
        contact = await self.get_by_id(contact_id)
        return contact.to_dict() if contact else None

    async def bulk_set_status(
        self, contact_ids: Sequence[int], from_status: str, to_status: str
    ) -> int:
        """Move contacts in ``contact_ids`` from one status to another.

        Runs as a single UPDATE committed on its own, so either every eligible
        row changes or none does.

        Returns:
            int: Number of rows changed

        Raises:
            ReconciliationWriteError: If the update fails
        """
        if not contact_ids:
            return 0

        stmt = (
            update(DirectoryContact)
            .where(
                DirectoryContact.id.in_(list(contact_ids)),
                DirectoryContact.status == from_status,
            )
            .values(status=to_status, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(stmt)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            raise ReconciliationWriteError(
                f"Bulk status update failed: {e}", original_error=e
            )

        LOGGER.info(
            "Bulk status update applied",
            extra={"from_status": from_status, "to_status": to_status, "rows": result.rowcount},
        )
        return result.rowcount

    async def status_histogram(self) -> Dict[str, int]:
        stmt = select(DirectoryContact.status, func.count()).group_by(DirectoryContact.status)
        result = await self.db_session.execute(stmt)
        return {(status or NO_STATUS_LABEL): count for status, count in result.all()}

    # Directory CRUD

    async def get_by_id(self, contact_id: int) -> Optional[DirectoryContact]:
        """Get contact by ID.

        Args:
            contact_id: Contact ID

        Returns:
            DirectoryContact instance or None if not found
        """
        stmt = select(DirectoryContact).where(DirectoryContact.id == contact_id)
        result = await self.db_session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_page(
        self, filters: ContactFilters, limit: int, offset: int
    ) -> Tuple[List[DirectoryContact], int]:
        """One page of contacts ordered by name, plus the filtered total."""
        conditions = self._filter_conditions(filters)

        count_stmt = select(func.count()).select_from(DirectoryContact).where(*conditions)
        total = (await self.db_session.execute(count_stmt)).scalar_one()

        stmt = (
            select(DirectoryContact)
            .where(*conditions)
            .order_by(DirectoryContact.nombre_completo.asc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db_session.execute(stmt)
        return list(result.scalars().all()), total

    async def search(self, term: str, limit: int = 100) -> List[DirectoryContact]:
        pattern = f"%{term}%"
        stmt = (
            select(DirectoryContact)
            .where(
                or_(
                    DirectoryContact.nombre_completo.like(pattern),
                    DirectoryContact.empresa.like(pattern),
                    DirectoryContact.email.like(pattern),
                    DirectoryContact.telefono_movil.like(pattern),
                    DirectoryContact.telefono_oficina.like(pattern),
                    DirectoryContact.ocupacion.like(pattern),
                )
            )
            .order_by(DirectoryContact.nombre_completo.asc())
            .limit(limit)
        )
        result = await self.db_session.execute(stmt)
        return list(result.scalars().all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(DirectoryContact)
        return (await self.db_session.execute(stmt)).scalar_one()

    async def origin_histogram(self) -> Dict[str, int]:
        """Contacts per ``origen``, most common first; blank origins excluded."""
        counted = func.count().label("count")
        stmt = (
            select(DirectoryContact.origen, counted)
            .where(DirectoryContact.origen.isnot(None), DirectoryContact.origen != "")
            .group_by(DirectoryContact.origen)
            .order_by(counted.desc())
        )
        result = await self.db_session.execute(stmt)
        return {origen: count for origen, count in result.all()}

    async def create(self, data: Dict[str, Any]) -> DirectoryContact:
        contact = DirectoryContact(**self._mutable(data))
        self.db_session.add(contact)
        await self.db_session.flush()  # Get the ID without committing

        LOGGER.info(f"Created contact: {contact.id}")
        return contact

    async def update(self, contact_id: int, data: Dict[str, Any]) -> Optional[DirectoryContact]:
        """Replace every mutable field of a contact.

        Returns:
            Updated DirectoryContact or None if not found
        """
        contact = await self.get_by_id(contact_id)
        if not contact:
            return None

        for field, value in self._mutable(data).items():
            setattr(contact, field, value)

        await self.db_session.flush()

        LOGGER.info(f"Updated contact: {contact_id}")
        return contact

    async def set_status(self, contact_id: int, status: str) -> bool:
        contact = await self.get_by_id(contact_id)
        if not contact:
            return False

        contact.status = status
        await self.db_session.flush()

        LOGGER.info(f"Set contact {contact_id} status to {status}")
        return True

    async def delete(self, contact_id: int) -> bool:
        contact = await self.get_by_id(contact_id)
        if not contact:
            return False

        await self.db_session.delete(contact)
        await self.db_session.flush()

        LOGGER.info(f"Deleted contact: {contact_id}")
        return True

    async def commit(self) -> None:
        try:
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            raise DatabaseError(f"Commit failed: {e}", original_error=e)

    @staticmethod
    def _mutable(data: Dict[str, Any]) -> Dict[str, Any]:
        return {field: data.get(field) for field in CONTACT_MUTABLE_FIELDS}

    @staticmethod
    def _filter_conditions(filters: ContactFilters) -> list:
        conditions = []
        if filters.status:
            conditions.append(DirectoryContact.status == filters.status)
        if filters.origen:
            conditions.append(DirectoryContact.origen == filters.origen)
        if filters.genero:
            conditions.append(DirectoryContact.genero == filters.genero)
        if filters.letter:
            first_letter = func.upper(func.substr(DirectoryContact.nombre_completo, 1, 1))
            conditions.append(first_letter == filters.letter.upper())
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(
                    DirectoryContact.nombre_completo.like(pattern),
                    DirectoryContact.email.like(pattern),
                    DirectoryContact.telefono_movil.like(pattern),
                )
            )
        return conditions
