"""Contact directory service.

Business rules for listing, searching and editing directory contacts. Data
access goes through ``ContactRepository``.
"""

import math
from typing import Any, Dict, Optional

from broker_crm.core.exceptions import ContactNotFoundError, ValidationError
from broker_crm.repositories.contact_repository import ContactFilters, ContactRepository
from broker_crm.schemas.directorio import (
    ContactCreatedResponse,
    ContactListResponse,
    ContactPayload,
    ContactResponse,
    ContactSearchResponse,
    ContactStats,
    ContactStatsResponse,
    MessageResponse,
)
from broker_crm.services.base_service import BaseService
from broker_crm.services.reconciliation.contracts import ContactStatus

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 100
DEFAULT_PAGE_SIZE = 50


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ContactService(BaseService):
    """Service for the contact directory."""

    def __init__(
        self,
        repository: ContactRepository,
        default_country: str = "MÉXICO",
        max_page_size: int = 200,
    ):
        super().__init__(repository=repository)
        self.default_country = default_country
        self.max_page_size = max_page_size

    def validate(self, operation: str, *args, **kwargs):
        if operation in ("create_contact", "update_contact"):
            payload = kwargs["payload"]
            if _blank(payload.nombre_completo):
                raise ValidationError("El nombre completo es requerido")

    async def list_contacts(
        self,
        filters: ContactFilters,
        page: Optional[int] = 1,
        limit: Optional[int] = DEFAULT_PAGE_SIZE,
    ) -> ContactListResponse:
        """One page of contacts, ordered by name.

        ``page`` below 1 is treated as 1; ``limit`` is capped at
        ``max_page_size``.
        """
        page_num = page if page and page > 0 else 1
        limit_num = min(limit if limit and limit > 0 else DEFAULT_PAGE_SIZE, self.max_page_size)
        offset = (page_num - 1) * limit_num

        contacts, total = await self.repository.list_page(filters, limit_num, offset)
        return ContactListResponse(
            data=[ContactResponse.model_validate(contact) for contact in contacts],
            total=total,
            page=page_num,
            limit=limit_num,
            totalPages=math.ceil(total / limit_num),
        )

    async def search_contacts(self, query: Optional[str]) -> ContactSearchResponse:
        if not query or len(query.strip()) < MIN_SEARCH_LENGTH:
            return ContactSearchResponse(data=[])

        contacts = await self.repository.search(query.strip(), limit=SEARCH_LIMIT)
        return ContactSearchResponse(
            data=[ContactResponse.model_validate(contact) for contact in contacts]
        )

    async def get_stats(self) -> ContactStatsResponse:
        return ContactStatsResponse(
            stats=ContactStats(
                total=await self.repository.count(),
                by_status=await self.repository.status_histogram(),
                by_origen=await self.repository.origin_histogram(),
            )
        )

    async def get_contact(self, contact_id: int) -> ContactResponse:
        contact = await self.repository.get_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)
        return ContactResponse.model_validate(contact)

    async def create_contact(self, payload: ContactPayload) -> ContactCreatedResponse:
        return await self.execute("create_contact", self._create, payload=payload)

    async def update_contact(self, contact_id: int, payload: ContactPayload) -> MessageResponse:
        return await self.execute(
            "update_contact", self._update, contact_id, payload=payload
        )

    async def delete_contact(self, contact_id: int) -> MessageResponse:
        deleted = await self.repository.delete(contact_id)
        if not deleted:
            raise ContactNotFoundError(contact_id)
        await self.repository.commit()
        return MessageResponse(message="Contacto eliminado exitosamente")

    async def link_contact_as_client(self, contact_id: int) -> MessageResponse:
        """Mark a single contact as ``cliente``."""
        linked = await self.repository.set_status(contact_id, ContactStatus.CLIENTE.value)
        if not linked:
            raise ContactNotFoundError(contact_id)
        await self.repository.commit()
        return MessageResponse(message="Contacto vinculado como cliente exitosamente")

    async def _create(self, payload: ContactPayload) -> ContactCreatedResponse:
        contact = await self.repository.create(self._prepare(payload))
        contact_id = contact.id
        await self.repository.commit()
        return ContactCreatedResponse(message="Contacto creado exitosamente", id=contact_id)

    async def _update(self, contact_id: int, payload: ContactPayload) -> MessageResponse:
        contact = await self.repository.update(contact_id, self._prepare(payload))
        if contact is None:
            raise ContactNotFoundError(contact_id)
        await self.repository.commit()
        return MessageResponse(message="Contacto actualizado exitosamente")

    def _prepare(self, payload: ContactPayload) -> Dict[str, Any]:
        """Apply create/update defaults to a payload."""
        data = payload.model_dump()
        data["genero"] = None if _blank(data.get("genero")) else data["genero"]
        data["pais"] = data.get("pais") or self.default_country
        data["status"] = (
            ContactStatus.PROSPECTO.value if _blank(data.get("status")) else data["status"]
        )
        return data
