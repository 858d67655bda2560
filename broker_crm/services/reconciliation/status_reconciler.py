"""Promotes matched prospects to clients."""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from broker_crm.core.exceptions import ReconciliationWriteError
from broker_crm.services.reconciliation.contracts import (
    ContactStatus,
    ContactStore,
    GroupedRelationship,
)
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class ReconciliationResult:
    success: bool
    message: str
    updated_count: int
    new_stats: Dict[str, int] = field(default_factory=dict)
    updated_contact_ids: List[int] = field(default_factory=list)


def distinct_contact_ids(relationships: Sequence[GroupedRelationship]) -> List[int]:
    """Contact ids in first-appearance order, without repeats."""
    return list(dict.fromkeys(group.contact["id"] for group in relationships))


class StatusReconciler:
    """Sets ``status = cliente`` on matched contacts that are still prospects.

    Contacts already marked ``cliente`` or ``inactivo`` are left alone, so a
    second run over the same data changes nothing.
    """

    def __init__(self, contact_store: ContactStore):
        self.contact_store = contact_store

    async def reconcile(
        self, relationships: Sequence[GroupedRelationship]
    ) -> ReconciliationResult:
        """Apply the status promotion for every contact in ``relationships``.

        Raises:
            ReconciliationWriteError: If the bulk update fails
        """
        contact_ids = distinct_contact_ids(relationships)
        LOGGER.info(
            f"Found {len(contact_ids)} contacts that should be marked as clients"
        )

        if not contact_ids:
            return ReconciliationResult(
                success=True,
                message="No contacts need status update",
                updated_count=0,
            )

        try:
            updated = await self.contact_store.bulk_set_status(
                contact_ids,
                from_status=ContactStatus.PROSPECTO.value,
                to_status=ContactStatus.CLIENTE.value,
            )
        except ReconciliationWriteError:
            raise
        except Exception as e:
            LOGGER.error(
                "Bulk status update failed",
                exc_info=True,
                extra={"contacts": len(contact_ids)},
            )
            raise ReconciliationWriteError(
                f"Failed to update client status: {e}", original_error=e
            )

        LOGGER.info(f"Updated {updated} contacts from prospecto to cliente")

        # The update is already committed; a failed read only loses the stats.
        try:
            new_stats = await self.contact_store.status_histogram()
        except Exception as e:
            LOGGER.warning(
                "Status histogram unavailable after update",
                exc_info=True,
                extra={"updated": updated, "error": str(e)},
            )
            new_stats = {}

        return ReconciliationResult(
            success=True,
            message=f"Successfully updated {updated} contacts to client status",
            updated_count=updated,
            new_stats=new_stats,
            updated_contact_ids=contact_ids,
        )
