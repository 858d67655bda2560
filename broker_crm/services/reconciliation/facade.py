"""Reconciliation service: the three operations exposed to callers.

- ``find_relationships``: bulk contact/policy scan, grouped by contact
- ``find_policies_for_contact``: policies of one contact
- ``reconcile_statuses``: promote matched prospects to clients
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from broker_crm.core.exceptions import (
    AppError,
    ContactNotFoundError,
    StoreUnavailableError,
)
from broker_crm.services.base_service import BaseService
from broker_crm.services.reconciliation.aggregator import (
    RelationshipAggregator,
    sort_by_score,
)
from broker_crm.services.reconciliation.contracts import (
    CancellationToken,
    ContactStore,
    ContactSummary,
    GroupedRelationship,
    PolicyStore,
)
from broker_crm.services.reconciliation.match_finder import MatchFinder, has_comparable_name
from broker_crm.services.reconciliation.status_reconciler import (
    ReconciliationResult,
    StatusReconciler,
)


@dataclass
class RelationshipReport:
    summary: Dict[str, Any]
    relationships: List[GroupedRelationship]
    failed_lines: List[str] = field(default_factory=list)
    skipped_lines: List[str] = field(default_factory=list)
    cancelled: bool = False
    success: bool = True


@dataclass
class ContactPolicies:
    contact: Dict[str, Any]
    policies: List[Dict[str, Any]]
    total_policies: int
    failed_lines: List[str] = field(default_factory=list)


class ReconciliationService(BaseService):
    """Matches the contact directory against the policy lines.

    Both stores are injected; the service keeps no state between calls.

    Attributes:
        contact_store: Directory contacts and the status write
        policy_store: Policy-line rows
        policy_lines: Lines to scan, in report order
        relationship_threshold: Similarity bound for ``find_relationships``
        contact_policy_threshold: Similarity bound for ``find_policies_for_contact``
    """

    def __init__(
        self,
        contact_store: ContactStore,
        policy_store: PolicyStore,
        policy_lines: Sequence[str],
        relationship_threshold: float = 0.8,
        contact_policy_threshold: float = 0.7,
        max_concurrent_lines: int = 4,
    ):
        super().__init__(repository=contact_store)
        self.contact_store = contact_store
        self.policy_store = policy_store
        self.policy_lines = list(policy_lines)
        self.relationship_threshold = relationship_threshold
        self.contact_policy_threshold = contact_policy_threshold
        self.match_finder = MatchFinder(
            policy_store, self.policy_lines, max_concurrent_lines=max_concurrent_lines
        )
        self.aggregator = RelationshipAggregator(self.policy_lines)
        self.status_reconciler = StatusReconciler(contact_store)

    async def find_relationships(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> RelationshipReport:
        """Find every contact that matches at least one policy.

        Args:
            cancel_token: Optional token to stop the scan early

        Returns:
            RelationshipReport: Summary and grouped relationships

        Raises:
            StoreUnavailableError: If contacts cannot be read
        """
        return await self.execute(
            "find_relationships", self._find_relationships, cancel_token
        )

    async def find_policies_for_contact(self, contact_id: int) -> ContactPolicies:
        """Find the policies that belong to one contact.

        Raises:
            ContactNotFoundError: If the contact does not exist
            StoreUnavailableError: If contacts cannot be read
        """
        return await self.execute(
            "find_policies_for_contact", self._find_policies_for_contact, contact_id
        )

    async def reconcile_statuses(self) -> ReconciliationResult:
        """Mark every matched prospect as client.

        Raises:
            StoreUnavailableError: If contacts cannot be read
            ReconciliationWriteError: If the status update fails
        """
        return await self.execute("reconcile_statuses", self._reconcile_statuses)

    async def _find_relationships(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> RelationshipReport:
        self.logger.info("Finding relationships between directorio and policy tables")

        contacts = await self._load_contacts()
        scan = await self.match_finder.scan(
            contacts, self.relationship_threshold, cancel_token=cancel_token
        )
        aggregated = self.aggregator.aggregate(scan.matches)

        self.logger.info(
            f"Found {len(aggregated.matches)} relationships across "
            f"{len(aggregated.relationships)} contacts",
            extra={"failed_lines": ",".join(scan.failed_lines)},
        )
        return RelationshipReport(
            summary=aggregated.summary,
            relationships=aggregated.relationships,
            failed_lines=scan.failed_lines,
            skipped_lines=scan.skipped_lines,
            cancelled=scan.cancelled,
        )

    async def _find_policies_for_contact(self, contact_id: int) -> ContactPolicies:
        try:
            contact = await self.contact_store.get_contact(contact_id)
        except AppError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Contact store unavailable: {e}", original_error=e)

        if contact is None:
            raise ContactNotFoundError(contact_id)

        summary = ContactSummary(
            id=contact["id"],
            full_name=contact.get("nombre_completo"),
            email=contact.get("email"),
            status=contact.get("status"),
        )

        matches = []
        failed_lines: List[str] = []
        if has_comparable_name(summary.full_name):
            scan = await self.match_finder.scan_contact(
                summary, self.contact_policy_threshold
            )
            matches = sort_by_score(scan.matches)
            failed_lines = scan.failed_lines
        else:
            self.logger.warning(
                "Contact has no comparable nombre_completo, no policies searched",
                extra={"contact_id": contact_id},
            )

        self.logger.info(
            f"Found {len(matches)} total policies for contact",
            extra={"contact_id": contact_id},
        )
        return ContactPolicies(
            contact=contact,
            policies=[match.to_dict() for match in matches],
            total_policies=len(matches),
            failed_lines=failed_lines,
        )

    async def _reconcile_statuses(self) -> ReconciliationResult:
        self.logger.info("Starting automatic client status update")
        report = await self._find_relationships()
        return await self.status_reconciler.reconcile(report.relationships)

    async def _load_contacts(self) -> List[ContactSummary]:
        try:
            return await self.contact_store.list_contacts()
        except AppError:
            raise
        except Exception as e:
            raise StoreUnavailableError(f"Contact store unavailable: {e}", original_error=e)
