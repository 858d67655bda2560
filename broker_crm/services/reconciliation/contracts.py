"""Contracts (records and store interfaces) for the reconciliation engine."""

import asyncio
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence


class ContactStatus(str, Enum):
    PROSPECTO = "prospecto"
    CLIENTE = "cliente"
    INACTIVO = "inactivo"


class MatchType(str, Enum):
    NAME_SIMILARITY = "name_similarity"
    EMAIL_EXACT = "email_exact"


@dataclass(frozen=True)
class ContactSummary:
    """Contact fields the engine reads."""
    id: int
    full_name: Optional[str]
    email: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class PolicyHolder:
    """Policy-line row fields the engine reads."""
    contratante: Optional[str]
    email: Optional[str] = None
    numero_poliza: Optional[str] = None
    ramo: Optional[str] = None


@dataclass(frozen=True)
class Match:
    """A derived link between a contact and a policy-line row."""
    contact_id: int
    contact_name: Optional[str]
    contact_email: Optional[str]
    contact_status: Optional[str]
    policy_table: str
    policyholder_name: Optional[str]
    policyholder_email: Optional[str]
    policy_number: Optional[str]
    ramo: str
    similarity_score: float
    match_type: MatchType

    def to_policy_dict(self) -> Dict[str, Any]:
        """Policy side of the match, as listed under a grouped contact."""
        return {
            "tabla": self.policy_table,
            "cliente_nombre": self.policyholder_name,
            "cliente_email": self.policyholder_email,
            "numero_poliza": self.policy_number,
            "ramo": self.ramo,
            "similarity_score": self.similarity_score,
            "match_type": self.match_type.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["match_type"] = self.match_type.value
        return data


@dataclass
class ScanResult:
    """Flat output of the match finder."""
    matches: List[Match] = field(default_factory=list)
    failed_lines: List[str] = field(default_factory=list)
    skipped_lines: List[str] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class GroupedRelationship:
    """All matches for one contact, best score first."""
    contact: Dict[str, Any]
    policies: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"contacto": self.contact, "polizas": self.policies}


class CancellationToken:
    """Caller-owned flag that stops the remaining policy-line scans."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ContactStore(Protocol):
    """Read access to contacts plus the bulk status write."""

    async def list_contacts(self) -> List[ContactSummary]:
        ...

    async def get_contact(self, contact_id: int) -> Optional[Dict[str, Any]]:
        ...

    async def bulk_set_status(
        self, contact_ids: Sequence[int], from_status: str, to_status: str
    ) -> int:
        ...

    async def status_histogram(self) -> Dict[str, int]:
        ...


class PolicyStore(Protocol):
    """Read access to the policy-line tables."""

    async def list_policyholders(self, line: str) -> List[PolicyHolder]:
        ...
