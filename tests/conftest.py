"""Pytest configuration and shared fixtures."""

from typing import Dict, Iterable, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from broker_crm.config import POLICY_LINES
from broker_crm.main import app
from broker_crm.services.reconciliation.contracts import (
    CancellationToken,
    ContactSummary,
    PolicyHolder,
)
from broker_crm.services.reconciliation.facade import ReconciliationService


class InMemoryContactStore:
    """Contact store backed by a list of dicts shaped like directorio_contactos rows."""

    def __init__(self, contacts: Iterable[dict]):
        self.contacts = [dict(contact) for contact in contacts]
        self.fail_reads = False
        self.fail_writes = False
        self.write_calls = 0

    async def list_contacts(self) -> List[ContactSummary]:
        if self.fail_reads:
            raise ConnectionError("connection refused")
        return [
            ContactSummary(
                id=contact["id"],
                full_name=contact.get("nombre_completo"),
                email=contact.get("email"),
                status=contact.get("status"),
            )
            for contact in self.contacts
        ]

    async def get_contact(self, contact_id: int) -> Optional[dict]:
        if self.fail_reads:
            raise ConnectionError("connection refused")
        for contact in self.contacts:
            if contact["id"] == contact_id:
                return dict(contact)
        return None

    async def bulk_set_status(
        self, contact_ids: Sequence[int], from_status: str, to_status: str
    ) -> int:
        self.write_calls += 1
        if self.fail_writes:
            raise ConnectionError("lost connection during UPDATE")
        updated = 0
        for contact in self.contacts:
            if contact["id"] in contact_ids and contact.get("status") == from_status:
                contact["status"] = to_status
                updated += 1
        return updated

    async def status_histogram(self) -> Dict[str, int]:
        histogram: Dict[str, int] = {}
        for contact in self.contacts:
            key = contact.get("status") or "sin_estado"
            histogram[key] = histogram.get(key, 0) + 1
        return histogram

    def status_of(self, contact_id: int) -> Optional[str]:
        return next(c.get("status") for c in self.contacts if c["id"] == contact_id)


class InMemoryPolicyStore:
    """Policy store backed by a dict of line -> rows.

    Lines listed in ``missing`` raise like a table that does not exist.
    ``cancel_after`` cancels the token once that line has been read.
    """

    def __init__(
        self,
        lines: Dict[str, List[dict]],
        missing: Iterable[str] = (),
        cancel_after: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.lines = lines
        self.missing = set(missing)
        self.cancel_after = cancel_after
        self.cancel_token = cancel_token
        self.requested: List[str] = []

    async def list_policyholders(self, line: str) -> List[PolicyHolder]:
        self.requested.append(line)
        if line in self.missing:
            raise RuntimeError(f"Table 'crud_db.{line}' doesn't exist")
        rows = [PolicyHolder(**row) for row in self.lines.get(line, [])]
        if self.cancel_token is not None and line == self.cancel_after:
            self.cancel_token.cancel()
        return rows


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def policy_lines() -> List[str]:
    return list(POLICY_LINES)


@pytest.fixture
def sample_contacts() -> List[dict]:
    """Directory contacts covering the main matching cases."""
    return [
        {"id": 1, "nombre_completo": "María López", "email": "m@x.com", "status": "prospecto"},
        {"id": 2, "nombre_completo": "Juan Carlos Pérez", "email": None, "status": "prospecto"},
        {"id": 3, "nombre_completo": "Roberto Gómez", "email": "ROBERTO@EMPRESA.MX", "status": "cliente"},
        {"id": 4, "nombre_completo": "Ana Torres", "email": "ana@x.com", "status": "inactivo"},
        {"id": 5, "nombre_completo": "", "email": "nadie@x.com", "status": "prospecto"},
    ]


@pytest.fixture
def sample_policies() -> Dict[str, List[dict]]:
    """Policy rows per line."""
    return {
        "autos": [
            {"contratante": "Maria Lopez", "email": "m@x.com", "numero_poliza": "A-100", "ramo": None},
            {"contratante": "Transportes del Norte SA", "email": "roberto@empresa.mx", "numero_poliza": "A-200", "ramo": "Autos flotilla"},
        ],
        "vida": [
            {"contratante": "Pérez Juan Carlos López Soto", "email": None, "numero_poliza": "V-1", "ramo": "vida"},
            {"contratante": "Ana Torres", "email": None, "numero_poliza": "V-2", "ramo": None},
        ],
        "gmm": [
            {"contratante": "MARIA LOPEZ", "email": None, "numero_poliza": "G-7", "ramo": "Gastos médicos"},
        ],
    }


@pytest.fixture
def contact_store(sample_contacts) -> InMemoryContactStore:
    return InMemoryContactStore(sample_contacts)


@pytest.fixture
def policy_store(sample_policies) -> InMemoryPolicyStore:
    return InMemoryPolicyStore(sample_policies)


@pytest.fixture
def reconciliation_service(contact_store, policy_store, policy_lines) -> ReconciliationService:
    return ReconciliationService(
        contact_store=contact_store,
        policy_store=policy_store,
        policy_lines=policy_lines,
        relationship_threshold=0.8,
        contact_policy_threshold=0.7,
    )


@pytest.fixture
def make_contact_store():
    return InMemoryContactStore


@pytest.fixture
def make_policy_store():
    return InMemoryPolicyStore
