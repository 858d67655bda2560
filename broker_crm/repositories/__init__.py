"""Repository layer modules."""

from broker_crm.repositories.contact_repository import ContactFilters, ContactRepository
from broker_crm.repositories.policy_repository import PolicyRepository

__all__ = [
    "ContactFilters",
    "ContactRepository",
    "PolicyRepository",
]
