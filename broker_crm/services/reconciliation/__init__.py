"""Contact/policy reconciliation engine."""
