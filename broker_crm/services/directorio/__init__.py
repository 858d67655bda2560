"""Contact directory services."""
