"""Broker CRM backend: contact directory and policy reconciliation."""
