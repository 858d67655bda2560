"""Database module for SQLAlchemy models and session management."""

from broker_crm.database.base import Base, build_engine, build_session_maker
from broker_crm.database.client import DatabaseClient, db_client, init_database, close_database
from broker_crm.database.models import DirectoryContact, policy_line_table
from broker_crm.database.session import get_async_session

__all__ = [
    "Base",
    "build_engine",
    "build_session_maker",
    "get_async_session",
    "DatabaseClient",
    "db_client",
    "init_database",
    "close_database",
    "DirectoryContact",
    "policy_line_table",
]
