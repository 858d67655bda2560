"""Declarative base and engine factory."""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from broker_crm.config import Settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine from settings.

    SQLite URLs do not accept pool sizing arguments, so those are only
    passed for server databases.
    """
    kwargs = {"echo": settings.database_echo, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow
    return create_async_engine(settings.database_url, **kwargs)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)
