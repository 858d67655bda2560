"""Database session dependency for FastAPI."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from broker_crm.database.client import db_client


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting async database session.

    Yields:
        AsyncSession: Database session
    """
    session_maker = db_client.get_session_maker()
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
