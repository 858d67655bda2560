"""Database client owning the engine for the life of the process."""

from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from broker_crm.config import Settings, settings
from broker_crm.core.exceptions import DatabaseError
from broker_crm.database.base import build_engine, build_session_maker
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DatabaseClient:
    """Creates, hands out and disposes the async engine and session maker.

    One instance is built at startup and shared through FastAPI dependencies.
    """

    def __init__(self, config: Settings):
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self.session_maker: Optional[async_sessionmaker] = None

    async def init(self) -> None:
        if self.engine is not None:
            return
        self.engine = build_engine(self.config)
        self.session_maker = build_session_maker(self.engine)
        LOGGER.info("Database engine created", extra={"echo": self.config.database_echo})

    async def close(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_maker = None
        LOGGER.info("Database engine disposed")

    def get_session_maker(self) -> async_sessionmaker:
        if self.session_maker is None:
            raise DatabaseError("Database client is not initialized")
        return self.session_maker

    async def health_check(self) -> Dict[str, Any]:
        """Run ``SELECT 1`` against the database.

        Returns:
            Dict[str, Any]: ``{"status": "healthy"}`` or ``{"status": "unhealthy", "error": ...}``
        """
        if self.engine is None:
            return {"status": "unhealthy", "error": "not initialized"}
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except Exception as e:
            LOGGER.warning(f"Database health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}
        return {"status": "healthy"}


db_client = DatabaseClient(settings)


async def init_database() -> None:
    await db_client.init()


async def close_database() -> None:
    await db_client.close()
