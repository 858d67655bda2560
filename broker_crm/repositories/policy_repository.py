"""Read-only access to the policy-line tables."""

from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from broker_crm.core.exceptions import PolicyLineLookupError
from broker_crm.database.models import policy_line_table
from broker_crm.services.reconciliation.contracts import PolicyHolder
from broker_crm.utils.logging import get_logger

LOGGER = get_logger(__name__)


class PolicyRepository:
    """Reads policyholders from the per-line policy tables.

    Each call opens its own session so several lines can be read at the same
    time. Line names are checked against the fixed set of policy lines before
    a statement is built.
    """

    def __init__(self, session_maker: async_sessionmaker):
        """Initialize repository with a session factory.

        Args:
            session_maker: Factory for async sessions
        """
        self.session_maker = session_maker

    async def list_policyholders(self, line: str) -> List[PolicyHolder]:
        """All rows of one policy line.

        Args:
            line: Policy-line table name (e.g. "autos")

        Returns:
            List[PolicyHolder]: Rows projected to contratante/email/numero_poliza/ramo

        Raises:
            PolicyLineLookupError: If the line is unknown or the table cannot be read
        """
        try:
            policy_table = policy_line_table(line)
        except ValueError as e:
            raise PolicyLineLookupError(line, str(e), original_error=e)

        stmt = select(
            policy_table.c.contratante,
            policy_table.c.email,
            policy_table.c.numero_poliza,
            policy_table.c.ramo,
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as e:
            raise PolicyLineLookupError(
                line, f"Could not read policy table {line}: {e}", original_error=e
            )

        LOGGER.debug(f"Loaded {len(rows)} rows from {line}", extra={"table": line})
        return [
            PolicyHolder(
                contratante=row.contratante,
                email=row.email,
                numero_poliza=None if row.numero_poliza is None else str(row.numero_poliza),
                ramo=row.ramo,
            )
            for row in rows
        ]
