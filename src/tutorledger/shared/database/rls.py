from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorledger.shared.exceptions import StoreError
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

_SET_OWNER = sa.text("SELECT set_config('app.owner_id', :owner_id, true)")


async def apply_owner_scope(session: AsyncSession, owner_id: UUID) -> bool:
    """
    Pin the ``app.owner_id`` GUC on every transaction this session begins, so
    PostgreSQL row-level security policies see the same owner the repositories
    filter on. The GUC is transaction-local; a commit does not drop the scope
    because the next transaction sets it again.

    Other dialects have no GUCs; the repository filters are the only scope there.
    Returns True when the scope was applied.
    """
    if session.bind is None or session.bind.dialect.name != "postgresql":
        return False

    params = {"owner_id": str(owner_id)}

    def _set_owner(_session, _transaction, connection) -> None:
        connection.execute(_SET_OWNER, params)

    event.listen(session.sync_session, "after_begin", _set_owner)

    if session.in_transaction():
        try:
            await session.execute(_SET_OWNER, params)
        except SQLAlchemyError as e:
            logger.error("Failed to set owner scope", owner_id=str(owner_id), exc_info=True)
            raise StoreError(f"Failed to set owner scope: {e.__class__.__name__}") from e
    logger.debug("Owner scope applied", owner_id=str(owner_id))
    return True
