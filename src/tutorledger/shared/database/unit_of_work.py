"""
SQLAlchemy Implementation of Unit of Work
Manages database transactions with async SQLAlchemy sessions
"""
from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorledger.shared.exceptions import StoreError
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork:
    """
    SQLAlchemy-based Unit of Work.

    Every write of one logical operation happens inside one context; leaving
    the context without ``commit()`` (or through an exception) rolls back.

    Usage:
        async with uow:
            await uow.groups.delete(group_id, owner_id)
            await uow.commit()
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._committed = False

    async def __aenter__(self) -> SQLAlchemyUnitOfWork:
        self._committed = False
        logger.debug("UnitOfWork transaction started")
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None:
            await self.rollback()
            logger.warning("UnitOfWork rolled back due to exception", error=str(exc_val))
        elif not self._committed:
            await self.rollback()
            logger.debug("UnitOfWork rolled back (not committed)")

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.rollback()
            logger.error("UnitOfWork commit failed", error=str(e))
            raise StoreError(f"Commit failed: {e.__class__.__name__}") from e
        self._committed = True
        logger.debug("UnitOfWork transaction committed")

    async def rollback(self) -> None:
        await self.session.rollback()
        self._committed = False
