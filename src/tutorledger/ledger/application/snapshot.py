"""
Ledger snapshot: fan-out load of every entity list for one owner.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutorledger.ledger.domain.entities import Expense, Group, Payment, Student
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.shared.database.rls import apply_owner_scope
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class LedgerSnapshot:
    students: List[Student]
    groups: List[Group]
    payments: List[Payment]
    expenses: List[Expense]


async def _read(
    session_factory: async_sessionmaker[AsyncSession],
    owner_id: UUID,
    page_size: Optional[int],
    fetch: Callable[[LedgerUnitOfWork], Awaitable[T]],
) -> T:
    # AsyncSession is not safe for concurrent use: one session per branch.
    async with session_factory() as session:
        await apply_owner_scope(session, owner_id)
        return await fetch(LedgerUnitOfWork(session, page_size=page_size))


async def load_snapshot(
    session_factory: async_sessionmaker[AsyncSession],
    owner_id: UUID,
    page_size: Optional[int] = None,
) -> LedgerSnapshot:
    """
    Load students, groups, payments and expenses concurrently.

    All four reads must succeed; the first failure propagates and no partial
    snapshot is returned.
    """
    students, groups, payments, expenses = await asyncio.gather(
        _read(session_factory, owner_id, page_size, lambda uow: uow.students.get_all(owner_id)),
        _read(session_factory, owner_id, page_size, lambda uow: uow.groups.get_all(owner_id)),
        _read(session_factory, owner_id, page_size, lambda uow: uow.payments.get_all(owner_id)),
        _read(session_factory, owner_id, page_size, lambda uow: uow.expenses.get_all(owner_id)),
    )
    logger.debug(
        "Ledger snapshot loaded",
        owner_id=str(owner_id),
        students=len(students),
        groups=len(groups),
        payments=len(payments),
        expenses=len(expenses),
    )
    return LedgerSnapshot(students=students, groups=groups, payments=payments, expenses=expenses)
