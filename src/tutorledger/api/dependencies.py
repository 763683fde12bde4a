"""
Request-scoped dependencies: session, unit of work, services, owner.
"""
from __future__ import annotations

from typing import AsyncGenerator
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutorledger.config import Settings, get_settings
from tutorledger.guest.service import GuestCodeGate
from tutorledger.identity.owner_resolver import resolve_owner_id
from tutorledger.ledger.application.balance import GroupBalanceCalculator
from tutorledger.ledger.application.services import LedgerService
from tutorledger.ledger.application.settlement import DebtSettlementService
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.shared.database import apply_owner_scope, get_session_factory
from tutorledger.shared.utils.context import get_owner_id


def get_app_settings(request: Request) -> Settings:
    """Settings the app was built with (``create_app(settings)``), else the process-wide ones."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_db_session_factory() -> async_sessionmaker[AsyncSession]:
    return get_session_factory()


async def get_db_session(
    factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request, scoped to the bound owner when there is one.
    Guest routes run unscoped until they resolve the owner behind a code.
    """
    async with factory() as session:
        owner_id = get_owner_id()
        if owner_id is not None:
            await apply_owner_scope(session, owner_id)
        yield session


async def get_current_owner() -> UUID:
    return resolve_owner_id()


def get_uow(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> LedgerUnitOfWork:
    return LedgerUnitOfWork(session, page_size=settings.search_page_size)


def get_ledger_service(uow: LedgerUnitOfWork = Depends(get_uow)) -> LedgerService:
    return LedgerService(uow)


def get_balance_calculator(uow: LedgerUnitOfWork = Depends(get_uow)) -> GroupBalanceCalculator:
    return GroupBalanceCalculator(uow)


def get_settlement_service(uow: LedgerUnitOfWork = Depends(get_uow)) -> DebtSettlementService:
    return DebtSettlementService(uow)


def get_guest_gate(uow: LedgerUnitOfWork = Depends(get_uow)) -> GuestCodeGate:
    return GuestCodeGate(uow)
