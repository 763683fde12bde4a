"""
Report Routes
Dashboard, analytics and the full ledger snapshot for the signed-in owner.
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tutorledger.api.dependencies import (
    get_app_settings,
    get_balance_calculator,
    get_current_owner,
    get_db_session_factory,
    get_uow,
)
from tutorledger.api.schemas import DashboardOut, InsightOut, MonthlyIncomeOut, SnapshotOut
from tutorledger.config import Settings
from tutorledger.ledger.application.balance import GroupBalanceCalculator
from tutorledger.ledger.application.snapshot import load_snapshot
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.reporting.summaries import (
    dashboard_summary,
    income_by_group,
    monthly_income,
    parse_month,
    smart_insights,
)

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Uow = Annotated[LedgerUnitOfWork, Depends(get_uow)]


@router.get("/dashboard", response_model=DashboardOut)
async def dashboard(
    owner_id: Owner,
    uow: Uow,
    calculator: Annotated[GroupBalanceCalculator, Depends(get_balance_calculator)],
    month: Optional[str] = Query(None, description="01-12 or 'all'"),
):
    parse_month(month)
    payments = await uow.payments.get_all(owner_id)
    expenses = await uow.expenses.get_all(owner_id)
    groups = await uow.groups.list_all(owner_id)
    balances = await calculator.balances_for(groups, owner_id)
    return dashboard_summary(payments, expenses, groups, balances, month)


@router.get("/monthly", response_model=MonthlyIncomeOut)
async def monthly(owner_id: Owner, uow: Uow):
    payments = await uow.payments.get_all(owner_id)
    students = await uow.students.list_all(owner_id)
    groups = await uow.groups.list_all(owner_id)
    result = asdict(monthly_income(payments))
    result["by_group"] = income_by_group(payments, students, groups)
    return result


@router.get("/insights", response_model=List[InsightOut])
async def insights(owner_id: Owner, uow: Uow, today: Optional[date] = None):
    payments = await uow.payments.get_all(owner_id)
    expenses = await uow.expenses.get_all(owner_id)
    return smart_insights(payments, expenses, today)


@router.get("/snapshot", response_model=SnapshotOut)
async def snapshot(
    owner_id: Owner,
    factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_db_session_factory)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    return await load_snapshot(factory, owner_id, page_size=settings.search_page_size)
