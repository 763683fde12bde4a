"""
Expense Routes
"""
from __future__ import annotations

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tutorledger.api.dependencies import get_current_owner, get_ledger_service, get_uow
from tutorledger.api.schemas import ExpenseOut
from tutorledger.ledger.application.dto import ExpenseCreate, ExpenseUpdate
from tutorledger.ledger.application.services import LedgerService
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork

router = APIRouter(prefix="/api/v1/expenses", tags=["Expenses"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Uow = Annotated[LedgerUnitOfWork, Depends(get_uow)]
Service = Annotated[LedgerService, Depends(get_ledger_service)]


@router.get("", response_model=List[ExpenseOut])
async def search_expenses(owner_id: Owner, uow: Uow, q: str = Query("", max_length=200)):
    return await uow.expenses.search(q, owner_id)


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
async def create_expense(body: ExpenseCreate, owner_id: Owner, service: Service):
    return await service.create_expense(body, owner_id)


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(expense_id: UUID, owner_id: Owner, uow: Uow):
    return await uow.expenses.get(expense_id, owner_id)


@router.patch("/{expense_id}", response_model=ExpenseOut)
async def update_expense(expense_id: UUID, body: ExpenseUpdate, owner_id: Owner, service: Service):
    return await service.update_expense(expense_id, body, owner_id)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(expense_id: UUID, owner_id: Owner, service: Service) -> None:
    await service.delete_expense(expense_id, owner_id)
