"""
Payment Routes
"""
from __future__ import annotations

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tutorledger.api.dependencies import get_current_owner, get_ledger_service, get_uow
from tutorledger.api.schemas import PaymentOut
from tutorledger.ledger.application.dto import PaymentCreate, PaymentUpdate
from tutorledger.ledger.application.services import LedgerService
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork

router = APIRouter(prefix="/api/v1/payments", tags=["Payments"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Uow = Annotated[LedgerUnitOfWork, Depends(get_uow)]
Service = Annotated[LedgerService, Depends(get_ledger_service)]


@router.get("", response_model=List[PaymentOut], summary="Search payments by note, newest first")
async def search_payments(owner_id: Owner, uow: Uow, q: str = Query("", max_length=200)):
    return await uow.payments.search(q, owner_id)


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
async def create_payment(body: PaymentCreate, owner_id: Owner, service: Service):
    return await service.create_payment(body, owner_id)


@router.get("/{payment_id}", response_model=PaymentOut)
async def get_payment(payment_id: UUID, owner_id: Owner, uow: Uow):
    return await uow.payments.get(payment_id, owner_id)


@router.patch("/{payment_id}", response_model=PaymentOut)
async def update_payment(payment_id: UUID, body: PaymentUpdate, owner_id: Owner, service: Service):
    return await service.update_payment(payment_id, body, owner_id)


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: UUID, owner_id: Owner, service: Service) -> None:
    await service.delete_payment(payment_id, owner_id)
