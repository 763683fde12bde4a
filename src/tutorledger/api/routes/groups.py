"""
Group Routes
CRUD, membership, balance and debt settlement.
"""
from __future__ import annotations

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tutorledger.api.dependencies import (
    get_balance_calculator,
    get_current_owner,
    get_ledger_service,
    get_settlement_service,
    get_uow,
)
from tutorledger.api.schemas import (
    GroupBalanceOut,
    GroupMembersRequest,
    GroupOut,
    SettlementOut,
    SettlementRequest,
)
from tutorledger.ledger.application.balance import GroupBalanceCalculator
from tutorledger.ledger.application.dto import GroupCreate, GroupUpdate
from tutorledger.ledger.application.services import LedgerService
from tutorledger.ledger.application.settlement import DebtSettlementService
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork

router = APIRouter(prefix="/api/v1/groups", tags=["Groups"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Uow = Annotated[LedgerUnitOfWork, Depends(get_uow)]
Service = Annotated[LedgerService, Depends(get_ledger_service)]


@router.get("", response_model=List[GroupOut])
async def search_groups(owner_id: Owner, uow: Uow, q: str = Query("", max_length=200)):
    return await uow.groups.search(q, owner_id)


@router.post("", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
async def create_group(body: GroupCreate, owner_id: Owner, service: Service):
    return await service.create_group(body, owner_id)


@router.get("/{group_id}", response_model=GroupOut)
async def get_group(group_id: UUID, owner_id: Owner, uow: Uow):
    return await uow.groups.get(group_id, owner_id)


@router.patch("/{group_id}", response_model=GroupOut)
async def update_group(group_id: UUID, body: GroupUpdate, owner_id: Owner, service: Service):
    return await service.update_group(group_id, body, owner_id)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    description="Members are detached (group_id cleared), then the group is deleted.",
)
async def delete_group(group_id: UUID, owner_id: Owner, service: Service) -> None:
    await service.delete_group(group_id, owner_id)


@router.put(
    "/{group_id}/members",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Replace the group's members with exactly these students",
)
async def assign_members(group_id: UUID, body: GroupMembersRequest, owner_id: Owner, service: Service) -> None:
    await service.assign_students_to_group(group_id, body.student_ids, owner_id)


@router.get("/{group_id}/balance", response_model=GroupBalanceOut)
async def group_balance(
    group_id: UUID,
    owner_id: Owner,
    calculator: Annotated[GroupBalanceCalculator, Depends(get_balance_calculator)],
):
    return await calculator.get_group_balance(group_id, owner_id)


@router.post(
    "/{group_id}/settlements",
    response_model=SettlementOut,
    status_code=status.HTTP_201_CREATED,
)
async def settle_debt(
    group_id: UUID,
    body: SettlementRequest,
    owner_id: Owner,
    settlements: Annotated[DebtSettlementService, Depends(get_settlement_service)],
):
    return await settlements.settle_debt(
        group_id,
        owner_id,
        mode=body.mode,
        amount=body.amount,
        student_id=body.student_id,
    )
