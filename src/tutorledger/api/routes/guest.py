"""
Guest Routes
Read-only, anonymized figures behind a guest code; no bearer token needed.
"""
from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, Query

from tutorledger.api.dependencies import get_guest_gate, get_uow
from tutorledger.api.schemas import GuestSummaryOut, GuestVerifyOut, GuestVerifyRequest
from tutorledger.guest.service import GuestCodeGate
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.reporting.summaries import guest_summary
from tutorledger.shared.database import apply_owner_scope
from tutorledger.shared.exceptions import UnauthorizedError

router = APIRouter(prefix="/api/v1/guest", tags=["Guest"])

GUEST_CODE_HEADER = "X-Guest-Code"


@router.post("/verify", response_model=GuestVerifyOut)
async def verify_code(body: GuestVerifyRequest, gate: Annotated[GuestCodeGate, Depends(get_guest_gate)]):
    return GuestVerifyOut(valid=await gate.verify(body.code))


@router.get("/summary", response_model=GuestSummaryOut)
async def summary(
    gate: Annotated[GuestCodeGate, Depends(get_guest_gate)],
    uow: Annotated[LedgerUnitOfWork, Depends(get_uow)],
    guest_code: Annotated[Optional[str], Header(alias=GUEST_CODE_HEADER)] = None,
    month: Optional[str] = Query(None, description="01-12 or 'all'"),
):
    owner_id = await gate.resolve_guest_owner(guest_code)
    if owner_id is None:
        raise UnauthorizedError("Invalid guest code", code="invalid_guest_code")
    await apply_owner_scope(uow.session, owner_id)
    payments = await uow.payments.get_all(owner_id)
    return guest_summary(payments, month)
