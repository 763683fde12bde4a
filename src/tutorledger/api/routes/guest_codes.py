"""
Guest Code Routes (owner side)
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status

from tutorledger.api.dependencies import get_current_owner, get_guest_gate
from tutorledger.api.schemas import GuestCodeCreate, GuestCodeOut
from tutorledger.guest.service import GuestCodeGate

router = APIRouter(prefix="/api/v1/guest-codes", tags=["Guest codes"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Gate = Annotated[GuestCodeGate, Depends(get_guest_gate)]


@router.get("/active", response_model=Optional[GuestCodeOut])
async def active_code(owner_id: Owner, gate: Gate):
    return await gate.fetch_active_code(owner_id)


@router.post(
    "",
    response_model=GuestCodeOut,
    status_code=status.HTTP_201_CREATED,
    description="Replaces the active code. Without `code`, a random one is generated.",
)
async def generate_code(body: GuestCodeCreate, owner_id: Owner, gate: Gate):
    if body.code is None:
        return await gate.rotate(owner_id, expires_at=body.expires_at)
    return await gate.generate_code(body.code, owner_id, expires_at=body.expires_at)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_codes(owner_id: Owner, gate: Gate) -> None:
    await gate.deactivate_all(owner_id)
