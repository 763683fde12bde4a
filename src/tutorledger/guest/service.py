"""
Guest Code Gate

One active shareable code per owner. Owners rotate or revoke their code; a
guest presents one to see anonymized figures.
"""
from __future__ import annotations

import secrets
from datetime import datetime
from typing import Callable, Optional
from uuid import UUID

from tutorledger.guest.models import GuestCode
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.shared.database.base_model import as_utc, utcnow
from tutorledger.shared.exceptions import ValidationError
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
DEFAULT_CODE_LENGTH = 6


def normalize_code(raw: Optional[str]) -> str:
    return (raw or "").strip().upper()


def random_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Random code without look-alike characters (no 0/O, 1/I)."""
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class GuestCodeGate:
    def __init__(self, uow: LedgerUnitOfWork, clock: Callable[[], datetime] = utcnow) -> None:
        self.uow = uow
        self.clock = clock

    async def fetch_active_code(self, owner_id: UUID) -> Optional[GuestCode]:
        return await self.uow.guest_codes.fetch_active(owner_id)

    async def generate_code(
        self,
        raw_code: str,
        owner_id: UUID,
        expires_at: Optional[datetime] = None,
    ) -> GuestCode:
        """
        Replace the owner's active code with ``raw_code`` (trimmed, uppercased).

        Deactivation and insert share one transaction, so the owner is never
        left with zero or two active codes.
        """
        code = normalize_code(raw_code)
        if not code:
            raise ValidationError("Guest code is required", details={"field": "code"})

        async with self.uow:
            replaced = await self.uow.guest_codes.deactivate_all(owner_id)
            record = await self.uow.guest_codes.insert_active(code, owner_id, as_utc(expires_at))
            await self.uow.commit()

        logger.info(
            "Guest code generated",
            owner_id=str(owner_id),
            guest_code_id=str(record.id),
            replaced=replaced,
        )
        return record

    async def rotate(self, owner_id: UUID, expires_at: Optional[datetime] = None) -> GuestCode:
        return await self.generate_code(random_code(), owner_id, expires_at=expires_at)

    async def deactivate_all(self, owner_id: UUID) -> None:
        async with self.uow:
            count = await self.uow.guest_codes.deactivate_all(owner_id)
            await self.uow.commit()
        logger.info("Guest codes deactivated", owner_id=str(owner_id), count=count)

    async def _usable(self, raw_code: Optional[str]) -> Optional[GuestCode]:
        code = normalize_code(raw_code)
        if not code:
            return None
        now = self.clock()
        # Any owner's code is accepted here.
        for record in await self.uow.guest_codes.find_active_by_code(code):
            if record.is_usable(now):
                return record
        return None

    async def verify(self, raw_code: Optional[str]) -> bool:
        return await self._usable(raw_code) is not None

    async def resolve_guest_owner(self, raw_code: Optional[str]) -> Optional[UUID]:
        """Owner whose figures a valid code unlocks, or None."""
        record = await self._usable(raw_code)
        return record.owner_id if record is not None else None
