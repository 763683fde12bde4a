"""
Guest code repository.

Owner-scoped like the ledger repositories, except ``find_active_by_code``,
which looks across every owner: a guest presents a code, not an identity.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from tutorledger.guest.models import GuestCode, GuestCodeModel
from tutorledger.shared.database.base_model import as_utc, utcnow
from tutorledger.shared.database.owned_repository import OwnedRepository


class GuestCodeRepository(OwnedRepository[GuestCode, GuestCodeModel]):
    model_class = GuestCodeModel
    entity_name = "GuestCode"

    def _to_entity(self, model: GuestCodeModel) -> GuestCode:
        created_at = as_utc(model.created_at)
        return GuestCode(
            id=model.id,
            code=model.code,
            active=bool(model.active),
            owner_id=model.owner_id,
            created_at=created_at,
            updated_at=as_utc(model.updated_at) or created_at,
            expires_at=as_utc(model.expires_at),
        )

    async def fetch_active(self, owner_id: UUID) -> Optional[GuestCode]:
        """Most recently updated active code for the owner."""
        stmt = (
            self._owned(owner_id)
            .where(GuestCodeModel.active.is_(True))
            .order_by(GuestCodeModel.updated_at.desc(), GuestCodeModel.created_at.desc())
            .limit(1)
        )
        rows = await self._list(stmt)
        return rows[0] if rows else None

    async def deactivate_all(self, owner_id: UUID) -> int:
        stmt = (
            update(GuestCodeModel)
            .where(GuestCodeModel.owner_id == owner_id, GuestCodeModel.active.is_(True))
            .values(active=False, updated_at=utcnow())
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._map_error(e, "deactivate", owner_id=owner_id)
        return result.rowcount

    async def insert_active(self, code: str, owner_id: UUID, expires_at: Optional[datetime] = None) -> GuestCode:
        now = utcnow()
        return await self._insert(
            owner_id,
            code=code,
            active=True,
            created_at=now,
            updated_at=now,
            expires_at=expires_at,
        )

    async def find_active_by_code(self, code: str) -> List[GuestCode]:
        stmt = (
            select(GuestCodeModel)
            .where(GuestCodeModel.code == code, GuestCodeModel.active.is_(True))
            .order_by(GuestCodeModel.updated_at.desc())
        )
        return await self._list(stmt)
