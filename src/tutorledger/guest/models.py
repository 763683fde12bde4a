"""
Guest code record and ORM model.

At most one active code per owner; PostgreSQL and SQLite both enforce it with
a partial unique index.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from tutorledger.shared.database.base_model import Base, OwnedMixin, utcnow


class GuestCodeModel(OwnedMixin, Base):
    __tablename__ = "guest_codes"
    __table_args__ = (
        Index("ix_guest_codes_code_active", "code", "active"),
        Index(
            "uq_guest_codes_owner_active",
            "owner_id",
            unique=True,
            postgresql_where=text("active"),
            sqlite_where=text("active = 1"),
        ),
    )

    code: Mapped[str] = mapped_column(String(64), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow, onupdate=utcnow)
    expires_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<GuestCodeModel(id={self.id}, code={self.code!r}, active={self.active})>"


@dataclass(frozen=True, slots=True)
class GuestCode:
    id: UUID
    code: str
    active: bool
    owner_id: UUID
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def is_usable(self, now: datetime) -> bool:
        return self.active and not self.is_expired(now)
