"""
Ledger ORM Models
Map to the students, groups, payments and expenses tables.

No foreign keys between ledger tables: the store does not cascade, so the
repositories own cleanup (e.g. detaching students when a group is deleted).
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tutorledger.shared.database.base_model import Base, OwnedMixin, utcnow


class StudentModel(OwnedMixin, Base):
    __tablename__ = "students"
    __table_args__ = (Index("ix_students_owner_name", "owner_id", "full_name"),)

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    group_id: Mapped[Optional[UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<StudentModel(id={self.id}, full_name={self.full_name!r})>"


class GroupModel(OwnedMixin, Base):
    __tablename__ = "groups"
    __table_args__ = (
        Index("ix_groups_owner_name", "owner_id", "name"),
        CheckConstraint("due_total >= 0", name="ck_groups_due_total_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<GroupModel(id={self.id}, name={self.name!r})>"


class PaymentModel(OwnedMixin, Base):
    __tablename__ = "payments"
    __table_args__ = (
        Index("ix_payments_owner_group", "owner_id", "group_id"),
        Index("ix_payments_owner_paid_at", "owner_id", "paid_at"),
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint("method IN ('cash', 'card', 'transfer')", name="ck_payments_method"),
    )

    student_id: Mapped[Optional[UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    group_id: Mapped[Optional[UUID]] = mapped_column(Uuid(as_uuid=True), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    paid_at: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class ExpenseModel(OwnedMixin, Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_owner_spent_at", "owner_id", "spent_at"),
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )

    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    spent_at: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=utcnow)
