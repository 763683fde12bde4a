"""
Ledger input DTOs.

Types only; the repositories own the domain rules (non-empty names,
positive amounts) so every caller, HTTP or not, goes through the same checks.
Update DTOs are partial: only fields the caller actually set are applied
(``model_dump(exclude_unset=True)``).
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tutorledger.ledger.domain.entities import PaymentMethod


class _Input(BaseModel):
    model_config = ConfigDict(extra="forbid")


class StudentCreate(_Input):
    full_name: str
    phone: Optional[str] = None
    group_id: Optional[UUID] = None


class StudentUpdate(_Input):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    group_id: Optional[UUID] = None
    active: Optional[bool] = None


class GroupCreate(_Input):
    name: str
    description: Optional[str] = None
    due_total: Decimal = Decimal("0")


class GroupUpdate(_Input):
    name: Optional[str] = None
    description: Optional[str] = None
    due_total: Optional[Decimal] = None


class PaymentCreate(_Input):
    amount: Decimal
    method: PaymentMethod = PaymentMethod.CASH
    paid_at: date = Field(default_factory=date.today)
    student_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    note: Optional[str] = None


class PaymentUpdate(_Input):
    amount: Optional[Decimal] = None
    method: Optional[PaymentMethod] = None
    paid_at: Optional[date] = None
    student_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    note: Optional[str] = None


class ExpenseCreate(_Input):
    description: str
    amount: Decimal
    spent_at: date = Field(default_factory=date.today)


class ExpenseUpdate(_Input):
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    spent_at: Optional[date] = None
