"""
HTTP request/response schemas.

Entities are dataclasses; responses validate them by attribute.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tutorledger.ledger.domain.entities import PaymentMethod, SettlementMode


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class _In(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


# ---- ledger entities ---------------------------------------------------------

class StudentOut(_Out):
    id: UUID
    full_name: str
    phone: Optional[str] = None
    group_id: Optional[UUID] = None
    active: bool
    created_at: datetime


class GroupOut(_Out):
    id: UUID
    name: str
    description: Optional[str] = None
    due_total: Decimal
    created_at: datetime


class PaymentOut(_Out):
    id: UUID
    amount: Decimal
    method: PaymentMethod
    paid_at: date
    student_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    note: Optional[str] = None


class ExpenseOut(_Out):
    id: UUID
    description: str
    amount: Decimal
    spent_at: date
    created_at: datetime


class EnsureStudentRequest(_In):
    full_name: str = Field(..., description="Matched exactly after trimming")
    phone: Optional[str] = None


class GroupMembersRequest(_In):
    student_ids: List[UUID] = Field(default_factory=list)


class GroupBalanceOut(_Out):
    due_total: Decimal
    paid_total: Decimal
    remaining: Decimal


class SettlementRequest(_In):
    mode: SettlementMode = SettlementMode.FULL
    amount: Optional[Decimal] = Field(
        None, max_digits=12, decimal_places=2, description="Required when mode is partial"
    )
    student_id: Optional[UUID] = None


class SettlementOut(_Out):
    payment: PaymentOut
    balance: GroupBalanceOut


# ---- guest codes -------------------------------------------------------------

class GuestCodeOut(_Out):
    id: UUID
    code: str
    active: bool
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None


class GuestCodeCreate(_In):
    code: Optional[str] = Field(None, description="Omit to generate a random code")
    expires_at: Optional[datetime] = None


class GuestVerifyRequest(_In):
    code: str


class GuestVerifyOut(BaseModel):
    valid: bool


class GuestPaymentRowOut(_Out):
    paid_at: date
    amount: Decimal
    method: PaymentMethod


class GuestSummaryOut(_Out):
    total: Decimal
    count: int
    payments: List[GuestPaymentRowOut]


# ---- reports -----------------------------------------------------------------

class GroupDebtOut(_Out):
    group: GroupOut
    balance: GroupBalanceOut


class DashboardOut(_Out):
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    paying_students: int
    groups_with_debt: List[GroupDebtOut]
    latest_payments: List[PaymentOut]
    months: List[str]


class MonthTotalOut(_Out):
    month: str
    total: Decimal


class MonthlyIncomeOut(_Out):
    months: List[MonthTotalOut]
    highest: Optional[MonthTotalOut] = None
    lowest: Optional[MonthTotalOut] = None
    by_group: dict[str, Decimal] = Field(default_factory=dict)


class InsightOut(_Out):
    title: str
    description: str
    tone: str


class SnapshotOut(_Out):
    students: List[StudentOut]
    groups: List[GroupOut]
    payments: List[PaymentOut]
    expenses: List[ExpenseOut]
