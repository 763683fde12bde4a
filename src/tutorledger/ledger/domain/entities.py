"""
Ledger entities.

Plain records decoded from store rows; every one carries the owner it belongs to.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

ZERO = Decimal("0")


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


class SettlementMode(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


@dataclass(frozen=True, slots=True)
class Student:
    id: UUID
    full_name: str
    owner_id: UUID
    created_at: datetime
    phone: Optional[str] = None
    group_id: Optional[UUID] = None
    active: bool = True


@dataclass(frozen=True, slots=True)
class Group:
    id: UUID
    name: str
    owner_id: UUID
    created_at: datetime
    description: Optional[str] = None
    due_total: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class Payment:
    id: UUID
    amount: Decimal
    method: PaymentMethod
    paid_at: date
    owner_id: UUID
    student_id: Optional[UUID] = None
    group_id: Optional[UUID] = None
    note: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Expense:
    id: UUID
    description: str
    amount: Decimal
    spent_at: date
    owner_id: UUID
    created_at: datetime


@dataclass(frozen=True, slots=True)
class GroupBalance:
    """``remaining`` is clamped at zero; overpayment never shows as negative debt."""
    due_total: Decimal
    paid_total: Decimal
    remaining: Decimal

    @classmethod
    def compute(cls, due_total: Decimal, paid_total: Decimal) -> GroupBalance:
        return cls(
            due_total=due_total,
            paid_total=paid_total,
            remaining=max(ZERO, due_total - paid_total),
        )


@dataclass(frozen=True, slots=True)
class SettlementResult:
    payment: Payment
    balance: GroupBalance
