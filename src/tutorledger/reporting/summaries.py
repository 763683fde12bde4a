"""
Dashboard, analytics and guest figures.

Pure functions over already-loaded entity lists; nothing here touches the store.
Months are selected by calendar month number ("01".."12", any year) or
``"all"``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar, Union
from uuid import UUID

from tutorledger.ledger.domain.entities import (
    ZERO,
    Expense,
    Group,
    GroupBalance,
    Payment,
    PaymentMethod,
    Student,
)
from tutorledger.shared.exceptions import ValidationError

T = TypeVar("T")

ALL_MONTHS = "all"
TOP_DEBT_GROUPS = 5
LATEST_PAYMENTS = 5
UNGROUPED = "Ungrouped"


def parse_month(month: Union[str, int, None]) -> Optional[int]:
    """``None``/``"all"`` mean no filter; otherwise a month number 1-12."""
    if month is None:
        return None
    if isinstance(month, str):
        month = month.strip()
        if not month or month.lower() == ALL_MONTHS:
            return None
        if not month.isdigit():
            raise ValidationError("month must be 1-12 or 'all'", details={"month": month})
    value = int(month)
    if not 1 <= value <= 12:
        raise ValidationError("month must be 1-12 or 'all'", details={"month": str(month)})
    return value


def filter_by_month(
    items: Iterable[T],
    month: Union[str, int, None],
    get_date: Callable[[T], Optional[date]],
) -> List[T]:
    wanted = parse_month(month)
    if wanted is None:
        return list(items)
    kept = []
    for item in items:
        value = get_date(item)
        if value is not None and value.month == wanted:
            kept.append(item)
    return kept


def _total(amounts: Iterable[Decimal]) -> Decimal:
    return sum(amounts, ZERO)


def _month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _previous_month(value: date) -> date:
    if value.month == 1:
        return date(value.year - 1, 12, 1)
    return date(value.year, value.month - 1, 1)


# ---- dashboard ---------------------------------------------------------------

@dataclass(frozen=True)
class GroupDebt:
    group: Group
    balance: GroupBalance


@dataclass(frozen=True)
class DashboardSummary:
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    paying_students: int
    groups_with_debt: List[GroupDebt]
    latest_payments: List[Payment]
    months: List[str]


def dashboard_summary(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    groups: Sequence[Group],
    balances: Mapping[UUID, GroupBalance],
    month: Union[str, int, None] = None,
) -> DashboardSummary:
    """
    Headline figures for the selected month.

    ``groups_with_debt`` ignores the month: a debt is a debt whenever it was
    incurred. ``months`` lists the month numbers present across all payments.
    """
    month_payments = filter_by_month(payments, month, lambda p: p.paid_at)
    month_expenses = filter_by_month(expenses, month, lambda e: e.spent_at)

    income = _total(p.amount for p in month_payments)
    spent = _total(e.amount for e in month_expenses)
    payers = {p.student_id for p in month_payments if p.student_id is not None}

    indebted = [
        GroupDebt(group=g, balance=balances[g.id])
        for g in groups
        if g.id in balances and balances[g.id].remaining > ZERO
    ]
    indebted.sort(key=lambda d: d.balance.remaining, reverse=True)

    latest = sorted(month_payments, key=lambda p: p.paid_at, reverse=True)[:LATEST_PAYMENTS]
    months = sorted({f"{p.paid_at.month:02d}" for p in payments})

    return DashboardSummary(
        total_income=income,
        total_expenses=spent,
        net_income=income - spent,
        paying_students=len(payers),
        groups_with_debt=indebted[:TOP_DEBT_GROUPS],
        latest_payments=latest,
        months=months,
    )


# ---- analytics ---------------------------------------------------------------

@dataclass(frozen=True)
class MonthTotal:
    month: str
    total: Decimal


@dataclass(frozen=True)
class MonthlyIncome:
    months: List[MonthTotal]
    highest: Optional[MonthTotal] = None
    lowest: Optional[MonthTotal] = None


def monthly_income(payments: Iterable[Payment]) -> MonthlyIncome:
    totals: Dict[str, Decimal] = {}
    for payment in payments:
        key = _month_key(payment.paid_at)
        totals[key] = totals.get(key, ZERO) + payment.amount
    rows = [MonthTotal(month=k, total=totals[k]) for k in sorted(totals)]
    if not rows:
        return MonthlyIncome(months=[])
    # first occurrence wins on ties
    highest = rows[0]
    lowest = rows[0]
    for row in rows[1:]:
        if row.total > highest.total:
            highest = row
        if row.total < lowest.total:
            lowest = row
    return MonthlyIncome(months=rows, highest=highest, lowest=lowest)


def income_by_group(
    payments: Iterable[Payment],
    students: Iterable[Student],
    groups: Iterable[Group],
) -> Dict[str, Decimal]:
    """
    Income per group name, attributed through the paying student's current group.

    Unlike the balance calculator, this follows the student; payments without
    a student, or whose student has no group, land under ``Ungrouped``.
    """
    group_of_student = {s.id: s.group_id for s in students}
    group_names = {g.id: g.name for g in groups}
    totals: Dict[str, Decimal] = {}
    for payment in payments:
        group_id = group_of_student.get(payment.student_id) if payment.student_id else None
        name = group_names.get(group_id, UNGROUPED) if group_id else UNGROUPED
        totals[name] = totals.get(name, ZERO) + payment.amount
    return totals


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    tone: str  # success | warning | info


def _tone_for_change(change: Decimal) -> str:
    if change > Decimal("0.1"):
        return "success"
    if change < Decimal("-0.05"):
        return "warning"
    return "info"


def smart_insights(
    payments: Sequence[Payment],
    expenses: Sequence[Expense],
    today: Optional[date] = None,
) -> List[Insight]:
    """
    Three insights for the current calendar month: income trend against the
    previous calendar month, net income after expenses, and a suggestion.
    """
    if not payments:
        return [
            Insight(
                title="Not enough data",
                description="Record a few payments first to get insights.",
                tone="info",
            )
        ]

    today = today or date.today()
    this_month = (today.year, today.month)
    prev = _previous_month(today)
    last_month = (prev.year, prev.month)

    income = _total(p.amount for p in payments if (p.paid_at.year, p.paid_at.month) == this_month)
    previous = _total(p.amount for p in payments if (p.paid_at.year, p.paid_at.month) == last_month)
    spent = _total(e.amount for e in expenses if (e.spent_at.year, e.spent_at.month) == this_month)

    change = (income - previous) / previous if previous else ZERO

    if previous == ZERO:
        trend = f"Income this month is {income}. Keep recording payments to compare against previous months."
    else:
        percent = (change * 100).quantize(Decimal("1"))
        trend = f"Income this month is {income}, {percent:+}% compared with last month."

    if spent == ZERO:
        net = "No expenses recorded this month. Record running costs for a more accurate picture."
    else:
        net = f"Net income after expenses is {income - spent}. Aim to keep a margin of at least 35%."

    if change < ZERO:
        suggestion = "Income dropped compared with last month. Check attendance and remind late payers."
    else:
        suggestion = "Keep sending payment reminders to keep collections regular."

    return [
        Insight(title="Monthly income", description=trend, tone=_tone_for_change(change)),
        Insight(title="Break-even", description=net, tone="success" if income > spent else "warning"),
        Insight(title="Suggestion", description=suggestion, tone="warning" if change < ZERO else "info"),
    ]


# ---- guest -------------------------------------------------------------------

@dataclass(frozen=True)
class GuestPaymentRow:
    paid_at: date
    amount: Decimal
    method: PaymentMethod


@dataclass(frozen=True)
class GuestSummary:
    total: Decimal
    count: int
    payments: List[GuestPaymentRow] = field(default_factory=list)


def guest_summary(payments: Iterable[Payment], month: Union[str, int, None] = None) -> GuestSummary:
    """Figures a guest may see: amounts and dates only, no names or ids."""
    selected = sorted(
        filter_by_month(payments, month, lambda p: p.paid_at),
        key=lambda p: p.paid_at,
        reverse=True,
    )
    rows = [GuestPaymentRow(paid_at=p.paid_at, amount=p.amount, method=p.method) for p in selected]
    return GuestSummary(total=_total(r.amount for r in rows), count=len(rows), payments=rows)
