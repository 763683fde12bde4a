"""
Ledger Repository Implementations

Students, Groups, Payments and Expenses. Every read and write is scoped by
owner id; required fields are validated before anything reaches the store.
"""
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from tutorledger.ledger.application.dto import (
    ExpenseCreate,
    ExpenseUpdate,
    GroupCreate,
    GroupUpdate,
    PaymentCreate,
    PaymentUpdate,
    StudentCreate,
    StudentUpdate,
)
from tutorledger.ledger.domain.entities import (
    ZERO,
    Expense,
    Group,
    Payment,
    PaymentMethod,
    Student,
)
from tutorledger.ledger.infrastructure.models import (
    ExpenseModel,
    GroupModel,
    PaymentModel,
    StudentModel,
)
from tutorledger.shared.database.base_model import as_utc
from tutorledger.shared.database.owned_repository import OwnedRepository
from tutorledger.shared.exceptions import ValidationError
from tutorledger.shared.logging import get_logger
from tutorledger.shared.utils.strings import clean, sort_by_name

logger = get_logger(__name__)

CENT = Decimal("0.01")
# Numeric(12, 2): ten integer digits
MAX_AMOUNT = Decimal("1e10")


# ---- field rules -------------------------------------------------------------

def _required_text(value: Optional[str], field: str) -> str:
    text = clean(value)
    if text is None:
        raise ValidationError(f"{field} is required", details={"field": field})
    return text


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """Coerce numeric input (or a store value) to Decimal; None counts as zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", details={"field": field})
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    return amount


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Decimal that fits the money columns (``Numeric(12, 2)``), quantized to cents.

    Sub-cent input is rejected rather than rounded, so the value a write
    returns is the value the store keeps.
    """
    amount = to_decimal(value, field)
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(
            f"{field} is too large",
            details={"field": field, "max": str(MAX_AMOUNT - CENT)},
        )
    if amount != amount.quantize(CENT):
        raise ValidationError(f"{field} must have at most two decimal places", details={"field": field})
    return amount.quantize(CENT)


def _positive_amount(value: Any, field: str = "amount") -> Decimal:
    amount = to_money(value, field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be greater than zero", details={"field": field})
    return amount


def _non_negative_amount(value: Any, field: str) -> Decimal:
    amount = to_money(value, field)
    if amount < ZERO:
        raise ValidationError(f"{field} must not be negative", details={"field": field})
    return amount


def _payment_method(value: Any) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(
            "method must be one of cash, card, transfer",
            details={"field": "method", "value": str(value)},
        )


# ---- students ----------------------------------------------------------------

class StudentRepository(OwnedRepository[Student, StudentModel]):
    model_class = StudentModel
    entity_name = "Student"

    def _to_entity(self, model: StudentModel) -> Student:
        return Student(
            id=model.id,
            full_name=model.full_name,
            owner_id=model.owner_id,
            created_at=as_utc(model.created_at),
            phone=model.phone or None,
            group_id=model.group_id,
            active=bool(model.active),
        )

    async def search(self, query: str, owner_id: UUID, limit: Optional[int] = None) -> List[Student]:
        rows = await self._search(
            StudentModel.full_name,
            query,
            owner_id,
            order_by=[StudentModel.full_name, StudentModel.id],
            limit=limit or self.page_size,
        )
        return sort_by_name(rows, lambda s: s.full_name)

    async def get_all(self, owner_id: UUID) -> List[Student]:
        return await self.search("", owner_id)

    async def list_all(self, owner_id: UUID) -> List[Student]:
        """Every student of the owner, without the page cap; for aggregates."""
        stmt = self._owned(owner_id).order_by(StudentModel.full_name, StudentModel.id)
        return sort_by_name(await self._list(stmt), lambda s: s.full_name)

    async def create(self, data: StudentCreate, owner_id: UUID) -> Student:
        return await self._insert(
            owner_id,
            full_name=_required_text(data.full_name, "full_name"),
            phone=clean(data.phone),
            group_id=data.group_id,
            active=True,
        )

    async def update(self, student_id: UUID, changes: StudentUpdate, owner_id: UUID) -> Student:
        supplied = changes.model_dump(exclude_unset=True)
        values: Dict[str, Any] = {}
        if "full_name" in supplied:
            values["full_name"] = _required_text(supplied["full_name"], "full_name")
        if "phone" in supplied:
            values["phone"] = clean(supplied["phone"])
        if "group_id" in supplied:
            values["group_id"] = supplied["group_id"]
        if "active" in supplied:
            if supplied["active"] is None:
                raise ValidationError("active must be true or false", details={"field": "active"})
            values["active"] = supplied["active"]
        return await self._apply_changes(student_id, owner_id, values)

    async def create_if_not_exists(self, name: str, owner_id: UUID, phone: Optional[str] = None) -> Student:
        """
        Return the owner's student with exactly this (trimmed) name, creating it if absent.

        Not deduplicated at the store: two concurrent callers may both insert.
        """
        full_name = _required_text(name, "full_name")
        stmt = (
            self._owned(owner_id)
            .where(StudentModel.full_name == full_name)
            .order_by(StudentModel.created_at, StudentModel.id)
            .limit(1)
        )
        existing = await self._list(stmt)
        if existing:
            return existing[0]
        return await self._insert(owner_id, full_name=full_name, phone=clean(phone), group_id=None, active=True)

    async def detach_group(self, group_id: UUID, owner_id: UUID) -> int:
        """Clear ``group_id`` on every student of this owner pointing at the group."""
        stmt = (
            update(StudentModel)
            .where(StudentModel.owner_id == owner_id, StudentModel.group_id == group_id)
            .values(group_id=None)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._map_error(e, "detach", owner_id=owner_id, group_id=group_id)
        return result.rowcount

    async def assign_to_group(self, group_id: UUID, student_ids: Sequence[UUID], owner_id: UUID) -> None:
        """
        Make exactly ``student_ids`` the members of the group.

        Clears every current member first, then sets the given ones; a student
        dropped from the list is guaranteed detached.
        """
        detached = await self.detach_group(group_id, owner_id)
        ids = list(dict.fromkeys(student_ids))
        assigned = 0
        if ids:
            stmt = (
                update(StudentModel)
                .where(StudentModel.owner_id == owner_id, StudentModel.id.in_(ids))
                .values(group_id=group_id)
            )
            try:
                result = await self.session.execute(stmt)
            except SQLAlchemyError as e:
                raise self._map_error(e, "assign", owner_id=owner_id, group_id=group_id)
            assigned = result.rowcount
        logger.info(
            "Group members replaced",
            owner_id=str(owner_id),
            group_id=str(group_id),
            detached=detached,
            assigned=assigned,
        )


# ---- groups ------------------------------------------------------------------

class GroupRepository(OwnedRepository[Group, GroupModel]):
    model_class = GroupModel
    entity_name = "Group"

    def _to_entity(self, model: GroupModel) -> Group:
        return Group(
            id=model.id,
            name=model.name,
            owner_id=model.owner_id,
            created_at=as_utc(model.created_at),
            description=model.description or None,
            due_total=to_decimal(model.due_total, "due_total"),
        )

    async def search(self, query: str, owner_id: UUID, limit: Optional[int] = None) -> List[Group]:
        rows = await self._search(
            GroupModel.name,
            query,
            owner_id,
            order_by=[GroupModel.name, GroupModel.id],
            limit=limit or self.page_size,
        )
        return sort_by_name(rows, lambda g: g.name)

    async def get_all(self, owner_id: UUID) -> List[Group]:
        return await self.search("", owner_id)

    async def list_all(self, owner_id: UUID) -> List[Group]:
        stmt = self._owned(owner_id).order_by(GroupModel.name, GroupModel.id)
        return sort_by_name(await self._list(stmt), lambda g: g.name)

    async def create(self, data: GroupCreate, owner_id: UUID) -> Group:
        return await self._insert(
            owner_id,
            name=_required_text(data.name, "name"),
            description=clean(data.description),
            due_total=_non_negative_amount(data.due_total, "due_total"),
        )

    async def update(self, group_id: UUID, changes: GroupUpdate, owner_id: UUID) -> Group:
        supplied = changes.model_dump(exclude_unset=True)
        values: Dict[str, Any] = {}
        if "name" in supplied:
            values["name"] = _required_text(supplied["name"], "name")
        if "description" in supplied:
            values["description"] = clean(supplied["description"])
        if "due_total" in supplied:
            values["due_total"] = _non_negative_amount(supplied["due_total"], "due_total")
        return await self._apply_changes(group_id, owner_id, values)

    async def due_total(self, group_id: UUID, owner_id: UUID) -> Optional[Decimal]:
        """The group's configured due amount, or None when the owner has no such group."""
        stmt = select(GroupModel.due_total).where(
            GroupModel.owner_id == owner_id,
            GroupModel.id == group_id,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._map_error(e, "due_total", owner_id=owner_id, group_id=group_id)
        row = result.first()
        return to_decimal(row[0], "due_total") if row is not None else None


# ---- payments ----------------------------------------------------------------

class PaymentRepository(OwnedRepository[Payment, PaymentModel]):
    model_class = PaymentModel
    entity_name = "Payment"

    def _to_entity(self, model: PaymentModel) -> Payment:
        return Payment(
            id=model.id,
            amount=to_decimal(model.amount),
            method=PaymentMethod(model.method),
            paid_at=model.paid_at,
            owner_id=model.owner_id,
            student_id=model.student_id,
            group_id=model.group_id,
            note=model.note or None,
        )

    async def search(self, query: str, owner_id: UUID, limit: Optional[int] = None) -> List[Payment]:
        """Match on the note; newest first."""
        return await self._search(
            PaymentModel.note,
            query,
            owner_id,
            order_by=[PaymentModel.paid_at.desc(), PaymentModel.id],
            limit=limit or self.page_size,
        )

    async def get_all(self, owner_id: UUID) -> List[Payment]:
        return await self.search("", owner_id)

    async def list_for_group(self, group_id: UUID, owner_id: UUID) -> List[Payment]:
        stmt = (
            self._owned(owner_id)
            .where(PaymentModel.group_id == group_id)
            .order_by(PaymentModel.paid_at.desc(), PaymentModel.id)
        )
        return await self._list(stmt)

    async def create(self, data: PaymentCreate, owner_id: UUID) -> Payment:
        return await self._insert(
            owner_id,
            amount=_positive_amount(data.amount),
            method=_payment_method(data.method).value,
            paid_at=data.paid_at,
            student_id=data.student_id,
            group_id=data.group_id,
            note=clean(data.note),
        )

    async def update(self, payment_id: UUID, changes: PaymentUpdate, owner_id: UUID) -> Payment:
        supplied = changes.model_dump(exclude_unset=True)
        values: Dict[str, Any] = {}
        if "amount" in supplied:
            values["amount"] = _positive_amount(supplied["amount"])
        if "method" in supplied:
            values["method"] = _payment_method(supplied["method"]).value
        if "paid_at" in supplied:
            if supplied["paid_at"] is None:
                raise ValidationError("paid_at is required", details={"field": "paid_at"})
            values["paid_at"] = supplied["paid_at"]
        for key in ("student_id", "group_id"):
            if key in supplied:
                values[key] = supplied[key]
        if "note" in supplied:
            values["note"] = clean(supplied["note"])
        return await self._apply_changes(payment_id, owner_id, values)

    async def paid_total(self, group_id: UUID, owner_id: UUID) -> Decimal:
        """Sum of this owner's payments carrying ``group_id`` directly."""
        stmt = select(func.coalesce(func.sum(PaymentModel.amount), 0)).where(
            PaymentModel.owner_id == owner_id,
            PaymentModel.group_id == group_id,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._map_error(e, "paid_total", owner_id=owner_id, group_id=group_id)
        return to_decimal(result.scalar_one())


# ---- expenses ----------------------------------------------------------------

class ExpenseRepository(OwnedRepository[Expense, ExpenseModel]):
    model_class = ExpenseModel
    entity_name = "Expense"

    def _to_entity(self, model: ExpenseModel) -> Expense:
        return Expense(
            id=model.id,
            description=model.description,
            amount=to_decimal(model.amount),
            spent_at=model.spent_at,
            owner_id=model.owner_id,
            created_at=as_utc(model.created_at),
        )

    async def search(self, query: str, owner_id: UUID, limit: Optional[int] = None) -> List[Expense]:
        return await self._search(
            ExpenseModel.description,
            query,
            owner_id,
            order_by=[ExpenseModel.spent_at.desc(), ExpenseModel.created_at.desc()],
            limit=limit or self.page_size,
        )

    async def get_all(self, owner_id: UUID) -> List[Expense]:
        return await self.search("", owner_id)

    async def create(self, data: ExpenseCreate, owner_id: UUID) -> Expense:
        return await self._insert(
            owner_id,
            description=_required_text(data.description, "description"),
            amount=_positive_amount(data.amount),
            spent_at=data.spent_at,
        )

    async def update(self, expense_id: UUID, changes: ExpenseUpdate, owner_id: UUID) -> Expense:
        supplied = changes.model_dump(exclude_unset=True)
        values: Dict[str, Any] = {}
        if "description" in supplied:
            values["description"] = _required_text(supplied["description"], "description")
        if "amount" in supplied:
            values["amount"] = _positive_amount(supplied["amount"])
        if "spent_at" in supplied:
            if supplied["spent_at"] is None:
                raise ValidationError("spent_at is required", details={"field": "spent_at"})
            values["spent_at"] = supplied["spent_at"]
        return await self._apply_changes(expense_id, owner_id, values)
