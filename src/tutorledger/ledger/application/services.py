"""
Ledger Service
Orchestrates ledger writes; each public method is one committed unit of work.
"""
from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

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
from tutorledger.ledger.domain.entities import Expense, Group, Payment, Student
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)


class LedgerService:
    """
    Write side of the ledger.

    Reads go straight to the repositories on ``uow``; anything that changes
    state passes through here so it is committed, or rolled back, as a whole.
    """

    def __init__(self, uow: LedgerUnitOfWork) -> None:
        self.uow = uow

    # ---- students ------------------------------------------------------------
    async def create_student(self, data: StudentCreate, owner_id: UUID) -> Student:
        async with self.uow:
            student = await self.uow.students.create(data, owner_id)
            await self.uow.commit()
        return student

    async def ensure_student(self, name: str, owner_id: UUID, phone: Optional[str] = None) -> Student:
        """Register a student inline (e.g. from payment entry) unless one with that name exists."""
        async with self.uow:
            student = await self.uow.students.create_if_not_exists(name, owner_id, phone=phone)
            await self.uow.commit()
        return student

    async def update_student(self, student_id: UUID, changes: StudentUpdate, owner_id: UUID) -> Student:
        async with self.uow:
            student = await self.uow.students.update(student_id, changes, owner_id)
            await self.uow.commit()
        return student

    async def delete_student(self, student_id: UUID, owner_id: UUID) -> None:
        async with self.uow:
            await self.uow.students.delete(student_id, owner_id)
            await self.uow.commit()

    # ---- groups --------------------------------------------------------------
    async def create_group(self, data: GroupCreate, owner_id: UUID) -> Group:
        async with self.uow:
            group = await self.uow.groups.create(data, owner_id)
            await self.uow.commit()
        return group

    async def update_group(self, group_id: UUID, changes: GroupUpdate, owner_id: UUID) -> Group:
        async with self.uow:
            group = await self.uow.groups.update(group_id, changes, owner_id)
            await self.uow.commit()
        return group

    async def delete_group(self, group_id: UUID, owner_id: UUID) -> None:
        """Detach every member student, then delete the group, in one transaction."""
        async with self.uow:
            detached = await self.uow.students.detach_group(group_id, owner_id)
            await self.uow.groups.delete(group_id, owner_id)
            await self.uow.commit()
        logger.info(
            "Group removed",
            owner_id=str(owner_id),
            group_id=str(group_id),
            detached_students=detached,
        )

    async def assign_students_to_group(
        self,
        group_id: UUID,
        student_ids: Sequence[UUID],
        owner_id: UUID,
    ) -> None:
        async with self.uow:
            await self.uow.groups.get(group_id, owner_id)
            await self.uow.students.assign_to_group(group_id, student_ids, owner_id)
            await self.uow.commit()

    # ---- payments ------------------------------------------------------------
    async def create_payment(self, data: PaymentCreate, owner_id: UUID) -> Payment:
        async with self.uow:
            payment = await self.uow.payments.create(data, owner_id)
            await self.uow.commit()
        return payment

    async def update_payment(self, payment_id: UUID, changes: PaymentUpdate, owner_id: UUID) -> Payment:
        async with self.uow:
            payment = await self.uow.payments.update(payment_id, changes, owner_id)
            await self.uow.commit()
        return payment

    async def delete_payment(self, payment_id: UUID, owner_id: UUID) -> None:
        async with self.uow:
            await self.uow.payments.delete(payment_id, owner_id)
            await self.uow.commit()

    # ---- expenses ------------------------------------------------------------
    async def create_expense(self, data: ExpenseCreate, owner_id: UUID) -> Expense:
        async with self.uow:
            expense = await self.uow.expenses.create(data, owner_id)
            await self.uow.commit()
        return expense

    async def update_expense(self, expense_id: UUID, changes: ExpenseUpdate, owner_id: UUID) -> Expense:
        async with self.uow:
            expense = await self.uow.expenses.update(expense_id, changes, owner_id)
            await self.uow.commit()
        return expense

    async def delete_expense(self, expense_id: UUID, owner_id: UUID) -> None:
        async with self.uow:
            await self.uow.expenses.delete(expense_id, owner_id)
            await self.uow.commit()
