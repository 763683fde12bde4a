"""
Ledger Unit of Work
Gives every ledger repository the same session, so multi-entity writes
(group delete, member reassignment, guest code rotation) commit together.
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tutorledger.guest.repository import GuestCodeRepository
from tutorledger.ledger.infrastructure.repositories import (
    ExpenseRepository,
    GroupRepository,
    PaymentRepository,
    StudentRepository,
)
from tutorledger.shared.database.unit_of_work import SQLAlchemyUnitOfWork


class LedgerUnitOfWork(SQLAlchemyUnitOfWork):
    """
    Unit of Work for the ledger.

    ``page_size`` caps student and group searches; payments and expenses
    always list unbounded.

    Usage:
        async with uow:
            await uow.students.assign_to_group(group_id, ids, owner_id)
            await uow.commit()
    """

    def __init__(self, session: AsyncSession, page_size: Optional[int] = None) -> None:
        super().__init__(session)
        self.page_size = page_size
        self._students: Optional[StudentRepository] = None
        self._groups: Optional[GroupRepository] = None
        self._payments: Optional[PaymentRepository] = None
        self._expenses: Optional[ExpenseRepository] = None
        self._guest_codes: Optional[GuestCodeRepository] = None

    @property
    def students(self) -> StudentRepository:
        if self._students is None:
            self._students = StudentRepository(self.session, page_size=self.page_size)
        return self._students

    @property
    def groups(self) -> GroupRepository:
        if self._groups is None:
            self._groups = GroupRepository(self.session, page_size=self.page_size)
        return self._groups

    @property
    def payments(self) -> PaymentRepository:
        if self._payments is None:
            self._payments = PaymentRepository(self.session)
        return self._payments

    @property
    def expenses(self) -> ExpenseRepository:
        if self._expenses is None:
            self._expenses = ExpenseRepository(self.session)
        return self._expenses

    @property
    def guest_codes(self) -> GuestCodeRepository:
        if self._guest_codes is None:
            self._guest_codes = GuestCodeRepository(self.session)
        return self._guest_codes
