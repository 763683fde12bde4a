"""
Debt Settlement Flow
Writes a cash payment against a group's remaining debt and returns the fresh balance.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from tutorledger.ledger.application.balance import GroupBalanceCalculator
from tutorledger.ledger.application.dto import PaymentCreate
from tutorledger.ledger.domain.entities import (
    ZERO,
    PaymentMethod,
    SettlementMode,
    SettlementResult,
)
from tutorledger.ledger.infrastructure.repositories import to_money
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork
from tutorledger.shared.exceptions import ValidationError
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

SETTLEMENT_NOTES = {
    SettlementMode.FULL: "Full debt settlement",
    SettlementMode.PARTIAL: "Partial debt settlement",
}


class DebtSettlementService:
    """
    Settle all or part of a group's remaining balance.

    The bound check runs against the balance read at the start of the call.
    A payment written concurrently between that read and the insert is not
    detected, so the group can end up overpaid; ``remaining`` still clamps at 0.
    """

    def __init__(
        self,
        uow: LedgerUnitOfWork,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.uow = uow
        self.balances = GroupBalanceCalculator(uow)
        self.today = today

    async def settle_debt(
        self,
        group_id: UUID,
        owner_id: UUID,
        mode: SettlementMode = SettlementMode.FULL,
        amount: Optional[Decimal] = None,
        student_id: Optional[UUID] = None,
    ) -> SettlementResult:
        """
        Args:
            group_id: Group whose debt is settled
            owner_id: Resolved owner
            mode: ``full`` pays the whole remaining balance; ``partial`` pays ``amount``
            amount: Required for partial settlements, ignored for full ones
            student_id: Optional payer recorded on the payment

        Raises:
            NotFoundError: the owner has no such group
            ValidationError: amount is not within (0, remaining]; nothing is written
        """
        mode = SettlementMode(mode)
        await self.uow.groups.get(group_id, owner_id)
        before = await self.balances.get_group_balance(group_id, owner_id)

        if mode is SettlementMode.FULL:
            value = before.remaining
        elif amount is None:
            raise ValidationError(
                "amount is required for a partial settlement",
                details={"field": "amount"},
            )
        else:
            value = to_money(amount)

        if value <= ZERO:
            raise ValidationError(
                "Settlement amount must be greater than zero",
                code="invalid_settlement_amount",
                details={"amount": str(value), "remaining": str(before.remaining)},
            )
        if value > before.remaining:
            raise ValidationError(
                "Settlement amount exceeds the remaining balance",
                code="invalid_settlement_amount",
                details={"amount": str(value), "remaining": str(before.remaining)},
            )

        async with self.uow:
            payment = await self.uow.payments.create(
                PaymentCreate(
                    amount=value,
                    method=PaymentMethod.CASH,
                    paid_at=self.today(),
                    student_id=student_id,
                    group_id=group_id,
                    note=SETTLEMENT_NOTES[mode],
                ),
                owner_id,
            )
            await self.uow.commit()

        after = await self.balances.get_group_balance(group_id, owner_id)
        logger.info(
            "Debt settled",
            owner_id=str(owner_id),
            group_id=str(group_id),
            mode=mode.value,
            amount=str(value),
            remaining=str(after.remaining),
        )
        return SettlementResult(payment=payment, balance=after)
