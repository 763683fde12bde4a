"""
Group Balance Calculator

Recomputes from the store on every call; nothing is cached.
"""
from __future__ import annotations

from typing import Dict, Iterable
from uuid import UUID

from tutorledger.ledger.domain.entities import ZERO, Group, GroupBalance
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork


class GroupBalanceCalculator:
    """
    ``paid_total`` counts only payments that carry the group id directly; a
    payment tied to a member student but not to the group does not count.
    """

    def __init__(self, uow: LedgerUnitOfWork) -> None:
        self.uow = uow

    async def get_group_balance(self, group_id: UUID, owner_id: UUID) -> GroupBalance:
        # A missing group reads as due 0 rather than failing.
        due_total = await self.uow.groups.due_total(group_id, owner_id)
        paid_total = await self.uow.payments.paid_total(group_id, owner_id)
        return GroupBalance.compute(due_total if due_total is not None else ZERO, paid_total)

    async def balances_for(self, groups: Iterable[Group], owner_id: UUID) -> Dict[UUID, GroupBalance]:
        balances: Dict[UUID, GroupBalance] = {}
        for group in groups:
            paid_total = await self.uow.payments.paid_total(group.id, owner_id)
            balances[group.id] = GroupBalance.compute(group.due_total, paid_total)
        return balances
