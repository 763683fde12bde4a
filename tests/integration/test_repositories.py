from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

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
from tutorledger.ledger.domain.entities import PaymentMethod
from tutorledger.shared.exceptions import NotFoundError, ValidationError


async def test_student_search_is_case_insensitive_and_ordered(ledger, uow, owner_a):
    for name in ("zaid", "Ahmed Ali", "ahmad", "Bilal"):
        await ledger.create_student(StudentCreate(full_name=name), owner_a)

    everyone = await uow.students.get_all(owner_a)
    assert [s.full_name for s in everyone] == ["ahmad", "Ahmed Ali", "Bilal", "zaid"]

    hits = await uow.students.search("AHM", owner_a)
    assert {s.full_name for s in hits} == {"ahmad", "Ahmed Ali"}


async def test_search_treats_wildcards_literally(ledger, uow, owner_a):
    await ledger.create_student(StudentCreate(full_name="100% Sara"), owner_a)
    await ledger.create_student(StudentCreate(full_name="Sara"), owner_a)
    hits = await uow.students.search("%", owner_a)
    assert [s.full_name for s in hits] == ["100% Sara"]


async def test_student_search_is_capped_at_page_size(ledger, uow, owner_a):
    for i in range(55):
        await ledger.create_student(StudentCreate(full_name=f"Student {i:02d}"), owner_a)
    assert len(await uow.students.get_all(owner_a)) == 50
    assert len(await uow.students.list_all(owner_a)) == 55


async def test_payments_list_unbounded_newest_first(ledger, uow, owner_a):
    for day in range(60):
        await ledger.create_payment(
            PaymentCreate(amount=Decimal("10"), paid_at=date(2024, 1, 1) + timedelta(days=day)),
            owner_a,
        )
    payments = await uow.payments.get_all(owner_a)
    assert len(payments) == 60
    assert payments[0].paid_at >= payments[-1].paid_at


async def test_student_create_validates_and_normalizes(ledger, owner_a):
    with pytest.raises(ValidationError):
        await ledger.create_student(StudentCreate(full_name="   "), owner_a)

    student = await ledger.create_student(StudentCreate(full_name="  Sara  ", phone="  "), owner_a)
    assert student.full_name == "Sara"
    assert student.phone is None
    assert student.active is True
    assert student.owner_id == owner_a


async def test_update_applies_only_supplied_fields(ledger, owner_a):
    student = await ledger.create_student(StudentCreate(full_name="Sara", phone="0100"), owner_a)
    updated = await ledger.update_student(student.id, StudentUpdate(active=False), owner_a)
    assert updated.active is False
    assert updated.full_name == "Sara"
    assert updated.phone == "0100"


async def test_empty_update_is_a_read_back(ledger, owner_a):
    group = await ledger.create_group(GroupCreate(name="Physics", due_total=Decimal("1000")), owner_a)
    assert await ledger.update_group(group.id, GroupUpdate(), owner_a) == group

    payment = await ledger.create_payment(PaymentCreate(amount=Decimal("5"), note="x"), owner_a)
    assert await ledger.update_payment(payment.id, PaymentUpdate(), owner_a) == payment


async def test_update_missing_row_is_not_found(ledger, owner_a):
    with pytest.raises(NotFoundError):
        await ledger.update_student(uuid4(), StudentUpdate(), owner_a)


async def test_group_due_total_must_not_be_negative(ledger, owner_a):
    with pytest.raises(ValidationError):
        await ledger.create_group(GroupCreate(name="Physics", due_total=Decimal("-1")), owner_a)
    group = await ledger.create_group(GroupCreate(name="Physics"), owner_a)
    assert group.due_total == Decimal("0")
    with pytest.raises(ValidationError):
        await ledger.update_group(group.id, GroupUpdate(name=" "), owner_a)


async def test_payment_amount_must_be_positive(ledger, uow, owner_a):
    for amount in ("0", "-5"):
        with pytest.raises(ValidationError):
            await ledger.create_payment(PaymentCreate(amount=Decimal(amount)), owner_a)
    assert await uow.payments.get_all(owner_a) == []


@pytest.mark.parametrize("amount", ["0.001", "10.005", "10000000000", "99999999999.99"])
async def test_amounts_must_fit_the_money_columns(ledger, uow, owner_a, amount):
    with pytest.raises(ValidationError):
        await ledger.create_payment(PaymentCreate(amount=Decimal(amount)), owner_a)
    with pytest.raises(ValidationError):
        await ledger.create_expense(ExpenseCreate(description="Rent", amount=Decimal(amount)), owner_a)
    with pytest.raises(ValidationError):
        await ledger.create_group(GroupCreate(name="Physics", due_total=Decimal(amount)), owner_a)
    assert await uow.payments.get_all(owner_a) == []
    assert await uow.expenses.get_all(owner_a) == []
    assert await uow.groups.get_all(owner_a) == []


async def test_amount_updates_must_fit_the_money_columns(ledger, uow, owner_a):
    payment = await ledger.create_payment(PaymentCreate(amount=Decimal("50")), owner_a)
    expense = await ledger.create_expense(ExpenseCreate(description="Rent", amount=Decimal("20")), owner_a)
    group = await ledger.create_group(GroupCreate(name="Physics", due_total=Decimal("100")), owner_a)

    with pytest.raises(ValidationError):
        await ledger.update_payment(payment.id, PaymentUpdate(amount=Decimal("0.004")), owner_a)
    with pytest.raises(ValidationError):
        await ledger.update_expense(expense.id, ExpenseUpdate(amount=Decimal("1e12")), owner_a)
    with pytest.raises(ValidationError):
        await ledger.update_group(group.id, GroupUpdate(due_total=Decimal("12.345")), owner_a)

    assert (await uow.payments.get(payment.id, owner_a)).amount == Decimal("50")
    assert (await uow.expenses.get(expense.id, owner_a)).amount == Decimal("20")
    assert (await uow.groups.get(group.id, owner_a)).due_total == Decimal("100")


async def test_created_amount_matches_stored_amount(ledger, uow, owner_a):
    payment = await ledger.create_payment(PaymentCreate(amount=Decimal("12.5")), owner_a)
    stored = await uow.payments.get(payment.id, owner_a)
    assert payment.amount == stored.amount == Decimal("12.50")
    assert str(payment.amount) == "12.50"


async def test_payment_update_and_delete(ledger, uow, owner_a):
    payment = await ledger.create_payment(PaymentCreate(amount=Decimal("50"), note="January fee"), owner_a)
    assert payment.method == PaymentMethod.CASH

    updated = await ledger.update_payment(
        payment.id,
        PaymentUpdate(amount=Decimal("75"), method=PaymentMethod.TRANSFER, note=" "),
        owner_a,
    )
    assert updated.amount == Decimal("75")
    assert updated.method == PaymentMethod.TRANSFER
    assert updated.note is None

    await ledger.delete_payment(payment.id, owner_a)
    assert await uow.payments.find(payment.id, owner_a) is None
    # deleting again is not an error
    await ledger.delete_payment(payment.id, owner_a)


async def test_payment_search_matches_note(ledger, uow, owner_a):
    await ledger.create_payment(PaymentCreate(amount=Decimal("1"), note="January fee"), owner_a)
    await ledger.create_payment(PaymentCreate(amount=Decimal("2"), note="Books"), owner_a)
    hits = await uow.payments.search("january", owner_a)
    assert [p.amount for p in hits] == [Decimal("1")]


async def test_expenses_validate_and_order_by_date(ledger, uow, owner_a):
    with pytest.raises(ValidationError):
        await ledger.create_expense(ExpenseCreate(description="", amount=Decimal("10")), owner_a)
    with pytest.raises(ValidationError):
        await ledger.create_expense(ExpenseCreate(description="Rent", amount=Decimal("0")), owner_a)

    await ledger.create_expense(ExpenseCreate(description="Rent", amount=Decimal("300"), spent_at=date(2024, 1, 1)), owner_a)
    latest = await ledger.create_expense(
        ExpenseCreate(description="Markers", amount=Decimal("20"), spent_at=date(2024, 2, 1)),
        owner_a,
    )
    expenses = await uow.expenses.get_all(owner_a)
    assert [e.description for e in expenses] == ["Markers", "Rent"]

    changed = await ledger.update_expense(latest.id, ExpenseUpdate(amount=Decimal("25")), owner_a)
    assert changed.amount == Decimal("25")
    assert changed.description == "Markers"


async def test_create_if_not_exists_returns_same_student(ledger, uow, owner_a):
    first = await ledger.ensure_student("Ahmed Ali", owner_a)
    second = await ledger.ensure_student("  Ahmed Ali ", owner_a)
    assert first.id == second.id
    assert len(await uow.students.search("Ahmed Ali", owner_a)) == 1


async def test_create_if_not_exists_is_owner_scoped(ledger, owner_a, owner_b):
    mine = await ledger.ensure_student("Ahmed Ali", owner_a)
    theirs = await ledger.ensure_student("Ahmed Ali", owner_b)
    assert mine.id != theirs.id
