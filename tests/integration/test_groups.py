from decimal import Decimal
from uuid import uuid4

import pytest

from tutorledger.ledger.application.dto import GroupCreate, StudentCreate
from tutorledger.shared.exceptions import NotFoundError


async def test_deleting_group_detaches_its_students(ledger, uow, owner_a):
    group = await ledger.create_group(GroupCreate(name="Physics", due_total=Decimal("1000")), owner_a)
    s1 = await ledger.create_student(StudentCreate(full_name="S1", group_id=group.id), owner_a)
    s2 = await ledger.create_student(StudentCreate(full_name="S2", group_id=group.id), owner_a)

    await ledger.delete_group(group.id, owner_a)

    students = {s.id: s for s in await uow.students.get_all(owner_a)}
    assert students[s1.id].group_id is None
    assert students[s2.id].group_id is None
    assert group.id not in {g.id for g in await uow.groups.get_all(owner_a)}


async def test_deleting_group_leaves_other_owners_students(ledger, uow, owner_a, owner_b):
    group = await ledger.create_group(GroupCreate(name="Physics"), owner_a)
    # owner B's row points at the same id; it is not B's group to lose
    theirs = await ledger.create_student(StudentCreate(full_name="B1", group_id=group.id), owner_b)

    await ledger.delete_group(group.id, owner_a)

    assert (await uow.students.get(theirs.id, owner_b)).group_id == group.id


async def test_assign_replaces_members(ledger, uow, owner_a):
    group = await ledger.create_group(GroupCreate(name="Maths"), owner_a)
    old = await ledger.create_student(StudentCreate(full_name="Old", group_id=group.id), owner_a)
    kept = await ledger.create_student(StudentCreate(full_name="Kept", group_id=group.id), owner_a)
    new = await ledger.create_student(StudentCreate(full_name="New"), owner_a)

    await ledger.assign_students_to_group(group.id, [kept.id, new.id], owner_a)

    assert (await uow.students.get(old.id, owner_a)).group_id is None
    assert (await uow.students.get(kept.id, owner_a)).group_id == group.id
    assert (await uow.students.get(new.id, owner_a)).group_id == group.id


async def test_assign_empty_list_clears_group(ledger, uow, owner_a):
    group = await ledger.create_group(GroupCreate(name="Maths"), owner_a)
    member = await ledger.create_student(StudentCreate(full_name="Member", group_id=group.id), owner_a)

    await ledger.assign_students_to_group(group.id, [], owner_a)

    assert (await uow.students.get(member.id, owner_a)).group_id is None


async def test_assign_ignores_other_owners_students(ledger, uow, owner_a, owner_b):
    group = await ledger.create_group(GroupCreate(name="Maths"), owner_a)
    foreign = await ledger.create_student(StudentCreate(full_name="Foreign"), owner_b)

    await ledger.assign_students_to_group(group.id, [foreign.id], owner_a)

    assert (await uow.students.get(foreign.id, owner_b)).group_id is None


async def test_assign_to_unknown_group_is_not_found(ledger, owner_a):
    with pytest.raises(NotFoundError):
        await ledger.assign_students_to_group(uuid4(), [], owner_a)
