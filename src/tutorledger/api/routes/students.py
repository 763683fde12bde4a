"""
Student Routes
"""
from __future__ import annotations

from typing import Annotated, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from tutorledger.api.dependencies import get_current_owner, get_ledger_service, get_uow
from tutorledger.api.schemas import EnsureStudentRequest, StudentOut
from tutorledger.ledger.application.dto import StudentCreate, StudentUpdate
from tutorledger.ledger.application.services import LedgerService
from tutorledger.ledger.infrastructure.unit_of_work import LedgerUnitOfWork

router = APIRouter(prefix="/api/v1/students", tags=["Students"])

Owner = Annotated[UUID, Depends(get_current_owner)]
Uow = Annotated[LedgerUnitOfWork, Depends(get_uow)]
Service = Annotated[LedgerService, Depends(get_ledger_service)]


@router.get("", response_model=List[StudentOut], summary="Search students by name")
async def search_students(owner_id: Owner, uow: Uow, q: str = Query("", max_length=200)):
    return await uow.students.search(q, owner_id)


@router.post("", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
async def create_student(body: StudentCreate, owner_id: Owner, service: Service):
    return await service.create_student(body, owner_id)


@router.post(
    "/ensure",
    response_model=StudentOut,
    summary="Return the student with this name, creating it if absent",
)
async def ensure_student(body: EnsureStudentRequest, owner_id: Owner, service: Service):
    return await service.ensure_student(body.full_name, owner_id, phone=body.phone)


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(student_id: UUID, owner_id: Owner, uow: Uow):
    return await uow.students.get(student_id, owner_id)


@router.patch("/{student_id}", response_model=StudentOut)
async def update_student(student_id: UUID, body: StudentUpdate, owner_id: Owner, service: Service):
    return await service.update_student(student_id, body, owner_id)


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(student_id: UUID, owner_id: Owner, service: Service) -> None:
    await service.delete_student(student_id, owner_id)
