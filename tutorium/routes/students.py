"""
Tutorium Backend — Student Management Routes
==============================================

ADMIN and TEACHER only. A teacher works with the students of their own
groups; admins with every student. New students receive a generated
password, returned once as `default_password`.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.group import (
    StudentCreateRequest,
    StudentCreateResponse,
    StudentDetailResponse,
    StudentListItem,
    StudentMessageResponse,
    StudentUpdateRequest,
)
from tutorium.services.student_service import student_service

router = APIRouter(prefix="/api/students", tags=["Students"])

_scoped = {
    403: {"description": "Student is outside the teacher's groups", "model": ErrorResponse},
    404: {"description": "Student not found", "model": ErrorResponse},
}


@router.get("", response_model=List[StudentListItem], summary="Students visible to the caller")
async def list_students(
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> List[StudentListItem]:
    return await student_service.list_students(db, user)


@router.post(
    "",
    response_model=StudentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid or full group", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create a student account",
)
async def create_student(
    data: StudentCreateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> StudentCreateResponse:
    return await student_service.create_student(db, user, data)


@router.get("/{student_id}", response_model=StudentDetailResponse, responses=_scoped)
async def get_student(
    student_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> StudentDetailResponse:
    return await student_service.get_student(db, user, student_id)


@router.put(
    "/{student_id}",
    response_model=StudentMessageResponse,
    responses={**_scoped, 400: {"description": "Invalid group or email", "model": ErrorResponse}},
)
async def update_student(
    student_id: UUID,
    data: StudentUpdateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> StudentMessageResponse:
    student = await student_service.update_student(db, user, student_id, data)
    return StudentMessageResponse(message="Student updated successfully", student=student)


@router.delete(
    "/{student_id}",
    response_model=MessageResponse,
    responses={**_scoped, 400: {"description": "Student has lesson history", "model": ErrorResponse}},
)
async def delete_student(
    student_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await student_service.delete_student(db, user, student_id)
    return MessageResponse(message="Student deleted successfully")
