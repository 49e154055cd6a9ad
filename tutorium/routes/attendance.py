"""
Tutorium Backend — Attendance Routes
======================================

Teachers mark attendance for the lessons they teach; POST upserts one
record per (lesson, student). Reading is open to every role, but a
student only ever receives their own records.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.activity import (
    AttendanceListResponse,
    AttendanceRecordRequest,
    AttendanceRecordResponse,
    AttendanceResponse,
    AttendanceUpdateRequest,
)
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.services.attendance_service import attendance_service

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])

_not_found = {404: {"description": "Attendance record not found", "model": ErrorResponse}}


@router.post(
    "",
    response_model=AttendanceRecordResponse,
    responses={
        400: {"description": "Unknown student", "model": ErrorResponse},
        403: {"description": "Lesson taught by another teacher", "model": ErrorResponse},
        404: {"description": "Lesson not found", "model": ErrorResponse},
    },
    summary="Record attendance for a lesson",
)
async def record_attendance(
    data: AttendanceRecordRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> AttendanceRecordResponse:
    records = await attendance_service.record(db, user, data)
    return AttendanceRecordResponse(message="Attendance recorded successfully", data=records)


@router.get(
    "",
    response_model=AttendanceListResponse,
    responses={400: {"description": "Neither filter given", "model": ErrorResponse}},
    summary="Attendance by lesson or by student",
)
async def list_attendance(
    lesson_id: Optional[UUID] = Query(default=None),
    student_id: Optional[UUID] = Query(default=None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AttendanceListResponse:
    records = await attendance_service.list_records(
        db, user, lesson_id=lesson_id, student_id=student_id
    )
    return AttendanceListResponse(data=records)


@router.put("/{record_id}", response_model=AttendanceResponse, responses=_not_found)
async def update_attendance(
    record_id: UUID,
    data: AttendanceUpdateRequest,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> AttendanceResponse:
    return await attendance_service.update(db, user, record_id, data)


@router.delete("/{record_id}", response_model=MessageResponse, responses=_not_found)
async def delete_attendance(
    record_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await attendance_service.delete(db, user, record_id)
    return MessageResponse(message="Attendance record deleted successfully")
