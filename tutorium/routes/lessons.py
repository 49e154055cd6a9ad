"""
Tutorium Backend — Lesson Routes
==================================

What:  Dashboard lesson lists (recent, upcoming) and admin CRUD over
       individual lessons.
Who:   Every dashboard calls /recent and /upcoming; /individual is the
       admin scheduling screen (teachers may list their own).
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_admin, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.lesson import (
    IndividualLessonCreateRequest,
    IndividualLessonListResponse,
    IndividualLessonMessageResponse,
    IndividualLessonUpdateRequest,
    RecentLessonItem,
    UpcomingLessonItem,
)
from tutorium.services.lesson_service import lesson_service
from tutorium.services.recording_service import recording_service

router = APIRouter(prefix="/api/lessons", tags=["Lessons"])


@router.get(
    "/recent",
    response_model=List[RecentLessonItem],
    summary="The five most recent recorded lessons visible to the caller",
)
async def recent_lessons(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[RecentLessonItem]:
    return await recording_service.recent(db, user)


@router.get(
    "/upcoming",
    response_model=List[UpcomingLessonItem],
    summary="The next five lessons visible to the caller",
)
async def upcoming_lessons(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[UpcomingLessonItem]:
    return await recording_service.upcoming(db, user)


# ── Individual lessons ────────────────────────────────────────────────────


@router.get("/individual", response_model=IndividualLessonListResponse)
async def list_individual_lessons(
    student_id: Optional[UUID] = Query(default=None),
    teacher_id: Optional[UUID] = Query(default=None),
    course_id: Optional[UUID] = Query(default=None, description="Filters on the topic's course"),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> IndividualLessonListResponse:
    lessons = await lesson_service.list_lessons(
        db, user, student_id=student_id, teacher_id=teacher_id, course_id=course_id
    )
    return IndividualLessonListResponse(data=lessons)


@router.post(
    "/individual",
    response_model=IndividualLessonMessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid students or topic", "model": ErrorResponse},
        404: {"description": "Teacher or course not found", "model": ErrorResponse},
    },
    summary="Schedule an individual lesson",
)
async def create_individual_lesson(
    data: IndividualLessonCreateRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> IndividualLessonMessageResponse:
    lesson = await lesson_service.create_lesson(db, data)
    return IndividualLessonMessageResponse(
        message="Individual lesson created successfully", data=lesson
    )


@router.put(
    "/individual/{lesson_id}",
    response_model=IndividualLessonMessageResponse,
    responses={404: {"description": "Lesson not found", "model": ErrorResponse}},
)
async def update_individual_lesson(
    lesson_id: UUID,
    data: IndividualLessonUpdateRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> IndividualLessonMessageResponse:
    lesson = await lesson_service.update_lesson(db, lesson_id, data)
    return IndividualLessonMessageResponse(message="Lesson updated successfully", data=lesson)


@router.delete(
    "/individual/{lesson_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Lesson not found", "model": ErrorResponse}},
)
async def delete_individual_lesson(
    lesson_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await lesson_service.delete_lesson(db, lesson_id)
    return MessageResponse(message="Lesson deleted successfully")
