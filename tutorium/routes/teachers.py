"""
Tutorium Backend — Teacher Dashboard Routes
=============================================

ADMIN and TEACHER. A teacher may only query their own id (403 otherwise);
an admin may look at any teacher.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import require_staff
from tutorium.database import get_db_session
from tutorium.models import LessonStatus, User
from tutorium.schemas.common import ErrorResponse
from tutorium.schemas.teacher import TeacherGroupItem, TeacherLessonItem, TeacherStatsResponse
from tutorium.services.teacher_service import teacher_service

router = APIRouter(prefix="/api/teachers", tags=["Teachers"])

_scoped = {
    403: {"description": "Another teacher's dashboard", "model": ErrorResponse},
    404: {"description": "Teacher not found", "model": ErrorResponse},
}


@router.get(
    "/{teacher_id}/groups",
    response_model=List[TeacherGroupItem],
    responses=_scoped,
    summary="A teacher's active groups with course progress",
)
async def teacher_groups(
    teacher_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> List[TeacherGroupItem]:
    return await teacher_service.groups(db, user, teacher_id)


@router.get(
    "/{teacher_id}/lessons",
    response_model=List[TeacherLessonItem],
    responses=_scoped,
    summary="A teacher's 20 most recent lessons",
)
async def teacher_lessons(
    teacher_id: UUID,
    status: Optional[LessonStatus] = Query(default=None),
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> List[TeacherLessonItem]:
    return await teacher_service.lessons(db, user, teacher_id, status=status)


@router.get(
    "/{teacher_id}/stats",
    response_model=TeacherStatsResponse,
    responses=_scoped,
    summary="Headline statistics for a teacher's dashboard",
)
async def teacher_stats(
    teacher_id: UUID,
    user: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> TeacherStatsResponse:
    return await teacher_service.stats(db, user, teacher_id)
