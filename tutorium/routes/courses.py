"""
Tutorium Backend — Course Routes
==================================

What:  Course catalogue CRUD, the caller's learning tracks and the level list.
Who:   Admin/teacher course management screens and the student dashboard.

Route order matters: `/courses/user` is declared before `/courses/{course_id}`
so "user" is never parsed as a UUID path parameter.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_admin, require_staff
from tutorium.database import get_db_session
from tutorium.levels import LEVELS
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, LevelOption, MessageResponse
from tutorium.schemas.course import (
    CourseCreateRequest,
    CourseDetailResponse,
    CourseResponse,
    CourseUpdateRequest,
    LearningTrack,
)
from tutorium.services.course_service import course_service

router = APIRouter(prefix="/api", tags=["Courses"])


@router.get("/levels", response_model=List[LevelOption], summary="Language level options")
async def list_levels() -> List[LevelOption]:
    return [LevelOption(**level) for level in LEVELS]


@router.get("/courses", response_model=List[CourseResponse], summary="List active courses")
async def list_courses(
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[CourseResponse]:
    return await course_service.list_courses(db)


@router.post(
    "/courses",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course, optionally with its topics",
)
async def create_course(
    data: CourseCreateRequest,
    _: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> CourseResponse:
    return await course_service.create_course(db, data)


@router.get(
    "/courses/user",
    response_model=List[LearningTrack],
    summary="The caller's learning tracks with computed progress",
    description=(
        "Students get their group, teachers their active groups and admins every "
        "active group. Progress is derived from completed lessons and their topics."
    ),
)
async def user_courses(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[LearningTrack]:
    return await course_service.learning_tracks(db, user)


@router.get(
    "/courses/{course_id}",
    response_model=CourseDetailResponse,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
    summary="Course detail with topics and groups",
)
async def get_course(
    course_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CourseDetailResponse:
    return await course_service.get_course(db, course_id)


@router.put(
    "/courses/{course_id}",
    response_model=CourseResponse,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
    summary="Update a course; `topics` replaces the topic list",
)
async def update_course(
    course_id: UUID,
    data: CourseUpdateRequest,
    _: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> CourseResponse:
    return await course_service.update_course(db, course_id, data)


@router.delete(
    "/courses/{course_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Course still has groups or products", "model": ErrorResponse},
        404: {"description": "Course not found", "model": ErrorResponse},
    },
    summary="Delete a course and its topics",
)
async def delete_course(
    course_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await course_service.delete_course(db, course_id)
    return MessageResponse(message="Course deleted successfully")
