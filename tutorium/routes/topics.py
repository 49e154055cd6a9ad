"""
Tutorium Backend — Topic Routes
=================================

Topics are the ordered syllabus items of a course. Deleting one keeps the
lessons that referenced it; their topic links are cleared.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_staff
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.course import TopicCreateRequest, TopicUpdateRequest, TopicWithCourse
from tutorium.services.course_service import course_service

router = APIRouter(prefix="/api", tags=["Topics"])

_not_found = {404: {"description": "Topic not found", "model": ErrorResponse}}


@router.get("/topics", response_model=List[TopicWithCourse], summary="List active topics")
async def list_topics(
    course_id: Optional[UUID] = Query(default=None, description="Only topics of this course"),
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[TopicWithCourse]:
    return await course_service.list_topics(db, course_id)


@router.post(
    "/topics",
    response_model=TopicWithCourse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
    summary="Add a topic to a course",
)
async def create_topic(
    data: TopicCreateRequest,
    _: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> TopicWithCourse:
    return await course_service.create_topic(db, data)


@router.get("/topics/{topic_id}", response_model=TopicWithCourse, responses=_not_found)
async def get_topic(
    topic_id: UUID,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TopicWithCourse:
    return await course_service.get_topic(db, topic_id)


@router.put("/topics/{topic_id}", response_model=TopicWithCourse, responses=_not_found)
async def update_topic(
    topic_id: UUID,
    data: TopicUpdateRequest,
    _: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> TopicWithCourse:
    return await course_service.update_topic(db, topic_id, data)


@router.delete("/topics/{topic_id}", response_model=MessageResponse, responses=_not_found)
async def delete_topic(
    topic_id: UUID,
    _: User = Depends(require_staff),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await course_service.delete_topic(db, topic_id)
    return MessageResponse(message="Topic deleted successfully")
