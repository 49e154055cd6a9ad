"""
Tutorium Backend — Lesson Feedback Routes
===========================================

What:  Students rate lessons 1..5; everyone with access to a lesson can
       read its feedback.
How:   POST upserts per (student, lesson) and answers 201 for a new
       rating, 200 when an existing one was replaced. Each write
       recomputes the lesson's average_rating and total_feedback.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user, require_student, require_student_or_admin
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.activity import FeedbackCreateRequest, FeedbackResponse
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.services.feedback_service import feedback_service

router = APIRouter(prefix="/api/feedback", tags=["Feedback"])


@router.get(
    "",
    response_model=List[FeedbackResponse],
    responses={404: {"description": "Lesson not found or access denied", "model": ErrorResponse}},
    summary="Feedback for a lesson",
)
async def list_lesson_feedback(
    lesson_id: UUID = Query(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> List[FeedbackResponse]:
    return await feedback_service.list_for_lesson(db, user, lesson_id)


@router.post(
    "",
    response_model=FeedbackResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Existing feedback updated", "model": FeedbackResponse},
        404: {"description": "Lesson not found or access denied", "model": ErrorResponse},
    },
    summary="Rate a lesson",
)
async def submit_feedback(
    data: FeedbackCreateRequest,
    response: Response,
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
) -> FeedbackResponse:
    feedback, created = await feedback_service.submit(db, user, data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return feedback


@router.delete(
    "",
    response_model=MessageResponse,
    responses={
        403: {"description": "Feedback belongs to another student", "model": ErrorResponse},
        404: {"description": "Feedback not found", "model": ErrorResponse},
    },
)
async def delete_feedback(
    id: UUID = Query(..., description="Feedback ID"),
    user: User = Depends(require_student_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await feedback_service.delete(db, user, id)
    return MessageResponse(message="Feedback deleted successfully")


@router.get("/user", response_model=List[FeedbackResponse], summary="The caller's own feedback")
async def list_own_feedback(
    user: User = Depends(require_student),
    db: AsyncSession = Depends(get_db_session),
) -> List[FeedbackResponse]:
    return await feedback_service.list_for_student(db, user)
