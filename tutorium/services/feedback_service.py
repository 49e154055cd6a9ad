"""
Tutorium Backend — Lesson Feedback Service
============================================

What:  Students rate lessons (1..5) they had access to; staff read them.
How:   One feedback per (student, lesson): a second POST updates the first.
       After every write the lesson's `average_rating` and
       `total_feedback` are recomputed from the rows (never incremented),
       so they cannot drift.

Visibility of anonymous feedback:
    admins and the author see who wrote it; everyone else gets
    `student_id = null` and no student object.
"""

import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from tutorium.models import Lesson, LessonFeedback, Role, User
from tutorium.schemas.activity import FeedbackCreateRequest, FeedbackResponse
from tutorium.schemas.common import LessonBrief, UserBrief
from tutorium.services.access import can_view_lesson, load_lesson_for_access

logger = logging.getLogger(__name__)

LESSON_ACCESS_DENIED = "Lesson not found or access denied"


def feedback_to_response(feedback: LessonFeedback, viewer: User) -> FeedbackResponse:
    """`feedback.student` and `feedback.lesson` must be loaded."""
    reveal = (
        not feedback.is_anonymous
        or viewer.role == Role.ADMIN
        or viewer.id == feedback.student_id
    )
    return FeedbackResponse(
        id=feedback.id,
        rating=feedback.rating,
        comment=feedback.comment,
        is_anonymous=feedback.is_anonymous,
        lesson_id=feedback.lesson_id,
        student_id=feedback.student_id if reveal else None,
        created_at=feedback.created_at,
        updated_at=feedback.updated_at,
        student=UserBrief.model_validate(feedback.student) if reveal else None,
        lesson=LessonBrief.model_validate(feedback.lesson),
    )


class FeedbackService:

    async def recompute_lesson_rating(self, db: AsyncSession, lesson_id: UUID) -> None:
        avg, count = (
            await db.execute(
                select(func.avg(LessonFeedback.rating), func.count(LessonFeedback.id)).where(
                    LessonFeedback.lesson_id == lesson_id
                )
            )
        ).one()
        lesson = await db.get(Lesson, lesson_id)
        if lesson is None:
            return
        lesson.average_rating = round(float(avg), 2) if avg is not None else 0.0
        lesson.total_feedback = count or 0
        await db.flush()

    async def _accessible_lesson(self, db: AsyncSession, user: User, lesson_id: UUID) -> Lesson:
        lesson = await load_lesson_for_access(db, lesson_id)
        if lesson is None or not can_view_lesson(user, lesson):
            raise NotFoundError(resource="Lesson", resource_id=lesson_id, message=LESSON_ACCESS_DENIED)
        return lesson

    async def _load_feedback(self, db: AsyncSession, feedback_id: UUID) -> LessonFeedback | None:
        result = await db.execute(
            select(LessonFeedback)
            .where(LessonFeedback.id == feedback_id)
            .options(selectinload(LessonFeedback.student), selectinload(LessonFeedback.lesson))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_for_lesson(
        self, db: AsyncSession, user: User, lesson_id: UUID
    ) -> List[FeedbackResponse]:
        await self._accessible_lesson(db, user, lesson_id)
        result = await db.execute(
            select(LessonFeedback)
            .where(LessonFeedback.lesson_id == lesson_id)
            .options(selectinload(LessonFeedback.student), selectinload(LessonFeedback.lesson))
            .order_by(LessonFeedback.created_at.desc())
        )
        return [feedback_to_response(f, user) for f in result.scalars().all()]

    async def list_for_student(self, db: AsyncSession, user: User) -> List[FeedbackResponse]:
        result = await db.execute(
            select(LessonFeedback)
            .where(LessonFeedback.student_id == user.id)
            .options(selectinload(LessonFeedback.student), selectinload(LessonFeedback.lesson))
            .order_by(LessonFeedback.created_at.desc())
        )
        return [feedback_to_response(f, user) for f in result.scalars().all()]

    # ── Mutations ─────────────────────────────────────────────────────────

    async def submit(
        self, db: AsyncSession, user: User, data: FeedbackCreateRequest
    ) -> Tuple[FeedbackResponse, bool]:
        """Create or update the caller's feedback. Returns (feedback, created)."""
        await self._accessible_lesson(db, user, data.lesson_id)

        existing = (
            await db.execute(
                select(LessonFeedback).where(
                    LessonFeedback.student_id == user.id,
                    LessonFeedback.lesson_id == data.lesson_id,
                )
            )
        ).scalar_one_or_none()

        created = existing is None
        try:
            if created:
                feedback = LessonFeedback(
                    student_id=user.id,
                    lesson_id=data.lesson_id,
                    rating=data.rating,
                    comment=data.comment,
                    is_anonymous=data.is_anonymous,
                )
                db.add(feedback)
            else:
                feedback = existing
                feedback.rating = data.rating
                feedback.comment = data.comment
                feedback.is_anonymous = data.is_anonymous
            await db.flush()
        except IntegrityError:
            # concurrent first submission by the same student
            raise ConflictError(message="Feedback for this lesson is already being saved")

        await self.recompute_lesson_rating(db, data.lesson_id)
        logger.info(
            "Student %s %s feedback for lesson %s (rating=%d)",
            user.id, "created" if created else "updated", data.lesson_id, data.rating,
        )

        feedback = await self._load_feedback(db, feedback.id)
        return feedback_to_response(feedback, user), created

    async def delete(self, db: AsyncSession, user: User, feedback_id: UUID) -> None:
        feedback = await db.get(LessonFeedback, feedback_id)
        if feedback is None:
            raise NotFoundError(resource="Feedback", resource_id=feedback_id, message="Feedback not found")
        if user.role != Role.ADMIN and feedback.student_id != user.id:
            raise PermissionDeniedError(message="You can only delete your own feedback")

        lesson_id = feedback.lesson_id
        await db.delete(feedback)
        await db.flush()
        await self.recompute_lesson_rating(db, lesson_id)
        logger.info("Feedback %s deleted by %s", feedback_id, user.id)


# ── Singleton Instance ────────────────────────────────────────────────────
feedback_service = FeedbackService()
