"""
Tutorium Backend — Lesson Feedback Model
==========================================

A student's 1..5 rating of a lesson, at most one per (student, lesson).
Anonymous feedback still records the author; the API hides it.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import utcnow

if TYPE_CHECKING:
    from tutorium.models.lesson import Lesson
    from tutorium.models.user import User


class LessonFeedback(Base):
    __tablename__ = "lesson_feedback"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    rating: Mapped[int] = mapped_column(Integer)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False)
    student_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"), index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    student: Mapped["User"] = relationship()
    lesson: Mapped["Lesson"] = relationship(back_populates="feedbacks")

    __table_args__ = (
        UniqueConstraint("student_id", "lesson_id", name="uq_feedback_student_lesson"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )
