"""
Tutorium Backend — Lesson Attendance Model
============================================

One row per (lesson, student). `participation` is an optional 0..100
engagement score the teacher may record alongside the status; it feeds
the teacher engagement rate.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import enum_column, utcnow
from tutorium.models.enums import AttendanceStatus

if TYPE_CHECKING:
    from tutorium.models.lesson import Lesson
    from tutorium.models.user import User


class LessonAttendance(Base):
    __tablename__ = "lesson_attendance"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"), index=True
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[AttendanceStatus] = mapped_column(enum_column(AttendanceStatus))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    participation: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    lesson: Mapped["Lesson"] = relationship(back_populates="attendances")
    student: Mapped["User"] = relationship()

    __table_args__ = (
        UniqueConstraint("lesson_id", "student_id", name="uq_attendance_lesson_student"),
    )
