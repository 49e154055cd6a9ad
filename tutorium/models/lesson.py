"""
Tutorium Backend — Lesson and Attachment Models
=================================================

What:  A single `lessons` table covers scheduled classes, individual
       lessons and published recordings.
How:   A "recording" is a lesson with status COMPLETED and a video link.
       GROUP lessons belong to a group; INDIVIDUAL lessons list their
       students through `lesson_students`.

    topic_id       the topic covered in this lesson (drives progress)
    next_topic_id  what the teacher plans to cover next, if set explicitly

Attachments are teaching materials uploaded for a lesson; the bytes live
under STORAGE_ROOT and the row keeps the relative path.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import enum_column, utcnow
from tutorium.models.enums import LessonStatus, LessonType

if TYPE_CHECKING:
    from tutorium.models.attendance import LessonAttendance
    from tutorium.models.course import Topic
    from tutorium.models.feedback import LessonFeedback
    from tutorium.models.group import Group
    from tutorium.models.user import User


# ── Association: lessons ↔ students (individual lessons) ─────────────────
lesson_students = Table(
    "lesson_students",
    Base.metadata,
    Column("lesson_id", ForeignKey("lessons.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Scheduling ────────────────────────────────────────────────────────
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    start_time: Mapped[str] = mapped_column(String(5), default="00:00")  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5), default="01:00")
    duration: Mapped[int] = mapped_column(Integer, default=60)  # minutes
    status: Mapped[LessonStatus] = mapped_column(
        enum_column(LessonStatus), default=LessonStatus.SCHEDULED, index=True
    )
    lesson_type: Mapped[LessonType] = mapped_column(
        enum_column(LessonType), default=LessonType.GROUP
    )

    # ── Ownership ─────────────────────────────────────────────────────────
    teacher_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("groups.id"), nullable=True, index=True
    )
    topic_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("topics.id", ondelete="SET NULL"), nullable=True, index=True
    )
    next_topic_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("topics.id", ondelete="SET NULL"), nullable=True
    )

    # ── Content ───────────────────────────────────────────────────────────
    youtube_link: Mapped[str | None] = mapped_column(String(500), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)  # teacher's message
    materials: Mapped[list] = mapped_column(JSON, default=list)

    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0)

    # Denormalized feedback aggregates, recomputed on every feedback write
    average_rating: Mapped[float] = mapped_column(Float, default=0.0)
    total_feedback: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relationships ─────────────────────────────────────────────────────
    teacher: Mapped["User"] = relationship(foreign_keys=[teacher_id])
    group: Mapped[Optional["Group"]] = relationship(back_populates="lessons")
    topic: Mapped[Optional["Topic"]] = relationship(foreign_keys=[topic_id])
    next_topic: Mapped[Optional["Topic"]] = relationship(foreign_keys=[next_topic_id])
    students: Mapped[List["User"]] = relationship(secondary=lesson_students)
    attachments: Mapped[List["Attachment"]] = relationship(
        back_populates="lesson", cascade="all, delete-orphan"
    )
    feedbacks: Mapped[List["LessonFeedback"]] = relationship(back_populates="lesson")
    attendances: Mapped[List["LessonAttendance"]] = relationship(back_populates="lesson")

    @property
    def is_recording(self) -> bool:
        return self.status == LessonStatus.COMPLETED and bool(self.youtube_link)

    def __repr__(self) -> str:
        return f"<Lesson(id={self.id}, title='{self.title}', status='{self.status}')>"


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    filename: Mapped[str] = mapped_column(String(255))  # stored name (uuid + ext)
    original_name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(Integer)
    path: Mapped[str] = mapped_column(String(500))  # relative to STORAGE_ROOT
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    lesson: Mapped["Lesson"] = relationship(back_populates="attachments")

    def __repr__(self) -> str:
        return f"<Attachment(id={self.id}, original_name='{self.original_name}')>"
