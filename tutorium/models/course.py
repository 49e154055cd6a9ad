"""
Tutorium Backend — Course and Topic Models
============================================

A course is an ordered list of topics. Topics are numbered from 1 and are
removed together with their course (ORM cascade; the migration also sets
ON DELETE CASCADE). Progress is measured against the active topics.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import enum_column, utcnow
from tutorium.models.enums import Difficulty
from tutorium.models.user import course_enrollments

if TYPE_CHECKING:
    from tutorium.models.group import Group
    from tutorium.models.user import User


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(String(50), index=True)

    # Free text, e.g. "3 months"
    duration: Mapped[str] = mapped_column(String(100))
    difficulty: Mapped[Difficulty] = mapped_column(
        enum_column(Difficulty), default=Difficulty.BEGINNER
    )
    category: Mapped[str] = mapped_column(String(100), default="Language")
    tags: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    topics: Mapped[List["Topic"]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Topic.order",
    )
    groups: Mapped[List["Group"]] = relationship(back_populates="course")
    enrolled_users: Mapped[List["User"]] = relationship(
        secondary=course_enrollments, back_populates="enrolled_courses"
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name='{self.name}', level='{self.level}')>"


class Topic(Base):
    __tablename__ = "topics"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 1-based position within the course
    order: Mapped[int] = mapped_column("order", Integer, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    course_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    course: Mapped["Course"] = relationship(back_populates="topics")

    def __repr__(self) -> str:
        return f"<Topic(id={self.id}, name='{self.name}', order={self.order})>"
