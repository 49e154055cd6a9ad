"""
Tutorium Backend — Group Model
================================

A study group run by one teacher, optionally following one course.
Group names are unique per teacher. Capacity is `max_students`.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import utcnow

if TYPE_CHECKING:
    from tutorium.models.course import Course
    from tutorium.models.lesson import Lesson
    from tutorium.models.user import User


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[str] = mapped_column(String(50))
    max_students: Mapped[int] = mapped_column(Integer, default=20)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    teacher_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    course_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("courses.id"), nullable=True, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    teacher: Mapped["User"] = relationship(
        back_populates="taught_groups", foreign_keys=[teacher_id]
    )
    course: Mapped[Optional["Course"]] = relationship(back_populates="groups")
    students: Mapped[List["User"]] = relationship(
        back_populates="group", foreign_keys="User.group_id", order_by="User.name"
    )
    lessons: Mapped[List["Lesson"]] = relationship(back_populates="group")

    __table_args__ = (
        UniqueConstraint("name", "teacher_id", name="uq_groups_name_teacher"),
    )

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name='{self.name}', teacher_id={self.teacher_id})>"
