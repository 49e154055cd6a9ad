"""
Tutorium Backend — User Model
===============================

What:  ORM model for the `users` table (admins, teachers and students).
How:   One table for every role; `role` decides which endpoints a user may
       call. Students point at (at most) one group through `group_id`.

Relationships:
    group             many-to-one  → Group         (students only)
    taught_groups     one-to-many  → Group         (teachers)
    enrolled_courses  many-to-many → Course        via course_enrollments
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tutorium.database import Base
from tutorium.models.base import enum_column, utcnow
from tutorium.models.enums import Role

if TYPE_CHECKING:
    from tutorium.models.course import Course
    from tutorium.models.group import Group


# ── Association: users ↔ courses ──────────────────────────────────────────
course_enrollments = Table(
    "course_enrollments",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("course_id", ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """A person who can sign in. `password_hash` is never serialized."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[Role] = mapped_column(enum_column(Role), default=Role.TEACHER)
    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # CEFR code (A1..C1) for students; free text is tolerated for legacy rows
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # use_alter: users ↔ groups reference each other
    group_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("groups.id", ondelete="SET NULL", use_alter=True, name="fk_users_group_id"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # ── Relationships ─────────────────────────────────────────────────────
    group: Mapped[Optional["Group"]] = relationship(
        back_populates="students", foreign_keys=[group_id]
    )
    taught_groups: Mapped[List["Group"]] = relationship(
        back_populates="teacher", foreign_keys="Group.teacher_id"
    )
    enrolled_courses: Mapped[List["Course"]] = relationship(
        secondary=course_enrollments, back_populates="enrolled_users"
    )

    @property
    def first_name(self) -> str:
        return self.name.split(" ", 1)[0] if self.name else ""

    @property
    def last_name(self) -> str:
        parts = self.name.split(" ", 1) if self.name else []
        return parts[1] if len(parts) > 1 else ""

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
