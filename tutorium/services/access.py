"""
Tutorium Backend — Access Rules
=================================

Who may see which lesson or manage which group, in one place so the
recordings, feedback, attendance and upload services agree.

    ADMIN    everything
    TEACHER  lessons they teach, groups they own
    STUDENT  lessons of their group, lessons they are assigned to
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select, true
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import PermissionDeniedError
from tutorium.models import Group, Lesson, Role, User, lesson_students


def lesson_scope_clause(user: User):
    """SQL condition restricting a lesson query to what `user` may see."""
    if user.role == Role.ADMIN:
        return true()
    if user.role == Role.TEACHER:
        return Lesson.teacher_id == user.id

    assigned = select(lesson_students.c.lesson_id).where(lesson_students.c.user_id == user.id)
    if user.group_id is None:
        return Lesson.id.in_(assigned)
    return or_(Lesson.group_id == user.group_id, Lesson.id.in_(assigned))


def can_view_lesson(user: User, lesson: Lesson) -> bool:
    """`lesson.students` must be loaded."""
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.TEACHER:
        return lesson.teacher_id == user.id
    if lesson.group_id is not None and lesson.group_id == user.group_id:
        return True
    return any(student.id == user.id for student in lesson.students)


async def load_lesson_for_access(db: AsyncSession, lesson_id: UUID) -> Optional[Lesson]:
    result = await db.execute(
        select(Lesson)
        .where(Lesson.id == lesson_id)
        .options(selectinload(Lesson.students))
    )
    return result.scalar_one_or_none()


def ensure_group_owner(user: User, group: Group) -> None:
    if user.role == Role.TEACHER and group.teacher_id != user.id:
        raise PermissionDeniedError(message="You can only manage your own groups")


def ensure_lesson_owner(user: User, lesson: Lesson) -> None:
    if user.role == Role.TEACHER and lesson.teacher_id != user.id:
        raise PermissionDeniedError(message="You can only manage your own lessons")
