"""
Tutorium Backend — Admin User Management Service
==================================================

What:  List, create, update and delete any user account (ADMIN only).
How:   Feedback statistics are aggregated in one GROUP BY query instead of
       loading every feedback row per user.

Deleting a user removes their personal records (feedback, attendance,
product enrollments, lesson and course assignments) first. Teachers who
still own groups or lessons are refused; their classes must be handed
over or removed before the account can go. The last admin is protected.
"""

import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.auth.password import generate_password, hash_password
from tutorium.exceptions import DatabaseError, NotFoundError, ValidationError
from tutorium.models import (
    Course,
    Group,
    Lesson,
    LessonAttendance,
    LessonFeedback,
    Role,
    StudentProductEnrollment,
    User,
    course_enrollments,
    lesson_students,
)
from tutorium.schemas.common import CourseBrief, GroupBrief
from tutorium.schemas.user import (
    AdminUserCreateRequest,
    AdminUserCreateResponse,
    AdminUserResponse,
    AdminUserUpdateRequest,
    UserResponse,
)
from tutorium.services.auth_service import find_user_by_email
from tutorium.services.feedback_service import feedback_service

logger = logging.getLogger(__name__)


def _user_options():
    return (selectinload(User.group), selectinload(User.enrolled_courses))


class AdminService:

    async def _feedback_stats(
        self, db: AsyncSession, user_ids: Optional[List[UUID]] = None
    ) -> Dict[UUID, Tuple[Optional[float], int]]:
        stmt = select(
            LessonFeedback.student_id,
            func.avg(LessonFeedback.rating),
            func.count(LessonFeedback.id),
        ).group_by(LessonFeedback.student_id)
        if user_ids is not None:
            stmt = stmt.where(LessonFeedback.student_id.in_(user_ids))
        rows = (await db.execute(stmt)).all()
        return {
            student_id: (round(float(avg), 2) if avg is not None else None, count)
            for student_id, avg, count in rows
        }

    def _to_response(
        self, user: User, stats: Tuple[Optional[float], int]
    ) -> AdminUserResponse:
        base = UserResponse.model_validate(user).model_dump()
        return AdminUserResponse(
            **base,
            group=GroupBrief.model_validate(user.group) if user.group else None,
            enrolled_courses=[CourseBrief.model_validate(c) for c in user.enrolled_courses],
            average_rating=stats[0],
            total_feedbacks=stats[1],
        )

    async def _load_user(self, db: AsyncSession, user_id: UUID) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == user_id)
            .options(*_user_options())
            .execution_options(populate_existing=True)
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id, message="User not found")
        return user

    async def _ensure_group(self, db: AsyncSession, group_id: UUID) -> None:
        if await db.get(Group, group_id) is None:
            raise NotFoundError(resource="Group", resource_id=group_id, message="Group not found")

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_users(self, db: AsyncSession) -> List[AdminUserResponse]:
        result = await db.execute(
            select(User).options(*_user_options()).order_by(User.created_at.desc())
        )
        users = result.scalars().all()
        stats = await self._feedback_stats(db)
        return [self._to_response(u, stats.get(u.id, (None, 0))) for u in users]

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_user(
        self, db: AsyncSession, data: AdminUserCreateRequest
    ) -> AdminUserCreateResponse:
        if await find_user_by_email(db, data.email):
            raise ValidationError(message="User with this email already exists", field="email")
        if data.group_id is not None:
            await self._ensure_group(db, data.group_id)

        password = generate_password()
        user = User(
            name=data.name.strip(),
            email=data.email.lower(),
            role=data.role,
            password_hash=hash_password(password),
            group_id=data.group_id,
            is_active=data.is_active,
            level=data.level,
        )
        db.add(user)
        await db.flush()
        logger.info("Admin created %s user %s", data.role.value, user.id)

        user = await self._load_user(db, user.id)
        response = self._to_response(user, (None, 0))
        return AdminUserCreateResponse(**response.model_dump(), default_password=password)

    async def update_user(
        self, db: AsyncSession, user_id: UUID, data: AdminUserUpdateRequest
    ) -> AdminUserResponse:
        user = await self._load_user(db, user_id)
        fields = data.model_fields_set

        if data.email is not None and data.email.lower() != user.email:
            existing = await find_user_by_email(db, data.email)
            if existing is not None and existing.id != user.id:
                raise ValidationError(message="Email already exists", field="email")
            user.email = data.email.lower()

        if data.first_name and data.last_name:
            user.name = f"{data.first_name.strip()} {data.last_name.strip()}"
        if data.role is not None:
            user.role = data.role
        if "level" in fields:
            user.level = data.level
        if data.is_active is not None:
            user.is_active = data.is_active
        if "group_id" in fields:
            if data.group_id is not None:
                await self._ensure_group(db, data.group_id)
            user.group_id = data.group_id

        if data.course_ids is not None:
            wanted = set(data.course_ids)
            courses = (
                await db.execute(select(Course).where(Course.id.in_(wanted)))
            ).scalars().all()
            if len(courses) != len(wanted):
                raise ValidationError(
                    message="One or more course IDs are invalid", field="course_ids"
                )
            user.enrolled_courses = list(courses)

        await db.flush()
        logger.info("Admin updated user %s (fields=%s)", user.id, sorted(fields))

        user = await self._load_user(db, user.id)
        stats = await self._feedback_stats(db, [user.id])
        return self._to_response(user, stats.get(user.id, (None, 0)))

    async def delete_user(self, db: AsyncSession, user_id: UUID) -> None:
        user = await self._load_user(db, user_id)

        if user.role == Role.ADMIN:
            admins = await db.scalar(select(func.count(User.id)).where(User.role == Role.ADMIN))
            if admins <= 1:
                raise ValidationError(message="Cannot delete the last admin user")

        if user.role == Role.TEACHER:
            owned_groups = await db.scalar(
                select(func.count(Group.id)).where(Group.teacher_id == user.id)
            )
            owned_lessons = await db.scalar(
                select(func.count(Lesson.id)).where(Lesson.teacher_id == user.id)
            )
            if owned_groups or owned_lessons:
                raise ValidationError(
                    message="Cannot delete a teacher who still owns groups or lessons",
                    context={"groups": owned_groups, "lessons": owned_lessons},
                )

        try:
            rated_lessons = (
                await db.execute(
                    select(LessonFeedback.lesson_id).where(LessonFeedback.student_id == user.id)
                )
            ).scalars().all()

            await db.execute(delete(LessonFeedback).where(LessonFeedback.student_id == user.id))
            await db.execute(delete(LessonAttendance).where(LessonAttendance.student_id == user.id))
            await db.execute(
                delete(StudentProductEnrollment).where(StudentProductEnrollment.student_id == user.id)
            )
            await db.execute(delete(lesson_students).where(lesson_students.c.user_id == user.id))
            await db.execute(delete(course_enrollments).where(course_enrollments.c.user_id == user.id))
            await db.execute(delete(User).where(User.id == user.id))

            for lesson_id in set(rated_lessons):
                await feedback_service.recompute_lesson_rating(db, lesson_id)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not delete the user. Please try again.",
                context={"user_id": str(user_id), "original_error": type(e).__name__},
            )

        logger.info("Admin deleted user %s (%s)", user_id, user.role.value)


# ── Singleton Instance ────────────────────────────────────────────────────
admin_service = AdminService()
