"""
Tutorium Backend — Group and Enrollment Service
=================================================

What:  Study groups (CRUD, public catalog, "my groups" with progress) and
       moving students in and out of them.
Who:   routes/groups.py.

Rules:
    - group names are unique per teacher (409)
    - teachers manage only their own groups (403); admins manage all
    - a student belongs to at most one group; capacity is max_students
    - enrolling also enrolls the student in the group's course;
      leaving the group keeps that course enrollment
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from tutorium.models import (
    Course,
    Group,
    Lesson,
    LessonAttendance,
    LessonFeedback,
    LessonStatus,
    Role,
    User,
)
from tutorium.schemas.common import CourseBrief, LessonBrief, UserBrief
from tutorium.schemas.group import (
    EnrollmentResponse,
    GroupCatalogItem,
    GroupCatalogResponse,
    GroupCreateRequest,
    GroupDetailResponse,
    GroupUpdateRequest,
    GroupWithRelations,
    UserGroupItem,
)
from tutorium.schemas.user import UserResponse
from tutorium.services.access import ensure_group_owner
from tutorium.services.progress_service import progress_service

logger = logging.getLogger(__name__)


def group_options():
    return (
        selectinload(Group.teacher),
        selectinload(Group.course),
        selectinload(Group.students),
    )


def group_to_response(group: Group) -> GroupWithRelations:
    """`teacher`, `course` and `students` must be loaded."""
    return GroupWithRelations(
        id=group.id,
        name=group.name,
        description=group.description,
        level=group.level,
        max_students=group.max_students,
        is_active=group.is_active,
        teacher_id=group.teacher_id,
        course_id=group.course_id,
        created_at=group.created_at,
        updated_at=group.updated_at,
        students=[UserBrief.model_validate(s) for s in group.students],
        student_count=len(group.students),
        teacher=UserBrief.model_validate(group.teacher),
        course=CourseBrief.model_validate(group.course) if group.course else None,
    )


async def count_students(db: AsyncSession, group_id: UUID) -> int:
    return await db.scalar(select(func.count(User.id)).where(User.group_id == group_id)) or 0


class GroupService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_group(self, db: AsyncSession, group_id: UUID) -> Group:
        result = await db.execute(
            select(Group)
            .where(Group.id == group_id)
            .options(*group_options())
            .execution_options(populate_existing=True)
        )
        group = result.scalar_one_or_none()
        if group is None:
            raise NotFoundError(resource="Group", resource_id=group_id, message="Group not found")
        return group

    async def _ensure_course(self, db: AsyncSession, course_id: UUID) -> None:
        if await db.get(Course, course_id) is None:
            raise NotFoundError(resource="Course", resource_id=course_id, message="Course not found")

    async def _ensure_unique_name(
        self, db: AsyncSession, name: str, teacher_id: UUID, exclude_id: UUID | None = None
    ) -> None:
        stmt = select(Group.id).where(Group.name == name, Group.teacher_id == teacher_id)
        if exclude_id is not None:
            stmt = stmt.where(Group.id != exclude_id)
        if (await db.execute(stmt)).first() is not None:
            raise ConflictError(
                message="You already have a group with this name",
                context={"name": name},
            )

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    async def list_own_groups(self, db: AsyncSession, user: User) -> List[GroupWithRelations]:
        result = await db.execute(
            select(Group)
            .where(Group.teacher_id == user.id, Group.is_active.is_(True))
            .options(*group_options())
            .order_by(Group.created_at.desc())
        )
        return [group_to_response(g) for g in result.scalars().all()]

    async def catalog(self, db: AsyncSession, user: User) -> GroupCatalogResponse:
        result = await db.execute(
            select(Group)
            .where(Group.is_active.is_(True))
            .options(*group_options())
            .order_by(Group.name)
        )
        is_student = user.role == Role.STUDENT
        items = []
        for group in result.scalars().all():
            base = group_to_response(group)
            items.append(
                GroupCatalogItem(
                    **base.model_dump(),
                    is_user_enrolled=is_student and user.group_id == group.id,
                    is_teacher_owned=user.role == Role.TEACHER and group.teacher_id == user.id,
                    can_enroll=(
                        is_student
                        and user.group_id is None
                        and len(group.students) < group.max_students
                    ),
                )
            )
        return GroupCatalogResponse(groups=items, current_user_group=user.group_id)

    async def user_groups(self, db: AsyncSession, user: User) -> List[UserGroupItem]:
        stmt = select(Group).options(*group_options()).order_by(Group.name)
        if user.role == Role.STUDENT:
            if user.group_id is None:
                return []
            stmt = stmt.where(Group.id == user.group_id)
        elif user.role == Role.TEACHER:
            stmt = stmt.where(Group.teacher_id == user.id, Group.is_active.is_(True))
        else:
            stmt = stmt.where(Group.is_active.is_(True))

        items = []
        for group in (await db.execute(stmt)).scalars().all():
            progress = await progress_service.get_course_progress(db, group.course_id, group.id)
            items.append(UserGroupItem(**group_to_response(group).model_dump(), progress=progress))
        return items

    async def get_group(self, db: AsyncSession, user: User, group_id: UUID) -> GroupDetailResponse:
        group = await self._load_group(db, group_id)

        if user.role == Role.TEACHER and group.teacher_id != user.id:
            raise PermissionDeniedError(message="You can only view your own groups")
        if user.role == Role.STUDENT and user.group_id != group.id:
            raise PermissionDeniedError(message="You are not a member of this group")

        recordings = (
            await db.execute(
                select(Lesson)
                .where(
                    Lesson.group_id == group.id,
                    Lesson.is_active.is_(True),
                    Lesson.status == LessonStatus.COMPLETED,
                    Lesson.youtube_link.is_not(None),
                )
                .order_by(Lesson.date.desc())
            )
        ).scalars().all()

        return GroupDetailResponse(
            **group_to_response(group).model_dump(),
            recordings=[LessonBrief.model_validate(lesson) for lesson in recordings],
            recording_count=len(recordings),
        )

    # ══════════════════════════════════════════════════════════════════════
    # Mutations
    # ══════════════════════════════════════════════════════════════════════

    async def create_group(
        self, db: AsyncSession, user: User, data: GroupCreateRequest
    ) -> GroupWithRelations:
        name = data.name.strip()
        await self._ensure_unique_name(db, name, user.id)
        if data.course_id is not None:
            await self._ensure_course(db, data.course_id)

        group = Group(
            name=name,
            description=data.description,
            level=data.level,
            max_students=data.max_students,
            course_id=data.course_id,
            teacher_id=user.id,
        )
        db.add(group)
        await db.flush()
        logger.info("Teacher %s created group %s", user.id, group.id)
        return group_to_response(await self._load_group(db, group.id))

    async def update_group(
        self, db: AsyncSession, user: User, group_id: UUID, data: GroupUpdateRequest
    ) -> GroupWithRelations:
        group = await self._load_group(db, group_id)
        ensure_group_owner(user, group)

        if data.name is not None and data.name.strip() != group.name:
            await self._ensure_unique_name(db, data.name.strip(), group.teacher_id, group.id)
            group.name = data.name.strip()
        if data.course_id is not None:
            await self._ensure_course(db, data.course_id)
            group.course_id = data.course_id
        for field in ("description", "level", "max_students", "is_active"):
            value = getattr(data, field)
            if value is not None:
                setattr(group, field, value)

        await db.flush()
        logger.info("Group %s updated by %s", group.id, user.id)
        return group_to_response(await self._load_group(db, group.id))

    async def delete_group(self, db: AsyncSession, user: User, group_id: UUID) -> None:
        group = await self._load_group(db, group_id)
        ensure_group_owner(user, group)

        if group.students:
            raise ValidationError(
                message="Cannot delete a group that still has students",
                context={"students": len(group.students)},
            )
        lesson_count = await db.scalar(select(func.count(Lesson.id)).where(Lesson.group_id == group.id))
        if lesson_count:
            raise ValidationError(
                message="Cannot delete a group that has lessons",
                context={"lessons": lesson_count},
            )

        await db.execute(delete(Group).where(Group.id == group.id))
        logger.info("Group %s deleted by %s", group_id, user.id)

    # ── Enrollment ────────────────────────────────────────────────────────

    async def enroll(
        self, db: AsyncSession, user: User, group_id: UUID, student_id: UUID
    ) -> EnrollmentResponse:
        group = await self._load_group(db, group_id)
        ensure_group_owner(user, group)

        student = (
            await db.execute(
                select(User)
                .where(User.id == student_id)
                .options(selectinload(User.enrolled_courses))
            )
        ).scalar_one_or_none()
        if student is None or student.role != Role.STUDENT:
            raise NotFoundError(resource="Student", resource_id=student_id, message="Student not found")

        if student.group_id == group.id:
            raise ConflictError(message="Student is already in this group")
        if student.group_id is not None:
            raise ConflictError(
                message="Student is already enrolled in another group",
                context={"group_id": str(student.group_id)},
            )
        if len(group.students) >= group.max_students:
            raise ValidationError(
                message="Group is full",
                context={"max_students": group.max_students},
            )

        student.group_id = group.id
        if group.course is not None and group.course not in student.enrolled_courses:
            student.enrolled_courses.append(group.course)
        await db.flush()
        await db.refresh(student)
        logger.info("Student %s enrolled in group %s", student.id, group.id)

        return EnrollmentResponse(
            message="Student enrolled successfully",
            student=UserResponse.model_validate(student),
        )

    async def unenroll(
        self, db: AsyncSession, user: User, group_id: UUID, student_id: UUID
    ) -> None:
        group = await self._load_group(db, group_id)
        ensure_group_owner(user, group)

        student = await db.get(User, student_id)
        if student is None or student.group_id != group.id:
            raise NotFoundError(
                resource="Student", resource_id=student_id, message="Student not found in this group"
            )

        attendance = await db.scalar(
            select(func.count(LessonAttendance.id)).where(LessonAttendance.student_id == student.id)
        )
        feedback = await db.scalar(
            select(func.count(LessonFeedback.id)).where(LessonFeedback.student_id == student.id)
        )
        if attendance or feedback:
            raise ValidationError(
                message="Cannot remove a student who has attendance or feedback records",
                context={"attendance": attendance, "feedback": feedback},
            )

        student.group_id = None
        await db.flush()
        logger.info("Student %s removed from group %s", student.id, group.id)


# ── Singleton Instance ────────────────────────────────────────────────────
group_service = GroupService()
