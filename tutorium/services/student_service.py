"""
Tutorium Backend — Student Management Service
===============================================

What:  Staff-side CRUD for student accounts.
How:   A teacher's reach is their own groups: they list, view and edit only
       students in groups they teach, and may only place students into
       those groups. Admins see every student and may use any group.
       New students get a generated password that is returned once.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.auth.password import generate_password, hash_password
from tutorium.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from tutorium.models import (
    Group,
    LessonAttendance,
    LessonFeedback,
    Role,
    StudentProductEnrollment,
    User,
    course_enrollments,
    lesson_students,
)
from tutorium.schemas.common import CourseBrief, GroupBrief, LessonBrief, UserBrief
from tutorium.schemas.group import (
    StudentAttendanceItem,
    StudentCreateRequest,
    StudentCreateResponse,
    StudentDetailResponse,
    StudentFeedbackItem,
    StudentGroupInfo,
    StudentListItem,
    StudentUpdateRequest,
)
from tutorium.schemas.user import UserResponse
from tutorium.services.auth_service import find_user_by_email
from tutorium.services.group_service import count_students

logger = logging.getLogger(__name__)

RECENT_FEEDBACK_LIMIT = 5
RECENT_ATTENDANCE_LIMIT = 10


def student_to_item(student: User) -> StudentListItem:
    """`student.group` must be loaded."""
    return StudentListItem(
        **UserResponse.model_validate(student).model_dump(),
        group=GroupBrief.model_validate(student.group) if student.group else None,
    )


class StudentService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_student(self, db: AsyncSession, student_id: UUID, *options) -> User:
        result = await db.execute(
            select(User)
            .where(User.id == student_id)
            .options(selectinload(User.group), *options)
            .execution_options(populate_existing=True)
        )
        student = result.scalar_one_or_none()
        if student is None or student.role != Role.STUDENT:
            raise NotFoundError(resource="Student", resource_id=student_id, message="Student not found")
        return student

    @staticmethod
    def _ensure_can_manage(user: User, student: User) -> None:
        if user.role != Role.TEACHER:
            return
        if student.group is None or student.group.teacher_id != user.id:
            raise PermissionDeniedError(message="You can only manage students in your own groups")

    async def _resolve_group(
        self, db: AsyncSession, user: User, group_id: UUID, missing_is_not_found: bool = False
    ) -> Group:
        """Target group for placing a student; teachers may only use their own."""
        group = await db.get(Group, group_id)
        if group is None:
            if not missing_is_not_found:
                raise ValidationError(message="Invalid group ID", field="group_id")
            raise NotFoundError(resource="Group", resource_id=group_id, message="Group not found")
        if user.role == Role.TEACHER and group.teacher_id != user.id:
            raise ValidationError(message="Invalid group ID", field="group_id")
        return group

    async def _ensure_room(self, db: AsyncSession, group: Group) -> None:
        if await count_students(db, group.id) >= group.max_students:
            raise ValidationError(
                message="Group is full",
                context={"max_students": group.max_students},
            )

    # ══════════════════════════════════════════════════════════════════════
    # Queries
    # ══════════════════════════════════════════════════════════════════════

    async def list_students(self, db: AsyncSession, user: User) -> List[StudentListItem]:
        stmt = (
            select(User)
            .where(User.role == Role.STUDENT)
            .options(selectinload(User.group))
            .order_by(User.name)
        )
        if user.role == Role.TEACHER:
            stmt = stmt.join(Group, User.group_id == Group.id).where(Group.teacher_id == user.id)
        result = await db.execute(stmt)
        return [student_to_item(s) for s in result.scalars().all()]

    async def get_student(self, db: AsyncSession, user: User, student_id: UUID) -> StudentDetailResponse:
        student = await self._load_student(
            db,
            student_id,
            selectinload(User.group).selectinload(Group.teacher),
            selectinload(User.group).selectinload(Group.course),
            selectinload(User.enrolled_courses),
        )
        self._ensure_can_manage(user, student)

        feedbacks = (
            await db.execute(
                select(LessonFeedback)
                .where(LessonFeedback.student_id == student.id)
                .options(selectinload(LessonFeedback.lesson))
                .order_by(LessonFeedback.created_at.desc())
                .limit(RECENT_FEEDBACK_LIMIT)
            )
        ).scalars().all()
        attendance = (
            await db.execute(
                select(LessonAttendance)
                .where(LessonAttendance.student_id == student.id)
                .options(selectinload(LessonAttendance.lesson))
                .order_by(LessonAttendance.created_at.desc())
                .limit(RECENT_ATTENDANCE_LIMIT)
            )
        ).scalars().all()

        group_info: Optional[StudentGroupInfo] = None
        if student.group is not None:
            group_info = StudentGroupInfo(
                id=student.group.id,
                name=student.group.name,
                level=student.group.level,
                teacher=UserBrief.model_validate(student.group.teacher),
                course=CourseBrief.model_validate(student.group.course) if student.group.course else None,
            )

        return StudentDetailResponse(
            **UserResponse.model_validate(student).model_dump(),
            group=group_info,
            enrolled_courses=[CourseBrief.model_validate(c) for c in student.enrolled_courses],
            recent_feedbacks=[
                StudentFeedbackItem(
                    id=f.id,
                    rating=f.rating,
                    comment=f.comment,
                    created_at=f.created_at,
                    lesson=LessonBrief.model_validate(f.lesson),
                )
                for f in feedbacks
            ],
            recent_attendance=[
                StudentAttendanceItem(
                    id=a.id,
                    status=a.status,
                    notes=a.notes,
                    participation=a.participation,
                    created_at=a.created_at,
                    lesson=LessonBrief.model_validate(a.lesson),
                )
                for a in attendance
            ],
        )

    # ══════════════════════════════════════════════════════════════════════
    # Mutations
    # ══════════════════════════════════════════════════════════════════════

    async def create_student(
        self, db: AsyncSession, user: User, data: StudentCreateRequest
    ) -> StudentCreateResponse:
        if await find_user_by_email(db, data.email):
            raise ConflictError(
                message="User with this email already exists",
                context={"email": data.email},
            )

        if data.group_id is not None:
            group = await self._resolve_group(db, user, data.group_id)
            await self._ensure_room(db, group)

        password = generate_password()
        student = User(
            name=data.name.strip(),
            email=data.email.lower(),
            password_hash=hash_password(password),
            role=Role.STUDENT,
            level=data.level,
            avatar=data.avatar,
            group_id=data.group_id,
        )
        db.add(student)
        await db.flush()
        logger.info("User %s created student %s", user.id, student.id)

        student = await self._load_student(db, student.id)
        return StudentCreateResponse(
            message="Student created successfully",
            student=student_to_item(student),
            default_password=password,
        )

    async def update_student(
        self, db: AsyncSession, user: User, student_id: UUID, data: StudentUpdateRequest
    ) -> StudentListItem:
        student = await self._load_student(db, student_id)
        self._ensure_can_manage(user, student)
        fields = data.model_fields_set

        if data.email is not None and data.email.lower() != student.email:
            existing = await find_user_by_email(db, data.email)
            if existing is not None and existing.id != student.id:
                raise ValidationError(message="Email already exists", field="email")
            student.email = data.email.lower()

        if "group_id" in fields and data.group_id != student.group_id:
            if data.group_id is None:
                student.group_id = None
            else:
                group = await self._resolve_group(db, user, data.group_id, missing_is_not_found=True)
                await self._ensure_room(db, group)
                student.group_id = group.id

        if data.name is not None:
            student.name = data.name.strip()
        if "level" in fields:
            student.level = data.level
        if data.avatar is not None:
            student.avatar = data.avatar
        if data.is_active is not None:
            student.is_active = data.is_active

        await db.flush()
        logger.info("Student %s updated by %s (fields=%s)", student.id, user.id, sorted(fields))
        return student_to_item(await self._load_student(db, student.id))

    async def delete_student(self, db: AsyncSession, user: User, student_id: UUID) -> None:
        student = await self._load_student(db, student_id)
        self._ensure_can_manage(user, student)

        feedback = await db.scalar(
            select(func.count(LessonFeedback.id)).where(LessonFeedback.student_id == student.id)
        )
        attendance = await db.scalar(
            select(func.count(LessonAttendance.id)).where(LessonAttendance.student_id == student.id)
        )
        lessons = await db.scalar(
            select(func.count()).select_from(lesson_students).where(lesson_students.c.user_id == student.id)
        )
        if feedback or attendance or lessons:
            raise ValidationError(
                message="Cannot delete a student with feedback, attendance or lesson records",
                context={"feedback": feedback, "attendance": attendance, "lessons": lessons},
            )

        await db.execute(
            delete(StudentProductEnrollment).where(StudentProductEnrollment.student_id == student.id)
        )
        await db.execute(delete(course_enrollments).where(course_enrollments.c.user_id == student.id))
        await db.execute(delete(User).where(User.id == student.id))
        logger.info("Student %s deleted by %s", student_id, user.id)


# ── Singleton Instance ────────────────────────────────────────────────────
student_service = StudentService()
