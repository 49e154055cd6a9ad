"""
Tutorium Backend — Individual Lesson Service
==============================================

What:  Admin scheduling of one-to-one (or small private) lessons.
How:   Rows live in `lessons` with lesson_type INDIVIDUAL; assigned
       students go through `lesson_students`. Deleting only deactivates
       the lesson, so attendance and feedback stay attached.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, ValidationError
from tutorium.models import Course, Lesson, LessonStatus, LessonType, Role, Topic, User
from tutorium.models.base import as_utc
from tutorium.schemas.common import CourseBrief, GroupBrief, UserBrief
from tutorium.schemas.lesson import (
    IndividualLessonCreateRequest,
    IndividualLessonResponse,
    IndividualLessonTopic,
    IndividualLessonUpdateRequest,
)

logger = logging.getLogger(__name__)


def _options():
    return (
        selectinload(Lesson.teacher),
        selectinload(Lesson.students),
        selectinload(Lesson.topic).selectinload(Topic.course),
        selectinload(Lesson.group),
    )


def _to_response(lesson: Lesson) -> IndividualLessonResponse:
    topic = None
    if lesson.topic is not None:
        topic = IndividualLessonTopic(
            id=lesson.topic.id,
            name=lesson.topic.name,
            order=lesson.topic.order,
            course=CourseBrief.model_validate(lesson.topic.course),
        )
    return IndividualLessonResponse(
        id=lesson.id,
        title=lesson.title,
        description=lesson.description,
        date=lesson.date,
        start_time=lesson.start_time,
        end_time=lesson.end_time,
        duration=lesson.duration,
        status=lesson.status,
        lesson_type=lesson.lesson_type,
        notes=lesson.notes,
        materials=lesson.materials or [],
        youtube_link=lesson.youtube_link,
        is_active=lesson.is_active,
        teacher=UserBrief.model_validate(lesson.teacher),
        students=[UserBrief.model_validate(s) for s in lesson.students],
        topic=topic,
        group=GroupBrief.model_validate(lesson.group) if lesson.group else None,
        created_at=lesson.created_at,
    )


class LessonService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, lesson_id: UUID) -> Lesson:
        result = await db.execute(
            select(Lesson)
            .where(Lesson.id == lesson_id, Lesson.lesson_type == LessonType.INDIVIDUAL)
            .options(*_options())
            .execution_options(populate_existing=True)
        )
        lesson = result.scalar_one_or_none()
        if lesson is None:
            raise NotFoundError(resource="Lesson", resource_id=lesson_id, message="Lesson not found")
        return lesson

    async def _resolve_teacher(self, db: AsyncSession, teacher_id: UUID) -> User:
        teacher = await db.get(User, teacher_id)
        if teacher is None or teacher.role != Role.TEACHER:
            raise NotFoundError(resource="Teacher", resource_id=teacher_id, message="Teacher not found")
        return teacher

    async def _resolve_students(self, db: AsyncSession, student_ids: Sequence[UUID]) -> List[User]:
        wanted = set(student_ids)
        if not wanted:
            raise ValidationError(message="At least one student is required", field="student_ids")
        students = (
            await db.execute(select(User).where(User.id.in_(wanted), User.role == Role.STUDENT))
        ).scalars().all()
        if len(students) != len(wanted):
            raise ValidationError(message="One or more student IDs are invalid", field="student_ids")
        return list(students)

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_lessons(
        self,
        db: AsyncSession,
        user: User,
        student_id: Optional[UUID] = None,
        teacher_id: Optional[UUID] = None,
        course_id: Optional[UUID] = None,
    ) -> List[IndividualLessonResponse]:
        stmt = (
            select(Lesson)
            .where(Lesson.is_active.is_(True), Lesson.lesson_type == LessonType.INDIVIDUAL)
            .options(*_options())
            .order_by(Lesson.date.desc())
        )
        if user.role == Role.TEACHER:
            stmt = stmt.where(Lesson.teacher_id == user.id)
        if teacher_id is not None:
            stmt = stmt.where(Lesson.teacher_id == teacher_id)
        if student_id is not None:
            stmt = stmt.where(Lesson.students.any(User.id == student_id))
        if course_id is not None:
            stmt = stmt.where(Lesson.topic.has(Topic.course_id == course_id))
        result = await db.execute(stmt)
        return [_to_response(lesson) for lesson in result.scalars().all()]

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_lesson(
        self, db: AsyncSession, data: IndividualLessonCreateRequest
    ) -> IndividualLessonResponse:
        await self._resolve_teacher(db, data.teacher_id)
        if await db.get(Course, data.course_id) is None:
            raise NotFoundError(resource="Course", resource_id=data.course_id, message="Course not found")
        students = await self._resolve_students(db, data.student_ids)

        if data.topic_id is not None:
            topic = await db.get(Topic, data.topic_id)
            if topic is None or topic.course_id != data.course_id:
                raise ValidationError(
                    message="Topic does not belong to the selected course", field="topic_id"
                )

        lesson = Lesson(
            title=data.title.strip(),
            description=data.description,
            date=as_utc(data.date),
            start_time=data.start_time,
            end_time=data.end_time,
            duration=data.duration,
            status=LessonStatus.SCHEDULED,
            lesson_type=LessonType.INDIVIDUAL,
            teacher_id=data.teacher_id,
            topic_id=data.topic_id,
            notes=data.notes,
            materials=list(data.materials),
            students=students,
        )
        db.add(lesson)
        await db.flush()
        logger.info(
            "Scheduled individual lesson %s for teacher %s with %d student(s)",
            lesson.id, data.teacher_id, len(students),
        )
        return _to_response(await self._load(db, lesson.id))

    async def update_lesson(
        self, db: AsyncSession, lesson_id: UUID, data: IndividualLessonUpdateRequest
    ) -> IndividualLessonResponse:
        lesson = await self._load(db, lesson_id)
        fields = data.model_fields_set

        if data.teacher_id is not None:
            lesson.teacher_id = (await self._resolve_teacher(db, data.teacher_id)).id
        if data.student_ids is not None:
            lesson.students = await self._resolve_students(db, data.student_ids)
        if "topic_id" in fields:
            if data.topic_id is not None and await db.get(Topic, data.topic_id) is None:
                raise NotFoundError(resource="Topic", resource_id=data.topic_id, message="Topic not found")
            lesson.topic_id = data.topic_id
        if data.date is not None:
            lesson.date = as_utc(data.date)
        if data.title is not None:
            lesson.title = data.title.strip()

        for field in (
            "start_time", "end_time", "duration", "description",
            "materials", "notes", "status", "youtube_link",
        ):
            value = getattr(data, field)
            if value is not None:
                setattr(lesson, field, value)

        if lesson.end_time <= lesson.start_time:
            raise ValidationError(message="end_time must be later than start_time", field="end_time")

        await db.flush()
        logger.info("Individual lesson %s updated (fields=%s)", lesson.id, sorted(fields))
        return _to_response(await self._load(db, lesson.id))

    async def delete_lesson(self, db: AsyncSession, lesson_id: UUID) -> None:
        lesson = await self._load(db, lesson_id)
        lesson.is_active = False
        await db.flush()
        logger.info("Individual lesson %s deactivated", lesson_id)


# ── Singleton Instance ────────────────────────────────────────────────────
lesson_service = LessonService()
