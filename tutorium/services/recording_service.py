"""
Tutorium Backend — Recording Service
======================================

What:  Published lesson recordings plus the dashboard's "recent" and
       "upcoming" lesson lists.
How:   A recording is an active COMPLETED lesson with a video link; there
       is no separate table. Visibility comes from access.lesson_scope_clause:
       admins see all, teachers their own, students their group's and their
       individual lessons.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from tutorium.models import (
    Attachment,
    Group,
    Lesson,
    LessonAttendance,
    LessonFeedback,
    LessonStatus,
    LessonType,
    Role,
    Topic,
    User,
    lesson_students,
)
from tutorium.models.base import as_utc, utcnow
from tutorium.schemas.common import GroupBrief, TopicBrief, UserBrief
from tutorium.schemas.lesson import (
    RecentLessonItem,
    RecordingCreateRequest,
    RecordingDetailResponse,
    RecordingResponse,
    RecordingUpdateRequest,
    UpcomingLessonItem,
)
from tutorium.services.access import can_view_lesson, ensure_lesson_owner, lesson_scope_clause
from tutorium.services.attendance_service import attendance_to_response
from tutorium.services.feedback_service import feedback_to_response
from tutorium.services.upload_service import attachment_to_response

logger = logging.getLogger(__name__)

DASHBOARD_LIMIT = 5


def recording_options():
    return (
        selectinload(Lesson.teacher),
        selectinload(Lesson.group),
        selectinload(Lesson.topic),
        selectinload(Lesson.next_topic),
        selectinload(Lesson.students),
        selectinload(Lesson.attachments),
    )


def is_recording_clause():
    return (
        Lesson.is_active.is_(True),
        Lesson.status == LessonStatus.COMPLETED,
        Lesson.youtube_link.is_not(None),
        Lesson.youtube_link != "",
    )


def recording_to_response(lesson: Lesson) -> RecordingResponse:
    return RecordingResponse(
        id=lesson.id,
        title=lesson.title,
        description=lesson.description,
        date=lesson.date,
        status=lesson.status,
        lesson_type=lesson.lesson_type,
        youtube_link=lesson.youtube_link,
        message=lesson.notes,
        materials=lesson.materials or [],
        is_published=lesson.is_published,
        view_count=lesson.view_count,
        average_rating=lesson.average_rating,
        total_feedback=lesson.total_feedback,
        teacher=UserBrief.model_validate(lesson.teacher),
        group=GroupBrief.model_validate(lesson.group) if lesson.group else None,
        topic=TopicBrief.model_validate(lesson.topic) if lesson.topic else None,
        next_topic=TopicBrief.model_validate(lesson.next_topic) if lesson.next_topic else None,
        students=[UserBrief.model_validate(s) for s in lesson.students],
        attachments=[attachment_to_response(a) for a in lesson.attachments],
        created_at=lesson.created_at,
    )


class RecordingService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, lesson_id: UUID, *options) -> Lesson:
        result = await db.execute(
            select(Lesson)
            .where(Lesson.id == lesson_id)
            .options(*recording_options(), *options)
            .execution_options(populate_existing=True)
        )
        lesson = result.scalar_one_or_none()
        if lesson is None:
            raise NotFoundError(resource="Recording", resource_id=lesson_id, message="Recording not found")
        return lesson

    async def _resolve_group(self, db: AsyncSession, user: User, group_id: Optional[UUID]) -> Group:
        if group_id is None:
            raise ValidationError(message="Group is required for group lessons", field="group_id")
        group = await db.get(Group, group_id)
        if group is None or (user.role == Role.TEACHER and group.teacher_id != user.id):
            raise ValidationError(message="Invalid group ID", field="group_id")
        return group

    async def _resolve_students(self, db: AsyncSession, student_ids: Sequence[UUID]) -> List[User]:
        wanted = set(student_ids)
        students = (
            await db.execute(
                select(User).where(User.id.in_(wanted), User.role == Role.STUDENT)
            )
        ).scalars().all()
        if len(students) != len(wanted):
            raise ValidationError(message="One or more student IDs are invalid", field="student_ids")
        return list(students)

    async def _ensure_topic(self, db: AsyncSession, topic_id: Optional[UUID]) -> None:
        if topic_id is not None and await db.get(Topic, topic_id) is None:
            raise NotFoundError(resource="Topic", resource_id=topic_id, message="Topic not found")

    # ══════════════════════════════════════════════════════════════════════
    # Recordings
    # ══════════════════════════════════════════════════════════════════════

    async def list_recordings(self, db: AsyncSession, user: User) -> List[RecordingResponse]:
        result = await db.execute(
            select(Lesson)
            .where(*is_recording_clause(), lesson_scope_clause(user))
            .options(*recording_options())
            .order_by(Lesson.date.desc())
        )
        return [recording_to_response(lesson) for lesson in result.scalars().all()]

    async def create_recording(
        self, db: AsyncSession, user: User, data: RecordingCreateRequest
    ) -> RecordingResponse:
        group_id = None
        students: List[User] = []
        if data.lesson_type == LessonType.GROUP:
            group_id = (await self._resolve_group(db, user, data.group_id)).id
        else:
            if not data.student_ids:
                raise ValidationError(
                    message="Individual lessons need at least one student", field="student_ids"
                )
            students = await self._resolve_students(db, data.student_ids)
        await self._ensure_topic(db, data.topic_id)
        await self._ensure_topic(db, data.next_topic_id)

        lesson = Lesson(
            title=data.title.strip(),
            description=data.description,
            date=as_utc(data.date),
            start_time="00:00",
            end_time="01:00",
            duration=60,
            status=LessonStatus.COMPLETED,
            lesson_type=data.lesson_type,
            teacher_id=user.id,
            group_id=group_id,
            topic_id=data.topic_id,
            next_topic_id=data.next_topic_id,
            youtube_link=data.youtube_link.strip(),
            notes=data.message,
            materials=list(data.materials),
            is_published=True,
            students=students,
        )
        db.add(lesson)
        await db.flush()
        logger.info("Teacher %s published recording %s (%s)", user.id, lesson.id, data.lesson_type.value)
        return recording_to_response(await self._load(db, lesson.id))

    async def get_recording(
        self, db: AsyncSession, user: User, lesson_id: UUID
    ) -> RecordingDetailResponse:
        lesson = await self._load(
            db,
            lesson_id,
            selectinload(Lesson.feedbacks).selectinload(LessonFeedback.student),
            selectinload(Lesson.feedbacks).selectinload(LessonFeedback.lesson),
            selectinload(Lesson.attendances).selectinload(LessonAttendance.student),
        )
        if not lesson.is_recording:
            raise NotFoundError(resource="Recording", resource_id=lesson_id, message="Recording not found")
        if not can_view_lesson(user, lesson):
            raise PermissionDeniedError(message="You do not have access to this recording")

        if user.role == Role.STUDENT:
            lesson.view_count = (lesson.view_count or 0) + 1
            await db.flush()

        feedbacks = sorted(lesson.feedbacks, key=lambda f: f.created_at, reverse=True)
        attendance = lesson.attendances
        if user.role == Role.STUDENT:
            attendance = [a for a in attendance if a.student_id == user.id]

        return RecordingDetailResponse(
            **recording_to_response(lesson).model_dump(),
            feedbacks=[feedback_to_response(f, user) for f in feedbacks],
            attendance=[attendance_to_response(a) for a in attendance],
        )

    async def update_recording(
        self, db: AsyncSession, user: User, lesson_id: UUID, data: RecordingUpdateRequest
    ) -> RecordingResponse:
        lesson = await self._load(db, lesson_id)
        ensure_lesson_owner(user, lesson)
        fields = data.model_fields_set

        if data.title is not None:
            lesson.title = data.title.strip()
        if data.description is not None:
            lesson.description = data.description
        if data.lesson_type is not None:
            lesson.lesson_type = data.lesson_type
        if data.date is not None:
            lesson.date = as_utc(data.date)
        if data.youtube_link is not None:
            lesson.youtube_link = data.youtube_link.strip() or None
        if data.message is not None:
            lesson.notes = data.message
        if data.materials is not None:
            lesson.materials = list(data.materials)
        if data.is_published is not None:
            lesson.is_published = data.is_published

        if "group_id" in fields:
            if data.group_id is None:
                lesson.group_id = None
            else:
                lesson.group_id = (await self._resolve_group(db, user, data.group_id)).id
        if data.student_ids is not None:
            lesson.students = await self._resolve_students(db, data.student_ids)
        if "topic_id" in fields:
            await self._ensure_topic(db, data.topic_id)
            lesson.topic_id = data.topic_id
        if "next_topic_id" in fields:
            await self._ensure_topic(db, data.next_topic_id)
            lesson.next_topic_id = data.next_topic_id

        await db.flush()
        logger.info("Recording %s updated by %s (fields=%s)", lesson.id, user.id, sorted(fields))
        return recording_to_response(await self._load(db, lesson.id))

    async def delete_recording(self, db: AsyncSession, user: User, lesson_id: UUID) -> None:
        lesson = await self._load(db, lesson_id)
        ensure_lesson_owner(user, lesson)

        feedback = await db.scalar(
            select(func.count(LessonFeedback.id)).where(LessonFeedback.lesson_id == lesson.id)
        )
        attendance = await db.scalar(
            select(func.count(LessonAttendance.id)).where(LessonAttendance.lesson_id == lesson.id)
        )
        attachments = await db.scalar(
            select(func.count(Attachment.id)).where(Attachment.lesson_id == lesson.id)
        )
        if feedback or attendance or attachments:
            raise ValidationError(
                message="Cannot delete a recording with feedback, attendance or attachments",
                context={"feedback": feedback, "attendance": attendance, "attachments": attachments},
            )

        await db.execute(delete(lesson_students).where(lesson_students.c.lesson_id == lesson.id))
        await db.execute(delete(Lesson).where(Lesson.id == lesson.id))
        logger.info("Recording %s deleted by %s", lesson_id, user.id)

    # ══════════════════════════════════════════════════════════════════════
    # Dashboard lists
    # ══════════════════════════════════════════════════════════════════════

    async def recent(self, db: AsyncSession, user: User) -> List[RecentLessonItem]:
        result = await db.execute(
            select(Lesson)
            .where(*is_recording_clause(), lesson_scope_clause(user))
            .options(
                *recording_options(),
                selectinload(Lesson.group).selectinload(Group.students),
            )
            .order_by(Lesson.date.desc())
            .limit(DASHBOARD_LIMIT)
        )

        items = []
        for lesson in result.scalars().all():
            student_names = None
            if user.role == Role.TEACHER:
                learners = lesson.group.students if lesson.group else lesson.students
                student_names = [s.name for s in learners]
            items.append(
                RecentLessonItem(
                    id=lesson.id,
                    title=lesson.title,
                    description=lesson.description,
                    date=lesson.date,
                    teacher=lesson.teacher.name,
                    message=lesson.notes or "Lesson completed",
                    files_count=len(lesson.attachments),
                    has_recording=bool(lesson.youtube_link),
                    recording_url=lesson.youtube_link,
                    topic=lesson.topic.name if lesson.topic else None,
                    group_name=lesson.group.name if lesson.group else None,
                    student_names=student_names,
                )
            )
        return items

    async def upcoming(self, db: AsyncSession, user: User) -> List[UpcomingLessonItem]:
        result = await db.execute(
            select(Lesson)
            .where(
                Lesson.is_active.is_(True),
                Lesson.status != LessonStatus.CANCELLED,
                Lesson.date >= utcnow(),
                lesson_scope_clause(user),
            )
            .options(selectinload(Lesson.teacher), selectinload(Lesson.group), selectinload(Lesson.topic))
            .order_by(Lesson.date.asc())
            .limit(DASHBOARD_LIMIT)
        )
        return [
            UpcomingLessonItem(
                id=lesson.id,
                title=lesson.title,
                date=lesson.date,
                start_time=lesson.start_time,
                teacher=lesson.teacher.name,
                duration_minutes=lesson.duration,
                meeting_link=lesson.youtube_link,
                type=lesson.lesson_type.value.lower(),
                group_name=lesson.group.name if lesson.group else None,
                topic=lesson.topic.name if lesson.topic else None,
            )
            for lesson in result.scalars().all()
        ]


# ── Singleton Instance ────────────────────────────────────────────────────
recording_service = RecordingService()
