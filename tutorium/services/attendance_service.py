"""
Tutorium Backend — Attendance Service
=======================================

What:  Teachers record who attended a lesson; anyone reads the records
       they are entitled to.
How:   Recording is an upsert per (lesson, student), so submitting the
       register twice corrects it instead of failing. Students only ever
       see their own rows.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from tutorium.models import Lesson, LessonAttendance, Role, User
from tutorium.schemas.activity import (
    AttendanceRecordRequest,
    AttendanceResponse,
    AttendanceUpdateRequest,
)
from tutorium.schemas.common import LessonBrief, UserBrief
from tutorium.services.access import ensure_lesson_owner

logger = logging.getLogger(__name__)


def attendance_to_response(
    record: LessonAttendance, with_student: bool = True, with_lesson: bool = False
) -> AttendanceResponse:
    return AttendanceResponse(
        id=record.id,
        lesson_id=record.lesson_id,
        student_id=record.student_id,
        status=record.status,
        notes=record.notes,
        participation=record.participation,
        created_at=record.created_at,
        updated_at=record.updated_at,
        student=UserBrief.model_validate(record.student) if with_student else None,
        lesson=LessonBrief.model_validate(record.lesson) if with_lesson else None,
    )


class AttendanceService:

    async def _load_lesson(self, db: AsyncSession, lesson_id: UUID) -> Lesson:
        lesson = await db.get(Lesson, lesson_id)
        if lesson is None:
            raise NotFoundError(resource="Lesson", resource_id=lesson_id, message="Lesson not found")
        return lesson

    async def _load_record(self, db: AsyncSession, record_id: UUID) -> LessonAttendance:
        result = await db.execute(
            select(LessonAttendance)
            .where(LessonAttendance.id == record_id)
            .options(selectinload(LessonAttendance.student), selectinload(LessonAttendance.lesson))
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError(
                resource="Attendance", resource_id=record_id, message="Attendance record not found"
            )
        return record

    # ── Mutations ─────────────────────────────────────────────────────────

    async def record(
        self, db: AsyncSession, user: User, data: AttendanceRecordRequest
    ) -> List[AttendanceResponse]:
        lesson = await self._load_lesson(db, data.lesson_id)
        ensure_lesson_owner(user, lesson)

        records: List[LessonAttendance] = []
        for entry in data.attendance:
            student = await db.get(User, entry.student_id)
            if student is None or student.role != Role.STUDENT:
                raise ValidationError(
                    message="Invalid student ID",
                    field="attendance",
                    context={"student_id": str(entry.student_id)},
                )

            record = (
                await db.execute(
                    select(LessonAttendance).where(
                        LessonAttendance.lesson_id == lesson.id,
                        LessonAttendance.student_id == student.id,
                    )
                )
            ).scalar_one_or_none()
            if record is None:
                record = LessonAttendance(lesson_id=lesson.id, student_id=student.id)
                db.add(record)
            record.status = entry.status
            record.notes = entry.notes
            record.participation = entry.participation
            records.append(record)

        await db.flush()
        logger.info("Recorded attendance for %d student(s) on lesson %s", len(records), lesson.id)

        ids = [r.id for r in records]
        result = await db.execute(
            select(LessonAttendance)
            .where(LessonAttendance.id.in_(ids))
            .options(selectinload(LessonAttendance.student))
            .execution_options(populate_existing=True)
        )
        by_id = {r.id: r for r in result.scalars().all()}
        return [attendance_to_response(by_id[i]) for i in ids]

    async def update(
        self, db: AsyncSession, user: User, record_id: UUID, data: AttendanceUpdateRequest
    ) -> AttendanceResponse:
        record = await self._load_record(db, record_id)
        ensure_lesson_owner(user, record.lesson)

        record.status = data.status
        record.notes = data.notes
        record.participation = data.participation
        await db.flush()
        return attendance_to_response(await self._load_record(db, record_id), with_lesson=True)

    async def delete(self, db: AsyncSession, user: User, record_id: UUID) -> None:
        record = await self._load_record(db, record_id)
        ensure_lesson_owner(user, record.lesson)
        await db.delete(record)
        await db.flush()
        logger.info("Attendance record %s deleted by %s", record_id, user.id)

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_records(
        self,
        db: AsyncSession,
        user: User,
        lesson_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
    ) -> List[AttendanceResponse]:
        if lesson_id is None and student_id is None:
            raise ValidationError(message="Either lesson_id or student_id is required")

        if lesson_id is not None:
            stmt = (
                select(LessonAttendance)
                .where(LessonAttendance.lesson_id == lesson_id)
                .options(selectinload(LessonAttendance.student))
                .order_by(LessonAttendance.created_at)
            )
            if user.role == Role.STUDENT:
                stmt = stmt.where(LessonAttendance.student_id == user.id)
            elif student_id is not None:
                stmt = stmt.where(LessonAttendance.student_id == student_id)
            records = (await db.execute(stmt)).scalars().all()
            return [attendance_to_response(r) for r in records]

        if user.role == Role.STUDENT and student_id != user.id:
            raise PermissionDeniedError(message="You can only view your own attendance")

        records = (
            await db.execute(
                select(LessonAttendance)
                .join(Lesson, LessonAttendance.lesson_id == Lesson.id)
                .where(LessonAttendance.student_id == student_id)
                .options(selectinload(LessonAttendance.lesson))
                .order_by(Lesson.date.desc())
            )
        ).scalars().all()
        return [attendance_to_response(r, with_student=False, with_lesson=True) for r in records]


# ── Singleton Instance ────────────────────────────────────────────────────
attendance_service = AttendanceService()
