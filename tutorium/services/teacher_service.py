"""
Tutorium Backend — Teacher Dashboard Service
==============================================

What:  A teacher's groups (with real course progress), recent lessons and
       headline statistics.
Who:   routes/teachers.py; admins may look at any teacher, a teacher only
       at themselves.

Engagement rate:
    each attendance record on a completed lesson scores
        PRESENT 100 · PARTIAL 75 · LATE 60 · EXCUSED 50 · ABSENT 0
    plus min(20, participation) when participation > 0;
    the rate is the rounded mean score.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, PermissionDeniedError
from tutorium.models import (
    AttendanceStatus,
    Group,
    Lesson,
    LessonAttendance,
    LessonFeedback,
    LessonStatus,
    Role,
    User,
)
from tutorium.models.base import utcnow
from tutorium.schemas.common import CourseBrief, GroupBrief, LessonBrief, TopicBrief, UserBrief
from tutorium.schemas.teacher import (
    StatsGroup,
    StatsRecentLesson,
    TeacherGroupItem,
    TeacherLessonItem,
    TeacherStatsResponse,
)
from tutorium.services.feedback_service import feedback_to_response
from tutorium.services.progress_service import progress_service

logger = logging.getLogger(__name__)

RECENT_LESSONS_LIMIT = 20
STATS_RECENT_LIMIT = 5

ATTENDANCE_SCORES = {
    AttendanceStatus.PRESENT: 100,
    AttendanceStatus.PARTIAL: 75,
    AttendanceStatus.LATE: 60,
    AttendanceStatus.EXCUSED: 50,
    AttendanceStatus.ABSENT: 0,
}
PARTICIPATION_BONUS_CAP = 20


def attendance_score(status: AttendanceStatus, participation: Optional[int]) -> int:
    score = ATTENDANCE_SCORES.get(status, 0)
    if participation and participation > 0:
        score += min(PARTICIPATION_BONUS_CAP, participation)
    return score


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """[start of this month, start of next month) in now's timezone."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def lesson_student_count(lesson: Lesson) -> int:
    """Group lessons count the group's students; individual ones their assignees."""
    if lesson.group is not None:
        return len(lesson.group.students)
    return len(lesson.students)


class TeacherService:

    async def _ensure_access(self, db: AsyncSession, user: User, teacher_id: UUID) -> User:
        if user.role == Role.TEACHER and user.id != teacher_id:
            raise PermissionDeniedError(message="You can only view your own dashboard")
        teacher = await db.get(User, teacher_id)
        if teacher is None or teacher.role not in (Role.TEACHER, Role.ADMIN):
            raise NotFoundError(resource="Teacher", resource_id=teacher_id, message="Teacher not found")
        return teacher

    async def _active_groups(self, db: AsyncSession, teacher_id: UUID) -> List[Group]:
        result = await db.execute(
            select(Group)
            .where(Group.teacher_id == teacher_id, Group.is_active.is_(True))
            .options(selectinload(Group.course), selectinload(Group.students))
            .order_by(Group.name)
        )
        return list(result.scalars().all())

    # ── Groups ────────────────────────────────────────────────────────────

    async def groups(self, db: AsyncSession, user: User, teacher_id: UUID) -> List[TeacherGroupItem]:
        await self._ensure_access(db, user, teacher_id)

        items = []
        for group in await self._active_groups(db, teacher_id):
            lesson_count, _ = await progress_service.count_lessons(db, group.id)
            last_lesson = (
                await db.execute(
                    select(Lesson)
                    .where(
                        Lesson.group_id == group.id,
                        Lesson.is_active.is_(True),
                        Lesson.status == LessonStatus.COMPLETED,
                    )
                    .order_by(Lesson.date.desc())
                    .limit(1)
                )
            ).scalar_one_or_none()
            progress = await progress_service.get_course_progress(db, group.course_id, group.id)

            items.append(
                TeacherGroupItem(
                    id=group.id,
                    name=group.name,
                    level=group.level,
                    max_students=group.max_students,
                    course=CourseBrief.model_validate(group.course) if group.course else None,
                    students=[UserBrief.model_validate(s) for s in group.students],
                    student_count=len(group.students),
                    lesson_count=lesson_count,
                    last_lesson=LessonBrief.model_validate(last_lesson) if last_lesson else None,
                    progress=progress.progress_percent,
                )
            )
        return items

    # ── Lessons ───────────────────────────────────────────────────────────

    async def lessons(
        self,
        db: AsyncSession,
        user: User,
        teacher_id: UUID,
        status: Optional[LessonStatus] = None,
    ) -> List[TeacherLessonItem]:
        await self._ensure_access(db, user, teacher_id)

        stmt = (
            select(Lesson)
            .where(Lesson.teacher_id == teacher_id, Lesson.is_active.is_(True))
            .options(
                selectinload(Lesson.group).selectinload(Group.students),
                selectinload(Lesson.topic),
                selectinload(Lesson.students),
                selectinload(Lesson.feedbacks).selectinload(LessonFeedback.student),
                selectinload(Lesson.feedbacks).selectinload(LessonFeedback.lesson),
            )
            .order_by(Lesson.date.desc())
            .limit(RECENT_LESSONS_LIMIT)
        )
        if status is not None:
            stmt = stmt.where(Lesson.status == status)

        items = []
        for lesson in (await db.execute(stmt)).scalars().all():
            feedbacks = sorted(lesson.feedbacks, key=lambda f: f.created_at, reverse=True)
            items.append(
                TeacherLessonItem(
                    id=lesson.id,
                    title=lesson.title,
                    date=lesson.date,
                    status=lesson.status,
                    lesson_type=lesson.lesson_type,
                    youtube_link=lesson.youtube_link,
                    group=GroupBrief.model_validate(lesson.group) if lesson.group else None,
                    topic=TopicBrief.model_validate(lesson.topic) if lesson.topic else None,
                    student_count=lesson_student_count(lesson),
                    feedback_count=len(feedbacks),
                    average_rating=round(lesson.average_rating or 0.0, 1),
                    feedbacks=[feedback_to_response(f, user) for f in feedbacks],
                )
            )
        return items

    # ── Stats ─────────────────────────────────────────────────────────────

    async def stats(self, db: AsyncSession, user: User, teacher_id: UUID) -> TeacherStatsResponse:
        await self._ensure_access(db, user, teacher_id)
        month_start, next_month = month_bounds(utcnow())

        own_lessons = (Lesson.teacher_id == teacher_id, Lesson.is_active.is_(True))
        completed = (*own_lessons, Lesson.status == LessonStatus.COMPLETED)

        total_lessons = await db.scalar(select(func.count(Lesson.id)).where(*own_lessons)) or 0
        lessons_this_month = await db.scalar(
            select(func.count(Lesson.id)).where(
                *own_lessons, Lesson.date >= month_start, Lesson.date < next_month
            )
        ) or 0

        groups = await self._active_groups(db, teacher_id)
        total_students = sum(len(g.students) for g in groups)
        groups_this_month = set(
            (
                await db.execute(
                    select(Lesson.group_id).where(
                        *own_lessons,
                        Lesson.group_id.is_not(None),
                        Lesson.date >= month_start,
                        Lesson.date < next_month,
                    )
                )
            ).scalars().all()
        )
        students_this_month = sum(len(g.students) for g in groups if g.id in groups_this_month)

        ratings = (
            await db.execute(
                select(LessonFeedback.rating)
                .join(Lesson, LessonFeedback.lesson_id == Lesson.id)
                .where(*own_lessons)
            )
        ).scalars().all()
        average_rating = round(sum(ratings) / len(ratings), 1) if ratings else 0.0
        positive_reactions = sum(1 for r in ratings if r >= 4)

        attendance = (
            await db.execute(
                select(LessonAttendance.status, LessonAttendance.participation)
                .join(Lesson, LessonAttendance.lesson_id == Lesson.id)
                .where(*completed)
            )
        ).all()
        scores = [attendance_score(status, participation) for status, participation in attendance]
        engagement_rate = round(sum(scores) / len(scores)) if scores else 0

        minutes = await db.scalar(select(func.sum(Lesson.duration)).where(*completed)) or 0

        recent = (
            await db.execute(
                select(Lesson)
                .where(*completed)
                .options(
                    selectinload(Lesson.group).selectinload(Group.students),
                    selectinload(Lesson.students),
                )
                .order_by(Lesson.date.desc())
                .limit(STATS_RECENT_LIMIT)
            )
        ).scalars().all()

        return TeacherStatsResponse(
            total_lessons=total_lessons,
            lessons_this_month=lessons_this_month,
            total_students=total_students,
            students_this_month=students_this_month,
            average_rating=average_rating,
            total_feedback=len(ratings),
            total_reactions=len(ratings),
            positive_reactions=positive_reactions,
            total_attendance_records=len(attendance),
            engagement_rate=engagement_rate,
            total_study_hours=round(minutes / 60),
            recent_lessons=[
                StatsRecentLesson(
                    id=lesson.id,
                    title=lesson.title,
                    date=lesson.date,
                    group_name=lesson.group.name if lesson.group else "Individual lesson",
                    student_count=lesson_student_count(lesson),
                )
                for lesson in recent
            ],
            groups=[
                StatsGroup(id=g.id, name=g.name, level=g.level, student_count=len(g.students))
                for g in groups
            ],
        )


# ── Singleton Instance ────────────────────────────────────────────────────
teacher_service = TeacherService()
