"""
Tutorium Backend — Course Progress Service
============================================

What:  Measures how far a group (or a student across groups) has moved
       through a course, and which topic comes next.
Who:   Used by course cards (/api/courses/user), group lists
       (/api/groups/user) and the teacher dashboard.

How progress is measured:
    total_topics      active topics of the course
    completed_topics  distinct topics covered by COMPLETED, active lessons
                      of the course's groups (or one group)
    progress_percent  round(completed / total * 100), capped at 100

Next topic:
    1. the `next_topic_id` the teacher set on the most recent completed lesson
    2. otherwise the first active topic, by order, not yet covered
    3. null before the first completed lesson, or when everything is covered
"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.models import Group, Lesson, LessonStatus, Topic, User
from tutorium.schemas.course import CourseProgressAcrossGroups, ProgressResponse

logger = logging.getLogger(__name__)


def _percent(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, round(completed / total * 100))


class ProgressService:

    async def _active_topics(self, db: AsyncSession, course_id: UUID) -> List[Topic]:
        result = await db.execute(
            select(Topic)
            .where(Topic.course_id == course_id, Topic.is_active.is_(True))
            .order_by(Topic.order)
        )
        return list(result.scalars().all())

    def _completed_lessons_stmt(self):
        return (
            select(Lesson)
            .join(Group, Lesson.group_id == Group.id)
            .where(
                Lesson.status == LessonStatus.COMPLETED,
                Lesson.is_active.is_(True),
                Lesson.topic_id.is_not(None),
            )
            .options(selectinload(Lesson.topic), selectinload(Lesson.next_topic))
        )

    @staticmethod
    def _first_uncovered(topics: Sequence[Topic], covered: set) -> Optional[Topic]:
        for topic in topics:
            if topic.id not in covered:
                return topic
        return None

    async def get_course_progress(
        self,
        db: AsyncSession,
        course_id: Optional[UUID],
        group_id: Optional[UUID] = None,
    ) -> ProgressResponse:
        """Progress through a course, optionally limited to one group's lessons."""
        if course_id is None:
            return ProgressResponse()

        topics = await self._active_topics(db, course_id)
        if not topics:
            return ProgressResponse()

        stmt = self._completed_lessons_stmt().where(Group.course_id == course_id)
        if group_id is not None:
            stmt = stmt.where(Lesson.group_id == group_id)
        lessons = (await db.execute(stmt.order_by(Lesson.date.desc()))).scalars().all()

        active_ids = {topic.id for topic in topics}
        lessons = [lesson for lesson in lessons if lesson.topic_id in active_ids]
        covered = {lesson.topic_id for lesson in lessons}
        progress = ProgressResponse(
            progress_percent=_percent(len(covered), len(topics)),
            completed_topics=len(covered),
            total_topics=len(topics),
        )
        if not lessons:
            return progress

        latest = lessons[0]
        progress.last_studied_topic = latest.topic.name if latest.topic else None

        next_topic = latest.next_topic
        if next_topic is None or next_topic.id not in active_ids:
            next_topic = self._first_uncovered(topics, covered)
        if next_topic is not None:
            progress.next_topic = next_topic.name
            progress.next_topic_id = next_topic.id
        return progress

    async def get_group_progress(self, db: AsyncSession, group_id: UUID) -> ProgressResponse:
        group = await db.get(Group, group_id)
        if group is None or group.course_id is None:
            return ProgressResponse()
        return await self.get_course_progress(db, group.course_id, group_id)

    async def get_course_progress_across_groups(
        self, db: AsyncSession, course_id: UUID, user_id: UUID
    ) -> CourseProgressAcrossGroups:
        """
        Progress of one user through a course over every active group of
        that course they belong to (as a student) or teach.
        `last_studied_topic` is the furthest covered topic by order.
        """
        user = await db.get(User, user_id)
        conditions = [Group.teacher_id == user_id]
        if user is not None and user.group_id is not None:
            conditions.append(Group.id == user.group_id)

        group_ids = (
            await db.execute(
                select(Group.id).where(
                    Group.course_id == course_id,
                    Group.is_active.is_(True),
                    or_(*conditions),
                )
            )
        ).scalars().all()
        if not group_ids:
            return CourseProgressAcrossGroups()

        topics = await self._active_topics(db, course_id)
        if not topics:
            return CourseProgressAcrossGroups(group_count=len(group_ids))

        lessons = (
            await db.execute(
                self._completed_lessons_stmt()
                .join(Topic, Lesson.topic_id == Topic.id)
                .where(Lesson.group_id.in_(group_ids))
                .order_by(Topic.order.desc(), Lesson.date.desc())
            )
        ).scalars().all()

        active_ids = {topic.id for topic in topics}
        lessons = [lesson for lesson in lessons if lesson.topic_id in active_ids]
        covered = {lesson.topic_id for lesson in lessons}
        progress = CourseProgressAcrossGroups(
            progress_percent=_percent(len(covered), len(topics)),
            completed_topics=len(covered),
            total_topics=len(topics),
            group_count=len(group_ids),
        )
        if lessons:
            progress.last_studied_topic = lessons[0].topic.name if lessons[0].topic else None
            next_topic = self._first_uncovered(topics, covered)
            if next_topic is not None:
                progress.next_topic = next_topic.name
                progress.next_topic_id = next_topic.id
        return progress

    async def next_topic_for_group(self, db: AsyncSession, group_id: UUID) -> Optional[str]:
        return (await self.get_group_progress(db, group_id)).next_topic

    async def next_topic_for_course(self, db: AsyncSession, course_id: UUID) -> Optional[str]:
        return (await self.get_course_progress(db, course_id)).next_topic

    async def count_lessons(self, db: AsyncSession, group_id: UUID) -> Tuple[int, int]:
        """(total active lessons, completed active lessons) for a group."""
        total = await db.scalar(
            select(func.count(Lesson.id)).where(
                Lesson.group_id == group_id, Lesson.is_active.is_(True)
            )
        )
        completed = await db.scalar(
            select(func.count(Lesson.id)).where(
                Lesson.group_id == group_id,
                Lesson.is_active.is_(True),
                Lesson.status == LessonStatus.COMPLETED,
            )
        )
        return total or 0, completed or 0


# ── Singleton Instance ────────────────────────────────────────────────────
progress_service = ProgressService()
