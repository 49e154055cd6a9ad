"""
Tutorium Backend — Course and Topic Service
=============================================

What:  CRUD for courses and their ordered topics, and the caller's
       "learning tracks" (GET /api/courses/user) with real progress.
How:   Topic lists are sent whole. On course update the submitted list
       replaces the old one; topics whose name survives keep their row
       (and therefore the lessons and progress linked to them), the rest
       are removed after their lesson references are cleared.
"""

import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, ValidationError
from tutorium.models import Course, Group, Lesson, Product, Role, Topic, User, course_enrollments
from tutorium.schemas.common import UserBrief
from tutorium.schemas.course import (
    CourseCreateRequest,
    CourseDetailResponse,
    CourseGroupItem,
    CourseResponse,
    CourseUpdateRequest,
    LearningTrack,
    TopicCreateRequest,
    TopicInput,
    TopicResponse,
    TopicUpdateRequest,
    TopicWithCourse,
)
from tutorium.services.progress_service import progress_service

logger = logging.getLogger(__name__)


async def clear_topic_references(db: AsyncSession, topic_ids: List[UUID]) -> None:
    """Detach lessons from topics that are about to be deleted."""
    if not topic_ids:
        return
    await db.execute(
        update(Lesson).where(Lesson.topic_id.in_(topic_ids)).values(topic_id=None)
    )
    await db.execute(
        update(Lesson).where(Lesson.next_topic_id.in_(topic_ids)).values(next_topic_id=None)
    )


class CourseService:

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load_course(self, db: AsyncSession, course_id: UUID) -> Course:
        result = await db.execute(
            select(Course)
            .where(Course.id == course_id)
            .options(selectinload(Course.topics))
            .execution_options(populate_existing=True)
        )
        course = result.scalar_one_or_none()
        if course is None:
            raise NotFoundError(resource="Course", resource_id=course_id, message="Course not found")
        return course

    async def _group_counts(self, db: AsyncSession, course_ids: List[UUID]) -> Dict[UUID, int]:
        if not course_ids:
            return {}
        rows = (
            await db.execute(
                select(Group.course_id, func.count(Group.id))
                .where(Group.course_id.in_(course_ids))
                .group_by(Group.course_id)
            )
        ).all()
        return {course_id: count for course_id, count in rows}

    def _to_response(self, course: Course, group_count: int) -> CourseResponse:
        topics = [TopicResponse.model_validate(t) for t in course.topics if t.is_active]
        return CourseResponse(
            id=course.id,
            name=course.name,
            description=course.description,
            level=course.level,
            duration=course.duration,
            difficulty=course.difficulty,
            category=course.category,
            tags=course.tags or [],
            is_active=course.is_active,
            created_at=course.created_at,
            updated_at=course.updated_at,
            topics=topics,
            total_topics=len(topics),
            total_groups=group_count,
        )

    @staticmethod
    def _new_topics(items: List[TopicInput]) -> List[Topic]:
        return [
            Topic(name=item.name.strip(), description=item.description, order=index + 1)
            for index, item in enumerate(items)
        ]

    # ══════════════════════════════════════════════════════════════════════
    # Courses
    # ══════════════════════════════════════════════════════════════════════

    async def list_courses(self, db: AsyncSession) -> List[CourseResponse]:
        result = await db.execute(
            select(Course)
            .where(Course.is_active.is_(True))
            .options(selectinload(Course.topics))
            .order_by(Course.level, Course.name)
        )
        courses = result.scalars().all()
        counts = await self._group_counts(db, [c.id for c in courses])
        return [self._to_response(c, counts.get(c.id, 0)) for c in courses]

    async def create_course(self, db: AsyncSession, data: CourseCreateRequest) -> CourseResponse:
        course = Course(
            name=data.name.strip(),
            description=data.description,
            level=data.level,
            duration=data.duration,
            difficulty=data.difficulty,
            category=data.category,
            tags=list(data.tags),
            topics=self._new_topics(data.topics),
        )
        db.add(course)
        await db.flush()
        logger.info("Created course %s with %d topics", course.id, len(data.topics))

        course = await self._load_course(db, course.id)
        return self._to_response(course, 0)

    async def get_course(self, db: AsyncSession, course_id: UUID) -> CourseDetailResponse:
        course = await self._load_course(db, course_id)

        groups = (
            await db.execute(
                select(Group)
                .where(Group.course_id == course_id)
                .options(selectinload(Group.teacher), selectinload(Group.students))
                .order_by(Group.name)
            )
        ).scalars().all()

        lesson_counts = dict(
            (
                await db.execute(
                    select(Lesson.group_id, func.count(Lesson.id))
                    .where(Lesson.group_id.in_([g.id for g in groups]))
                    .group_by(Lesson.group_id)
                )
            ).all()
        ) if groups else {}

        base = self._to_response(course, len(groups))
        return CourseDetailResponse(
            **base.model_dump(),
            groups=[
                CourseGroupItem(
                    id=g.id,
                    name=g.name,
                    level=g.level,
                    max_students=g.max_students,
                    is_active=g.is_active,
                    teacher=UserBrief.model_validate(g.teacher),
                    total_students=len(g.students),
                    total_recordings=lesson_counts.get(g.id, 0),
                )
                for g in groups
            ],
        )

    async def update_course(
        self, db: AsyncSession, course_id: UUID, data: CourseUpdateRequest
    ) -> CourseResponse:
        course = await self._load_course(db, course_id)

        for field in ("name", "description", "level", "duration", "difficulty", "category", "is_active"):
            value = getattr(data, field)
            if value is not None:
                setattr(course, field, value)
        if data.tags is not None:
            course.tags = list(data.tags)

        if data.topics is not None:
            leftover = list(course.topics)
            kept: List[Topic] = []
            for index, item in enumerate(data.topics):
                name = item.name.strip()
                topic = next((t for t in leftover if t.name == name), None)
                if topic is None:
                    topic = Topic(name=name)
                else:
                    leftover.remove(topic)
                topic.description = item.description
                topic.order = index + 1
                topic.is_active = True
                kept.append(topic)

            await clear_topic_references(db, [t.id for t in leftover])
            course.topics = kept
            logger.info(
                "Replaced topics of course %s: %d kept/added, %d removed",
                course.id, len(kept), len(leftover),
            )

        await db.flush()
        course = await self._load_course(db, course.id)
        counts = await self._group_counts(db, [course.id])
        return self._to_response(course, counts.get(course.id, 0))

    async def delete_course(self, db: AsyncSession, course_id: UUID) -> None:
        course = await self._load_course(db, course_id)

        group_count = await db.scalar(select(func.count(Group.id)).where(Group.course_id == course_id))
        if group_count:
            raise ValidationError(
                message="Cannot delete course with active groups",
                context={"groups": group_count},
            )
        product_count = await db.scalar(
            select(func.count(Product.id)).where(Product.course_id == course_id)
        )
        if product_count:
            raise ValidationError(
                message="Cannot delete course with products",
                context={"products": product_count},
            )

        await clear_topic_references(db, [t.id for t in course.topics])
        await db.execute(delete(course_enrollments).where(course_enrollments.c.course_id == course_id))
        await db.execute(delete(Topic).where(Topic.course_id == course_id))
        await db.execute(delete(Course).where(Course.id == course_id))
        logger.info("Deleted course %s", course_id)

    # ── Learning tracks ───────────────────────────────────────────────────

    async def learning_tracks(self, db: AsyncSession, user: User) -> List[LearningTrack]:
        """The caller's groups as course cards, each with its progress."""
        stmt = select(Group).options(selectinload(Group.teacher), selectinload(Group.course))
        if user.role == Role.STUDENT:
            if user.group_id is None:
                return []
            stmt = stmt.where(Group.id == user.group_id)
        elif user.role == Role.TEACHER:
            stmt = stmt.where(Group.teacher_id == user.id, Group.is_active.is_(True))
        else:
            stmt = stmt.where(Group.is_active.is_(True))

        groups = (await db.execute(stmt.order_by(Group.name))).scalars().all()

        tracks = []
        for group in groups:
            progress = await progress_service.get_course_progress(db, group.course_id, group.id)
            total, completed = await progress_service.count_lessons(db, group.id)
            tracks.append(
                LearningTrack(
                    id=group.id,
                    title=group.name,
                    level=group.level,
                    course_id=group.course_id,
                    course_name=group.course.name if group.course else None,
                    teacher_name=group.teacher.name,
                    progress_percent=progress.progress_percent,
                    completed_topics=progress.completed_topics,
                    total_topics=progress.total_topics,
                    last_studied_topic=progress.last_studied_topic,
                    next_topic=progress.next_topic,
                    total_lessons=total,
                    completed_lessons=completed,
                )
            )
        return tracks

    # ══════════════════════════════════════════════════════════════════════
    # Topics
    # ══════════════════════════════════════════════════════════════════════

    async def _load_topic(self, db: AsyncSession, topic_id: UUID) -> Topic:
        result = await db.execute(
            select(Topic)
            .where(Topic.id == topic_id)
            .options(selectinload(Topic.course))
            .execution_options(populate_existing=True)
        )
        topic = result.scalar_one_or_none()
        if topic is None:
            raise NotFoundError(resource="Topic", resource_id=topic_id, message="Topic not found")
        return topic

    async def list_topics(
        self, db: AsyncSession, course_id: Optional[UUID] = None
    ) -> List[TopicWithCourse]:
        stmt = (
            select(Topic)
            .join(Course, Topic.course_id == Course.id)
            .where(Topic.is_active.is_(True))
            .options(selectinload(Topic.course))
            .order_by(Course.name, Topic.order)
        )
        if course_id is not None:
            stmt = stmt.where(Topic.course_id == course_id)
        topics = (await db.execute(stmt)).scalars().all()
        return [TopicWithCourse.model_validate(t) for t in topics]

    async def create_topic(self, db: AsyncSession, data: TopicCreateRequest) -> TopicWithCourse:
        if await db.get(Course, data.course_id) is None:
            raise NotFoundError(resource="Course", resource_id=data.course_id, message="Course not found")

        order = data.order
        if order is None:
            highest = await db.scalar(
                select(func.max(Topic.order)).where(Topic.course_id == data.course_id)
            )
            order = (highest or 0) + 1

        topic = Topic(
            name=data.name.strip(),
            description=data.description,
            order=order,
            course_id=data.course_id,
        )
        db.add(topic)
        await db.flush()
        logger.info("Created topic %s in course %s (order=%d)", topic.id, data.course_id, order)
        return TopicWithCourse.model_validate(await self._load_topic(db, topic.id))

    async def get_topic(self, db: AsyncSession, topic_id: UUID) -> TopicWithCourse:
        return TopicWithCourse.model_validate(await self._load_topic(db, topic_id))

    async def update_topic(
        self, db: AsyncSession, topic_id: UUID, data: TopicUpdateRequest
    ) -> TopicWithCourse:
        topic = await self._load_topic(db, topic_id)
        if data.name is not None:
            topic.name = data.name.strip()
        if data.description is not None:
            topic.description = data.description
        if data.order is not None:
            topic.order = data.order
        if data.is_active is not None:
            topic.is_active = data.is_active
        await db.flush()
        return TopicWithCourse.model_validate(await self._load_topic(db, topic_id))

    async def delete_topic(self, db: AsyncSession, topic_id: UUID) -> None:
        topic = await self._load_topic(db, topic_id)
        await clear_topic_references(db, [topic.id])
        await db.delete(topic)
        await db.flush()
        logger.info("Deleted topic %s", topic_id)


# ── Singleton Instance ────────────────────────────────────────────────────
course_service = CourseService()
