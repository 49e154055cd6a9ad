"""
Tutorium Backend — Progress and Dashboard Helper Tests
========================================================

What:  Tests for course progress (per group and across groups), the
       attendance score used by the engagement rate, month boundaries
       and level normalization.
How:   Progress runs against a throwaway SQLite database built by the
       `factory` fixture; the helpers are pure functions.
"""

from datetime import datetime, timezone

import pytest

from tutorium.levels import LEVEL_CODES, level_label, normalize_level
from tutorium.models import AttendanceStatus, LessonStatus, Role, Topic
from tutorium.services.progress_service import ProgressService
from tutorium.services.teacher_service import attendance_score, month_bounds


class TestCourseProgress:

    def setup_method(self):
        self.service = ProgressService()

    @pytest.mark.asyncio
    async def test_no_course_means_no_progress(self, mock_db_session):
        """Groups without a course report zero progress and never query."""
        progress = await self.service.get_course_progress(mock_db_session, None)
        assert progress.progress_percent == 0
        assert progress.next_topic is None
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_completed_yet(self, db, factory):
        """Before the first completed lesson there is no next topic."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=4)
        group = await factory.group(teacher, course)

        progress = await self.service.get_course_progress(db, course.id, group.id)

        assert progress.total_topics == 4
        assert progress.completed_topics == 0
        assert progress.progress_percent == 0
        assert progress.last_studied_topic is None
        assert progress.next_topic is None

    @pytest.mark.asyncio
    async def test_counts_distinct_completed_topics(self, db, factory):
        """Two lessons on the same topic count once; scheduled lessons do not count."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=4)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)

        await factory.lesson(teacher, group=group, topic=topics[0], days_from_now=-5)
        await factory.lesson(teacher, group=group, topic=topics[0], days_from_now=-4)
        await factory.lesson(teacher, group=group, topic=topics[1], days_from_now=-2)
        await factory.lesson(
            teacher, group=group, topic=topics[2], status=LessonStatus.SCHEDULED, days_from_now=3
        )

        progress = await self.service.get_course_progress(db, course.id, group.id)

        assert progress.completed_topics == 2
        assert progress.progress_percent == 50
        assert progress.last_studied_topic == "Topic 2"
        assert progress.next_topic == "Topic 3"

    @pytest.mark.asyncio
    async def test_explicit_next_topic_wins(self, db, factory):
        """The teacher's planned next topic on the latest lesson takes precedence."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=5)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)

        await factory.lesson(
            teacher, group=group, topic=topics[0], next_topic=topics[3], days_from_now=-1
        )

        progress = await self.service.get_course_progress(db, course.id, group.id)
        assert progress.next_topic == "Topic 4"
        assert progress.next_topic_id == topics[3].id

    @pytest.mark.asyncio
    async def test_inactive_lessons_and_topics_are_ignored(self, db, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=2)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)

        await factory.lesson(teacher, group=group, topic=topics[0], is_active=False)

        progress = await self.service.get_course_progress(db, course.id, group.id)
        assert progress.completed_topics == 0

    @pytest.mark.asyncio
    async def test_retired_topics_are_never_named(self, db, session_factory, factory):
        """Lessons on a deactivated topic neither count nor show up as last or next topic."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=3)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)
        await factory.lesson(
            teacher, group=group, topic=topics[0], next_topic=topics[2], days_from_now=-5
        )
        await factory.lesson(teacher, group=group, topic=topics[2], days_from_now=-1)

        async with session_factory() as session:
            retired = await session.get(Topic, topics[2].id)
            retired.is_active = False
            await session.commit()

        progress = await self.service.get_course_progress(db, course.id, group.id)
        assert progress.total_topics == 2
        assert progress.completed_topics == 1
        assert progress.last_studied_topic == "Topic 1"
        assert progress.next_topic == "Topic 2"

        across = await self.service.get_course_progress_across_groups(db, course.id, teacher.id)
        assert across.completed_topics == 1
        assert across.last_studied_topic == "Topic 1"
        assert across.next_topic == "Topic 2"

    @pytest.mark.asyncio
    async def test_everything_covered(self, db, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=2)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)
        for topic in topics:
            await factory.lesson(teacher, group=group, topic=topic)

        progress = await self.service.get_course_progress(db, course.id, group.id)
        assert progress.progress_percent == 100
        assert progress.next_topic is None

    @pytest.mark.asyncio
    async def test_group_progress_is_scoped_to_the_group(self, db, factory):
        """Another group's lessons on the same course do not count."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=4)
        topics = await factory.topics(course)
        mine = await factory.group(teacher, course)
        other = await factory.group(teacher, course)
        await factory.lesson(teacher, group=other, topic=topics[0])

        assert (await self.service.get_group_progress(db, mine.id)).completed_topics == 0
        assert (await self.service.get_course_progress(db, course.id)).completed_topics == 1

    @pytest.mark.asyncio
    async def test_across_groups_for_teacher(self, db, factory):
        """A teacher's progress combines every active group of theirs on the course."""
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=4)
        topics = await factory.topics(course)
        morning = await factory.group(teacher, course)
        evening = await factory.group(teacher, course)
        await factory.lesson(teacher, group=morning, topic=topics[0])
        await factory.lesson(teacher, group=evening, topic=topics[2])

        progress = await self.service.get_course_progress_across_groups(db, course.id, teacher.id)

        assert progress.group_count == 2
        assert progress.completed_topics == 2
        assert progress.progress_percent == 50
        assert progress.last_studied_topic == "Topic 3"
        assert progress.next_topic == "Topic 2"

    @pytest.mark.asyncio
    async def test_across_groups_without_membership(self, db, factory):
        student = await factory.user(Role.STUDENT)
        course = await factory.course(topics=3)

        progress = await self.service.get_course_progress_across_groups(db, course.id, student.id)
        assert progress.group_count == 0
        assert progress.total_topics == 0

    @pytest.mark.asyncio
    async def test_next_topic_shortcuts(self, db, factory):
        teacher = await factory.user(Role.TEACHER)
        course = await factory.course(topics=3)
        topics = await factory.topics(course)
        group = await factory.group(teacher, course)
        idle = await factory.group(teacher)
        await factory.lesson(teacher, group=group, topic=topics[0])

        assert await self.service.next_topic_for_group(db, group.id) == "Topic 2"
        assert await self.service.next_topic_for_course(db, course.id) == "Topic 2"
        assert await self.service.next_topic_for_group(db, idle.id) is None

    @pytest.mark.asyncio
    async def test_count_lessons(self, db, factory):
        teacher = await factory.user(Role.TEACHER)
        group = await factory.group(teacher)
        await factory.lesson(teacher, group=group)
        await factory.lesson(teacher, group=group, status=LessonStatus.SCHEDULED, days_from_now=2)
        await factory.lesson(teacher, group=group, is_active=False)

        assert await self.service.count_lessons(db, group.id) == (2, 1)


class TestAttendanceScore:

    def test_base_scores(self):
        assert attendance_score(AttendanceStatus.PRESENT, None) == 100
        assert attendance_score(AttendanceStatus.PARTIAL, None) == 75
        assert attendance_score(AttendanceStatus.LATE, None) == 60
        assert attendance_score(AttendanceStatus.EXCUSED, None) == 50
        assert attendance_score(AttendanceStatus.ABSENT, None) == 0

    def test_participation_bonus_is_capped(self):
        """Participation adds at most 20 points."""
        assert attendance_score(AttendanceStatus.LATE, 15) == 75
        assert attendance_score(AttendanceStatus.PRESENT, 90) == 120
        assert attendance_score(AttendanceStatus.ABSENT, 0) == 0


class TestMonthBounds:

    def test_mid_month(self):
        start, end = month_bounds(datetime(2026, 10, 19, 15, 30, tzinfo=timezone.utc))
        assert start == datetime(2026, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 11, 1, tzinfo=timezone.utc)

    def test_december_rolls_into_next_year(self):
        start, end = month_bounds(datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc))
        assert start == datetime(2026, 12, 1, tzinfo=timezone.utc)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestLevels:

    def test_codes(self):
        assert LEVEL_CODES == ("A1", "A2", "B1", "B2", "C1")

    def test_legacy_names_are_mapped(self):
        assert normalize_level("beginner") == "A1"
        assert normalize_level("Продолжающий") == "B1"
        assert normalize_level("  advanced ") == "B2"

    def test_codes_and_unknown_values_pass_through(self):
        assert normalize_level("A2") == "A2"
        assert normalize_level("Native") == "Native"

    def test_blank_is_none(self):
        assert normalize_level(None) is None
        assert normalize_level("   ") is None

    def test_label(self):
        assert level_label("elementary") == "A2 - Элементарный"
        assert level_label("Z9") == "Z9"
