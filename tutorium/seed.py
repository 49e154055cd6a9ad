"""
Tutorium Backend — Demo Data Seed
===================================

What:  Loads a small demo school: an admin, a teacher, one course with its
       topics, three groups, five students, a handful of recorded lessons
       (group and individual), an upcoming lesson and some feedback.
How:   Idempotent. Users are looked up by email and groups by (name, teacher);
       lessons and feedback are only created when the teacher has none yet.
Usage:
    python -m tutorium.seed                  # against DATABASE_URL (migrated)
    python -m tutorium.seed --create-tables  # e.g. a fresh SQLite file
    tutorium-seed                            # console script, same thing
"""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.password import hash_password
from tutorium.database import Base, async_session_factory, dispose_engine, engine
from tutorium.models import (
    Course,
    Difficulty,
    Group,
    Lesson,
    LessonFeedback,
    LessonStatus,
    LessonType,
    Role,
    Topic,
    User,
)
from tutorium.models.base import utcnow

logger = logging.getLogger("tutorium.seed")

DEMO_PASSWORD = "password123"

COURSE = {
    "name": "Испанский язык: от A1 до A2",
    "level": "A1",
    "duration": "6 месяцев",
    "description": "Базовый курс разговорного испанского",
    "difficulty": Difficulty.BEGINNER,
    "tags": ["spanish", "conversation"],
}

TOPICS = [
    "Приветствия и знакомство",
    "Настоящее время",
    "Путешествия",
    "Прошедшее время",
    "Будущее время",
    "Мой город",
]

GROUPS = [
    ("Группа A1 - Утренняя", "Утренняя группа для начинающих", "A1", 6),
    ("Группа A2 - Вечерняя", "Вечерняя группа для продолжающих", "A2", 5),
    ("Группа B1 - Интенсив", "Интенсивная подготовка к B2", "B1", 4),
]

# (name, email, level, avatar, index into GROUPS or None)
STUDENTS = [
    ("Елена Гарсия", "elena.garcia@example.com", "A2", "ЕГ", 1),
    ("Михаил Петров", "mikhail.petrov@example.com", "B1", "МП", 2),
    ("Анна Сидорова", "anna.sidorova@example.com", "A1", "АС", 0),
    ("Дмитрий Козлов", "dmitry.kozlov@example.com", "B2", "ДК", None),
    ("Мария Иванова", "maria.ivanova@example.com", "A2", "МИ", 1),
]


async def _get_or_create_user(
    db: AsyncSession,
    email: str,
    name: str,
    role: Role,
    password_hash: str,
    **extra,
) -> User:
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if user is not None:
        return user
    user = User(email=email, name=name, role=role, password_hash=password_hash, **extra)
    db.add(user)
    await db.flush()
    logger.info("Created %s %s", role.value.lower(), email)
    return user


async def _get_or_create_course(db: AsyncSession) -> Course:
    course = (
        await db.execute(select(Course).where(Course.name == COURSE["name"]))
    ).scalar_one_or_none()
    if course is not None:
        return course
    course = Course(
        **COURSE,
        topics=[Topic(name=name, order=i + 1) for i, name in enumerate(TOPICS)],
    )
    db.add(course)
    await db.flush()
    logger.info("Created course '%s' with %d topics", course.name, len(TOPICS))
    return course


async def _get_or_create_group(
    db: AsyncSession,
    teacher: User,
    course: Course,
    name: str,
    description: str,
    level: str,
    max_students: int,
) -> Group:
    group = (
        await db.execute(select(Group).where(Group.name == name, Group.teacher_id == teacher.id))
    ).scalar_one_or_none()
    if group is not None:
        return group
    group = Group(
        name=name,
        description=description,
        level=level,
        max_students=max_students,
        teacher_id=teacher.id,
        course_id=course.id,
    )
    db.add(group)
    await db.flush()
    logger.info("Created group '%s'", name)
    return group


async def _seed_lessons(
    db: AsyncSession,
    teacher: User,
    groups: List[Group],
    students: List[User],
    topics: Dict[int, Topic],
) -> None:
    existing = await db.scalar(select(func.count(Lesson.id)).where(Lesson.teacher_id == teacher.id))
    if existing:
        logger.info("Teacher already has %d lesson(s); skipping lessons and feedback", existing)
        return

    now = utcnow()

    def recording(
        days_ago: int,
        title: str,
        link: str,
        message: str,
        topic_order: Optional[int],
        group: Optional[Group] = None,
        attendees: Optional[List[User]] = None,
    ) -> Lesson:
        return Lesson(
            title=title,
            date=now - timedelta(days=days_ago),
            status=LessonStatus.COMPLETED,
            lesson_type=LessonType.GROUP if group else LessonType.INDIVIDUAL,
            teacher_id=teacher.id,
            group_id=group.id if group else None,
            topic_id=topics[topic_order].id if topic_order else None,
            youtube_link=link,
            notes=message,
            materials=[],
            is_published=True,
            students=attendees or [],
        )

    a1, a2, _ = groups
    elena, mikhail = students[0], students[1]
    lessons = [
        recording(
            14, "Прошедшее время", "https://youtube.com/watch?v=abc123",
            "Отличный урок! Сегодня мы изучили прошедшее время. "
            "Домашнее задание: упражнения 1-5 в рабочей тетради.",
            4, group=a1,
        ),
        recording(
            12, "Путешествия", "https://youtube.com/watch?v=xyz789",
            "Изучили лексику для аэропорта и отеля. "
            "Домашнее задание: написать рассказ о путешествии.",
            3, group=a2,
        ),
        recording(
            10, "Будущее время", "https://youtube.com/watch?v=mno456",
            "Практика в парах и группах. Домашнее задание: упражнения 6-10, подготовка к тесту.",
            5, group=a2,
        ),
        recording(
            15, "Разговорная практика", "https://youtube.com/watch?v=def456",
            "Индивидуальный урок по разговорной практике. Фокус на произношении и беглости речи.",
            None, attendees=[elena, mikhail],
        ),
        recording(
            6, "Произношение", "https://youtube.com/watch?v=pqr321",
            "Работа над произношением звука 'р' и интонацией в вопросах. Отличный прогресс!",
            None, attendees=[elena],
        ),
        recording(
            3, "Мой город", "https://youtube.com/watch?v=stu654",
            "Студенты рассказывали о своих городах.",
            6, group=a2,
        ),
    ]
    lessons.append(
        Lesson(
            title="Подготовка к тесту A2",
            date=now + timedelta(days=3),
            start_time="18:00",
            end_time="19:30",
            duration=90,
            status=LessonStatus.SCHEDULED,
            lesson_type=LessonType.GROUP,
            teacher_id=teacher.id,
            group_id=a2.id,
            notes="Повторение всех тем месяца.",
            materials=[],
        )
    )
    db.add_all(lessons)
    await db.flush()

    feedback = [
        (elena, lessons[1], 5, "Отличный урок! Все понятно объяснили.", False),
        (students[4], lessons[1], 4, "Хороший урок, но хотелось бы больше практики.", False),
        (elena, lessons[2], 5, "Превосходно! Очень понравилось.", True),
        (elena, lessons[3], 3, "Нормально, но можно было бы лучше.", False),
        (mikhail, lessons[3], 4, None, True),
    ]
    for student, lesson, rating, comment, anonymous in feedback:
        db.add(
            LessonFeedback(
                student_id=student.id,
                lesson_id=lesson.id,
                rating=rating,
                comment=comment,
                is_anonymous=anonymous,
            )
        )
    await db.flush()

    for lesson in lessons:
        ratings = [rating for _, target, rating, _, _ in feedback if target is lesson]
        lesson.total_feedback = len(ratings)
        lesson.average_rating = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    logger.info("Created %d lessons and %d feedback entries", len(lessons), len(feedback))


async def seed(create_tables: bool = False) -> None:
    if create_tables:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    password_hash = hash_password(DEMO_PASSWORD)

    async with async_session_factory() as db:
        try:
            await _get_or_create_user(
                db, "admin@tutorium.com", "Администратор Школы", Role.ADMIN, password_hash
            )
            teacher = await _get_or_create_user(
                db, "teacher@tutorium.com", "Анна Петрова", Role.TEACHER, password_hash, avatar="АП"
            )
            course = await _get_or_create_course(db)
            topics = {
                t.order: t
                for t in (
                    await db.execute(select(Topic).where(Topic.course_id == course.id))
                ).scalars().all()
            }

            groups = [
                await _get_or_create_group(db, teacher, course, *spec) for spec in GROUPS
            ]

            students = []
            for name, email, level, avatar, group_index in STUDENTS:
                students.append(
                    await _get_or_create_user(
                        db, email, name, Role.STUDENT, password_hash,
                        level=level,
                        avatar=avatar,
                        group_id=groups[group_index].id if group_index is not None else None,
                    )
                )

            await _seed_lessons(db, teacher, groups, students, topics)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info("Seeding complete. Demo accounts use the password '%s'", DEMO_PASSWORD)
    logger.info("  admin@tutorium.com / teacher@tutorium.com / elena.garcia@example.com")


def main() -> None:
    parser = argparse.ArgumentParser(description="Load Tutorium demo data")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create all tables first (instead of running Alembic migrations)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    async def run() -> None:
        try:
            await seed(create_tables=args.create_tables)
        finally:
            await dispose_engine()

    asyncio.run(run())


if __name__ == "__main__":
    main()
