"""
Tutorium Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage:    Temporary directory for file operations
    ├── session_factory: SQLite database in tmp_path with every table created
    │   ├── db:          A session on that database
    │   ├── factory:     Builders for users, courses, groups and lessons
    │   └── client:      HTTPX AsyncClient whose requests use that database
    └── sample_pdf_bytes: Small payload for upload tests
"""

import os
import tempfile
from datetime import timedelta
from typing import AsyncGenerator, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Override settings for testing BEFORE any tutorium imports
_TEST_ROOT = tempfile.mkdtemp(prefix="tutorium_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/health.db"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_ROOT, "storage")
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from tutorium.auth.jwt import jwt_manager  # noqa: E402
from tutorium.auth.password import hash_password  # noqa: E402
from tutorium.database import Base, get_db_session  # noqa: E402
from tutorium.models import (  # noqa: E402
    Course,
    Group,
    Lesson,
    LessonStatus,
    LessonType,
    Role,
    Topic,
    User,
)
from tutorium.models.base import utcnow  # noqa: E402

DEFAULT_PASSWORD = "password123"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    A MagicMock that simulates AsyncSession behavior.
    Why:     Pure service logic should not require a real database.
    How:     Mocks execute, get, scalar, flush, commit, rollback, and close.

    Usage:
        async def test_progress_without_course(mock_db_session):
            result = await progress_service.get_course_progress(mock_db_session, None)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """
    Provides a temporary directory for file storage tests.

    What:    A fresh temporary directory for each test.
    How:     Uses pytest's tmp_path fixture (automatically cleaned up).
    """
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_pdf_bytes():
    """Smallest document that still starts like a PDF."""
    return b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer << /Root 1 0 R >>\n%%EOF\n"


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    A throwaway SQLite database for one test.

    The schema comes from the ORM metadata (create_all); Alembic migrations
    target PostgreSQL and are not run here.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Provides an async HTTP test client for endpoint testing.

    What:    HTTPX AsyncClient configured to talk to a fresh FastAPI app.
    How:     Uses ASGITransport to route requests directly to the app; the
             database dependency is overridden to use this test's database.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from tutorium.main import create_app

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app = create_app()
    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


# ══════════════════════════════════════════════════════════════════════════
# Data Builders
# ══════════════════════════════════════════════════════════════════════════

class Factory:
    """
    Creates committed rows through its own session, so API calls made
    afterwards see them.

    Usage:
        teacher = await factory.user(Role.TEACHER)
        response = await client.get("/api/groups", headers=factory.headers(teacher))
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def _save(self, obj):
        async with self._session_factory() as session:
            session.add(obj)
            await session.commit()
        return obj

    async def user(
        self,
        role: Role = Role.TEACHER,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        group: Optional[Group] = None,
        level: Optional[str] = None,
        is_active: bool = True,
    ) -> User:
        n = self._next()
        return await self._save(
            User(
                name=name or f"{role.value.title()} Number{n}",
                email=email or f"{role.value.lower()}{n}@example.com",
                password_hash=hash_password(password),
                role=role,
                group_id=group.id if group else None,
                level=level,
                is_active=is_active,
            )
        )

    async def course(self, name: Optional[str] = None, topics: int = 0, level: str = "A1") -> Course:
        n = self._next()
        return await self._save(
            Course(
                name=name or f"Course {n}",
                level=level,
                duration="3 months",
                tags=[],
                topics=[Topic(name=f"Topic {i}", order=i) for i in range(1, topics + 1)],
            )
        )

    async def topics(self, course: Course) -> List[Topic]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Topic).where(Topic.course_id == course.id).order_by(Topic.order)
            )
            return list(result.scalars().all())

    async def group(
        self,
        teacher: User,
        course: Optional[Course] = None,
        name: Optional[str] = None,
        max_students: int = 20,
        level: str = "A1",
    ) -> Group:
        n = self._next()
        return await self._save(
            Group(
                name=name or f"Group {n}",
                level=level,
                max_students=max_students,
                teacher_id=teacher.id,
                course_id=course.id if course else None,
            )
        )

    async def lesson(
        self,
        teacher: User,
        group: Optional[Group] = None,
        students: Optional[List[User]] = None,
        topic: Optional[Topic] = None,
        next_topic: Optional[Topic] = None,
        status: LessonStatus = LessonStatus.COMPLETED,
        youtube_link: Optional[str] = "https://youtube.com/watch?v=test",
        days_from_now: int = -1,
        duration: int = 60,
        is_active: bool = True,
        title: Optional[str] = None,
    ) -> Lesson:
        n = self._next()
        student_ids = [s.id for s in students or []]
        lesson = Lesson(
            title=title or f"Lesson {n}",
            date=utcnow() + timedelta(days=days_from_now),
            status=status,
            lesson_type=LessonType.GROUP if group else LessonType.INDIVIDUAL,
            teacher_id=teacher.id,
            group_id=group.id if group else None,
            topic_id=topic.id if topic else None,
            next_topic_id=next_topic.id if next_topic else None,
            youtube_link=youtube_link,
            duration=duration,
            materials=[],
            is_published=True,
            is_active=is_active,
        )
        async with self._session_factory() as session:
            if student_ids:
                lesson.students = list(
                    (await session.execute(select(User).where(User.id.in_(student_ids)))).scalars().all()
                )
            session.add(lesson)
            await session.commit()
        return lesson

    async def refresh(self, model, obj_id):
        async with self._session_factory() as session:
            return await session.get(model, obj_id)

    @staticmethod
    def headers(user: User) -> dict:
        token = jwt_manager.create_token(user_id=user.id, email=user.email, role=user.role.value)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def factory(session_factory) -> Factory:
    return Factory(session_factory)
