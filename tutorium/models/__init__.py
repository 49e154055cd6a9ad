"""
Tutorium Backend — ORM Models
===============================

Importing this package registers every table with `Base.metadata`
(Alembic's env.py and the test-suite's `create_all` rely on it).
"""

from tutorium.models.enums import (
    AttendanceStatus,
    Difficulty,
    LessonStatus,
    LessonType,
    ProductType,
    Role,
)
from tutorium.models.user import User, course_enrollments
from tutorium.models.course import Course, Topic
from tutorium.models.group import Group
from tutorium.models.lesson import Attachment, Lesson, lesson_students
from tutorium.models.attendance import LessonAttendance
from tutorium.models.feedback import LessonFeedback
from tutorium.models.product import Product, StudentProductEnrollment

__all__ = [
    "AttendanceStatus",
    "Attachment",
    "Course",
    "Difficulty",
    "Group",
    "Lesson",
    "LessonAttendance",
    "LessonFeedback",
    "LessonStatus",
    "LessonType",
    "Product",
    "ProductType",
    "Role",
    "StudentProductEnrollment",
    "Topic",
    "User",
    "course_enrollments",
    "lesson_students",
]
