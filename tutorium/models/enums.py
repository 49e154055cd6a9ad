"""
Tutorium Backend — Enumerations shared by models and schemas
==============================================================

Stored as VARCHAR (native_enum=False) so the same schema works on
PostgreSQL and on the SQLite database used by the tests. Member values
equal member names; the API sends and receives the upper-case names.
"""

import enum


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class Difficulty(str, enum.Enum):
    BEGINNER = "BEGINNER"
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class LessonStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class LessonType(str, enum.Enum):
    GROUP = "GROUP"
    INDIVIDUAL = "INDIVIDUAL"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"
    PARTIAL = "PARTIAL"


class ProductType(str, enum.Enum):
    GROUP = "GROUP"
    INDIVIDUAL_LESSONS = "INDIVIDUAL_LESSONS"
    SELF_STUDY = "SELF_STUDY"
