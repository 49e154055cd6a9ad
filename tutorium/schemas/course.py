"""
Tutorium Backend — Course, Topic and Progress Schemas
=======================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tutorium.levels import normalize_level
from tutorium.models.enums import Difficulty
from tutorium.schemas.common import CourseBrief, UserBrief


# ══════════════════════════════════════════════════════════════════════════
# Topics
# ══════════════════════════════════════════════════════════════════════════


class TopicInput(BaseModel):
    """A topic inside a course create/update body; order comes from position."""
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class TopicResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    order: int
    is_active: bool
    course_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}


class TopicWithCourse(TopicResponse):
    course: CourseBrief


class TopicCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    course_id: uuid.UUID
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)


class TopicUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    order: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None


# ══════════════════════════════════════════════════════════════════════════
# Courses
# ══════════════════════════════════════════════════════════════════════════


class CourseCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    level: str = Field(min_length=1, max_length=50)
    duration: str = Field(min_length=1, max_length=100, description="e.g. '3 months'")
    description: Optional[str] = None
    difficulty: Difficulty = Difficulty.BEGINNER
    category: str = "Language"
    tags: List[str] = Field(default_factory=list)
    topics: List[TopicInput] = Field(default_factory=list)

    @field_validator("level")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_level(v)


class CourseUpdateRequest(BaseModel):
    """`topics`, when present, replaces every existing topic of the course."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    level: Optional[str] = Field(default=None, min_length=1, max_length=50)
    duration: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    difficulty: Optional[Difficulty] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None
    topics: Optional[List[TopicInput]] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)


class CourseResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    level: str
    duration: str
    difficulty: Difficulty
    category: str
    tags: List[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    topics: List[TopicResponse] = Field(default_factory=list)
    total_topics: int = 0
    total_groups: int = 0


class CourseGroupItem(BaseModel):
    id: uuid.UUID
    name: str
    level: str
    max_students: int
    is_active: bool
    teacher: UserBrief
    total_students: int
    total_recordings: int


class CourseDetailResponse(CourseResponse):
    groups: List[CourseGroupItem] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Progress
# ══════════════════════════════════════════════════════════════════════════


class ProgressResponse(BaseModel):
    """
    Course progress measured in topics.

    progress_percent = round(completed_topics / total_topics * 100)
    next_topic is the topic the teacher set on the latest lesson, or the first
    not yet covered topic by order; null until the first lesson is completed.
    """
    progress_percent: int = 0
    completed_topics: int = 0
    total_topics: int = 0
    last_studied_topic: Optional[str] = None
    next_topic: Optional[str] = None
    next_topic_id: Optional[uuid.UUID] = None


class CourseProgressAcrossGroups(ProgressResponse):
    group_count: int = 0


class LearningTrack(BaseModel):
    """One entry of GET /api/courses/user: a group the caller learns or teaches in."""
    id: uuid.UUID
    title: str
    level: str
    course_id: Optional[uuid.UUID] = None
    course_name: Optional[str] = None
    teacher_name: str
    progress_percent: int
    completed_topics: int
    total_topics: int
    last_studied_topic: Optional[str] = None
    next_topic: Optional[str] = None
    total_lessons: int
    completed_lessons: int
