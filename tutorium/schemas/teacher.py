"""
Tutorium Backend — Teacher Dashboard Schemas
==============================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tutorium.models.enums import LessonStatus, LessonType
from tutorium.schemas.activity import FeedbackResponse
from tutorium.schemas.common import CourseBrief, GroupBrief, LessonBrief, TopicBrief, UserBrief


class TeacherGroupItem(BaseModel):
    id: uuid.UUID
    name: str
    level: str
    max_students: int
    course: Optional[CourseBrief] = None
    students: List[UserBrief] = Field(default_factory=list)
    student_count: int
    lesson_count: int
    last_lesson: Optional[LessonBrief] = None
    progress: int = Field(description="Course progress of the group in percent")


class TeacherLessonItem(BaseModel):
    id: uuid.UUID
    title: str
    date: datetime
    status: LessonStatus
    lesson_type: LessonType
    youtube_link: Optional[str] = None
    group: Optional[GroupBrief] = None
    topic: Optional[TopicBrief] = None
    student_count: int
    feedback_count: int
    average_rating: float
    feedbacks: List[FeedbackResponse] = Field(default_factory=list)


class StatsRecentLesson(BaseModel):
    id: uuid.UUID
    title: str
    date: datetime
    group_name: str
    student_count: int


class StatsGroup(BaseModel):
    id: uuid.UUID
    name: str
    level: str
    student_count: int


class TeacherStatsResponse(BaseModel):
    total_lessons: int
    lessons_this_month: int
    total_students: int
    students_this_month: int
    average_rating: float
    total_feedback: int
    total_reactions: int
    positive_reactions: int
    total_attendance_records: int
    engagement_rate: int = Field(description="Mean attendance score, 0..100+")
    total_study_hours: int
    recent_lessons: List[StatsRecentLesson] = Field(default_factory=list)
    groups: List[StatsGroup] = Field(default_factory=list)
