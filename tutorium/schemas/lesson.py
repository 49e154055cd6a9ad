"""
Tutorium Backend — Lesson, Recording and Attachment Schemas
=============================================================

Recordings and individual lessons are both views over the `lessons`
table. The API calls the teacher's note `message`; the column is `notes`.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from tutorium.models.enums import LessonStatus, LessonType
from tutorium.schemas.activity import AttendanceResponse, FeedbackResponse
from tutorium.schemas.common import CourseBrief, GroupBrief, TopicBrief, UserBrief

HH_MM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ══════════════════════════════════════════════════════════════════════════
# Attachments
# ══════════════════════════════════════════════════════════════════════════


class AttachmentResponse(BaseModel):
    id: uuid.UUID
    filename: str
    original_name: str
    mime_type: str
    size: int
    description: Optional[str] = None
    lesson_id: uuid.UUID
    created_at: datetime
    url: str = Field(description="Download URL for the stored file")


class UploadResponse(BaseModel):
    message: str
    attachments: List[AttachmentResponse]


# ══════════════════════════════════════════════════════════════════════════
# Recordings
# ══════════════════════════════════════════════════════════════════════════


class RecordingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date: datetime
    lesson_type: LessonType
    youtube_link: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    message: Optional[str] = None
    group_id: Optional[uuid.UUID] = None
    student_ids: List[uuid.UUID] = Field(default_factory=list)
    topic_id: Optional[uuid.UUID] = None
    next_topic_id: Optional[uuid.UUID] = None
    materials: List[str] = Field(default_factory=list)


class RecordingUpdateRequest(BaseModel):
    """Partial update; an explicit `group_id: null` detaches the group."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    lesson_type: Optional[LessonType] = None
    date: Optional[datetime] = None
    youtube_link: Optional[str] = Field(default=None, max_length=500)
    message: Optional[str] = None
    group_id: Optional[uuid.UUID] = None
    student_ids: Optional[List[uuid.UUID]] = None
    topic_id: Optional[uuid.UUID] = None
    next_topic_id: Optional[uuid.UUID] = None
    materials: Optional[List[str]] = None
    is_published: Optional[bool] = None


class RecordingResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    date: datetime
    status: LessonStatus
    lesson_type: LessonType
    youtube_link: Optional[str] = None
    message: Optional[str] = None
    materials: List[str] = Field(default_factory=list)
    is_published: bool
    view_count: int
    average_rating: float
    total_feedback: int
    teacher: UserBrief
    group: Optional[GroupBrief] = None
    topic: Optional[TopicBrief] = None
    next_topic: Optional[TopicBrief] = None
    students: List[UserBrief] = Field(default_factory=list)
    attachments: List[AttachmentResponse] = Field(default_factory=list)
    created_at: datetime


class RecordingDetailResponse(RecordingResponse):
    feedbacks: List[FeedbackResponse] = Field(default_factory=list)
    attendance: List[AttendanceResponse] = Field(default_factory=list)


class RecordingMessageResponse(BaseModel):
    message: str
    recording: RecordingResponse


# ══════════════════════════════════════════════════════════════════════════
# Dashboard lists
# ══════════════════════════════════════════════════════════════════════════


class RecentLessonItem(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    date: datetime
    teacher: str
    message: str
    files_count: int
    has_recording: bool
    recording_url: Optional[str] = None
    topic: Optional[str] = None
    group_name: Optional[str] = None
    student_names: Optional[List[str]] = None


class UpcomingLessonItem(BaseModel):
    id: uuid.UUID
    title: str
    date: datetime
    start_time: str
    teacher: str
    duration_minutes: int
    meeting_link: Optional[str] = None
    type: str = Field(description="group or individual")
    group_name: Optional[str] = None
    topic: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Individual lessons
# ══════════════════════════════════════════════════════════════════════════


class IndividualLessonCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    date: datetime
    start_time: str = Field(pattern=HH_MM_PATTERN)
    end_time: str = Field(pattern=HH_MM_PATTERN)
    teacher_id: uuid.UUID
    student_ids: List[uuid.UUID] = Field(min_length=1)
    course_id: uuid.UUID
    duration: int = Field(default=60, ge=1, le=600)
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    materials: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("end_time")
    @classmethod
    def end_after_start(cls, v: str, info: ValidationInfo) -> str:
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time must be later than start_time")
        return v


class IndividualLessonUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    date: Optional[datetime] = None
    start_time: Optional[str] = Field(default=None, pattern=HH_MM_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=HH_MM_PATTERN)
    teacher_id: Optional[uuid.UUID] = None
    student_ids: Optional[List[uuid.UUID]] = None
    duration: Optional[int] = Field(default=None, ge=1, le=600)
    description: Optional[str] = None
    topic_id: Optional[uuid.UUID] = None
    materials: Optional[List[str]] = None
    notes: Optional[str] = None
    status: Optional[LessonStatus] = None
    youtube_link: Optional[str] = Field(default=None, max_length=500)


class IndividualLessonTopic(TopicBrief):
    course: CourseBrief


class IndividualLessonResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    date: datetime
    start_time: str
    end_time: str
    duration: int
    status: LessonStatus
    lesson_type: LessonType
    notes: Optional[str] = None
    materials: List[str] = Field(default_factory=list)
    youtube_link: Optional[str] = None
    is_active: bool
    teacher: UserBrief
    students: List[UserBrief] = Field(default_factory=list)
    topic: Optional[IndividualLessonTopic] = None
    group: Optional[GroupBrief] = None
    created_at: datetime


class IndividualLessonListResponse(BaseModel):
    data: List[IndividualLessonResponse]


class IndividualLessonMessageResponse(BaseModel):
    message: str
    data: IndividualLessonResponse
