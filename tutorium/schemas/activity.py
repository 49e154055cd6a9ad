"""
Tutorium Backend — Attendance and Feedback Schemas
====================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tutorium.models.enums import AttendanceStatus
from tutorium.schemas.common import LessonBrief, UserBrief


# ══════════════════════════════════════════════════════════════════════════
# Attendance
# ══════════════════════════════════════════════════════════════════════════


class AttendanceEntry(BaseModel):
    student_id: uuid.UUID
    status: AttendanceStatus
    notes: Optional[str] = None
    participation: Optional[int] = Field(default=None, ge=0, le=100)


class AttendanceRecordRequest(BaseModel):
    lesson_id: uuid.UUID
    attendance: List[AttendanceEntry] = Field(min_length=1)


class AttendanceUpdateRequest(BaseModel):
    status: AttendanceStatus
    notes: Optional[str] = None
    participation: Optional[int] = Field(default=None, ge=0, le=100)


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    lesson_id: uuid.UUID
    student_id: uuid.UUID
    status: AttendanceStatus
    notes: Optional[str] = None
    participation: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    student: Optional[UserBrief] = None
    lesson: Optional[LessonBrief] = None


class AttendanceListResponse(BaseModel):
    data: List[AttendanceResponse]


class AttendanceRecordResponse(BaseModel):
    message: str
    data: List[AttendanceResponse]


# ══════════════════════════════════════════════════════════════════════════
# Feedback
# ══════════════════════════════════════════════════════════════════════════


class FeedbackCreateRequest(BaseModel):
    lesson_id: uuid.UUID
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=5000)
    is_anonymous: bool = False


class FeedbackResponse(BaseModel):
    """
    `student_id` and `student` are null for anonymous feedback unless the
    viewer is an admin or the author.
    """
    id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    is_anonymous: bool
    lesson_id: uuid.UUID
    student_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    student: Optional[UserBrief] = None
    lesson: Optional[LessonBrief] = None
