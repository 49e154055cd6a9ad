"""
Tutorium Backend — Group, Enrollment and Student Schemas
==========================================================

Students are users with role STUDENT; their management screens live next
to groups because nearly every student rule is a group rule (ownership,
capacity, one group per student).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from tutorium.levels import normalize_level
from tutorium.models.enums import AttendanceStatus
from tutorium.schemas.common import CourseBrief, GroupBrief, LessonBrief, UserBrief
from tutorium.schemas.course import ProgressResponse
from tutorium.schemas.user import UserResponse


# ══════════════════════════════════════════════════════════════════════════
# Groups
# ══════════════════════════════════════════════════════════════════════════


class GroupCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    level: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    max_students: int = Field(default=20, ge=1, le=500)
    course_id: Optional[uuid.UUID] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_level(v)


class GroupUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    level: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None
    max_students: Optional[int] = Field(default=None, ge=1, le=500)
    course_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)


class GroupResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    level: str
    max_students: int
    is_active: bool
    teacher_id: uuid.UUID
    course_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    students: List[UserBrief] = Field(default_factory=list)
    student_count: int = 0


class GroupWithRelations(GroupResponse):
    teacher: UserBrief
    course: Optional[CourseBrief] = None


class GroupDetailResponse(GroupWithRelations):
    recordings: List[LessonBrief] = Field(default_factory=list)
    recording_count: int = 0


class GroupMessageResponse(BaseModel):
    message: str
    group: GroupWithRelations


class GroupCatalogItem(GroupWithRelations):
    is_user_enrolled: bool
    is_teacher_owned: bool
    can_enroll: bool


class GroupCatalogResponse(BaseModel):
    groups: List[GroupCatalogItem]
    current_user_group: Optional[uuid.UUID] = None


class UserGroupItem(GroupWithRelations):
    progress: ProgressResponse


class EnrollRequest(BaseModel):
    student_id: uuid.UUID


class EnrollmentResponse(BaseModel):
    message: str
    student: UserResponse


# ══════════════════════════════════════════════════════════════════════════
# Students
# ══════════════════════════════════════════════════════════════════════════


class StudentCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    level: str = Field(min_length=1, max_length=50)
    group_id: Optional[uuid.UUID] = None
    avatar: Optional[str] = Field(default=None, max_length=255)

    @field_validator("level")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_level(v)


class StudentUpdateRequest(BaseModel):
    """Partial update; an explicit `group_id: null` takes the student out of their group."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    level: Optional[str] = None
    group_id: Optional[uuid.UUID] = None
    avatar: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)


class StudentListItem(UserResponse):
    group: Optional[GroupBrief] = None


class StudentCreateResponse(BaseModel):
    message: str
    student: StudentListItem
    default_password: str


class StudentMessageResponse(BaseModel):
    message: str
    student: StudentListItem


class StudentGroupInfo(GroupBrief):
    teacher: UserBrief
    course: Optional[CourseBrief] = None


class StudentFeedbackItem(BaseModel):
    id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    lesson: LessonBrief


class StudentAttendanceItem(BaseModel):
    id: uuid.UUID
    status: AttendanceStatus
    notes: Optional[str] = None
    participation: Optional[int] = None
    created_at: datetime
    lesson: LessonBrief


class StudentDetailResponse(UserResponse):
    group: Optional[StudentGroupInfo] = None
    enrolled_courses: List[CourseBrief] = Field(default_factory=list)
    recent_feedbacks: List[StudentFeedbackItem] = Field(default_factory=list)
    recent_attendance: List[StudentAttendanceItem] = Field(default_factory=list)
