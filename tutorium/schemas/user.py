"""
Tutorium Backend — User, Auth and Admin Schemas
=================================================

Request bodies for registration, login, profile edits and admin user
management, plus the user representations returned by those endpoints.
`password_hash` never appears in any response model.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from tutorium.levels import normalize_level
from tutorium.models.enums import Role
from tutorium.schemas.common import CourseBrief, GroupBrief


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    name: str
    first_name: str
    last_name: str
    role: Role
    avatar: Optional[str] = None
    level: Optional[str] = None
    is_active: bool
    group_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str


class UserMessageResponse(BaseModel):
    message: str
    user: UserResponse


class AdminUserResponse(UserResponse):
    """A user as seen on the admin users screen."""
    group: Optional[GroupBrief] = None
    enrolled_courses: List[CourseBrief] = Field(default_factory=list)
    average_rating: Optional[float] = Field(
        default=None, description="Mean rating this user has given; null without feedback"
    )
    total_feedbacks: int = 0


class AdminUserCreateResponse(AdminUserResponse):
    default_password: str = Field(description="Generated password, shown once")


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    # Plain string: an unknown role is a 400 business error, not a 422
    role: str = Field(default=Role.TEACHER.value)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    level: Optional[str] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)


class AdminUserCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    role: Role
    group_id: Optional[uuid.UUID] = None
    is_active: bool = True
    level: Optional[str] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)


class AdminUserUpdateRequest(BaseModel):
    """
    Every field is optional. `name` changes only when both first and last
    name are sent. `course_ids` replaces the course enrollments.
    Sending `group_id: null` explicitly removes the user from their group.
    """
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    group_id: Optional[uuid.UUID] = None
    level: Optional[str] = None
    is_active: Optional[bool] = None
    course_ids: Optional[List[uuid.UUID]] = None

    @field_validator("level")
    @classmethod
    def normalize(cls, v: Optional[str]) -> Optional[str]:
        return normalize_level(v)
