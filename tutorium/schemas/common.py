"""
Tutorium Backend — Shared Schemas
===================================

What:  Error/health envelopes and the compact "brief" shapes that other
       responses embed (a lesson's teacher, a student's group, ...).
Why:   Keeping the briefs here lets every domain schema module import them
       without importing each other.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tutorium.models.enums import LessonStatus, LessonType, Role


# ══════════════════════════════════════════════════════════════════════════
# Error / Status Envelopes
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Course not found",
            "details": {"resource": "Course"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class StatusResponse(BaseModel):
    message: str
    timestamp: datetime
    environment: str


class LevelOption(BaseModel):
    value: str
    label: str
    description: str


# ══════════════════════════════════════════════════════════════════════════
# Brief shapes embedded in larger responses
# ══════════════════════════════════════════════════════════════════════════


class UserBrief(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: Role
    avatar: Optional[str] = None
    level: Optional[str] = None

    model_config = {"from_attributes": True}


class CourseBrief(BaseModel):
    id: uuid.UUID
    name: str
    level: str

    model_config = {"from_attributes": True}


class GroupBrief(BaseModel):
    id: uuid.UUID
    name: str
    level: str

    model_config = {"from_attributes": True}


class TopicBrief(BaseModel):
    id: uuid.UUID
    name: str
    order: int

    model_config = {"from_attributes": True}


class LessonBrief(BaseModel):
    id: uuid.UUID
    title: str
    date: datetime
    status: LessonStatus
    lesson_type: LessonType
    group_id: Optional[uuid.UUID] = None

    model_config = {"from_attributes": True}
