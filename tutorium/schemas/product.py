"""
Tutorium Backend — Product Schemas
====================================
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tutorium.models.enums import ProductType
from tutorium.schemas.common import CourseBrief, UserBrief


class ProductCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: ProductType
    course_id: uuid.UUID
    description: Optional[str] = None
    max_lessons: Optional[int] = Field(default=None, ge=1)
    validity_days: Optional[int] = Field(default=None, ge=1)
    price: Optional[float] = Field(default=None, ge=0)


class ProductResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: ProductType
    description: Optional[str] = None
    course_id: uuid.UUID
    max_lessons: Optional[int] = None
    validity_days: Optional[int] = None
    price: Optional[float] = None
    is_active: bool
    created_at: datetime
    course: CourseBrief
    enrollment_count: int = 0


class ProductEnrollRequest(BaseModel):
    student_id: uuid.UUID
    product_id: uuid.UUID
    expires_at: Optional[datetime] = None


class ProductEnrollmentResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    product_id: uuid.UUID
    enrolled_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool
    student: UserBrief
    product: ProductResponse
