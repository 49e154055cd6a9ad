"""
Tutorium Backend — Product Service
====================================

Admin catalog of sellable products and the student enrollments in them.
"""

import logging
from datetime import timedelta
from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tutorium.exceptions import NotFoundError, ValidationError
from tutorium.models import Course, Product, Role, StudentProductEnrollment, User
from tutorium.models.base import as_utc, utcnow
from tutorium.schemas.common import CourseBrief, UserBrief
from tutorium.schemas.product import (
    ProductCreateRequest,
    ProductEnrollmentResponse,
    ProductEnrollRequest,
    ProductResponse,
)

logger = logging.getLogger(__name__)


def _product_to_response(product: Product, enrollment_count: int) -> ProductResponse:
    """`product.course` must be loaded."""
    return ProductResponse(
        id=product.id,
        name=product.name,
        type=product.type,
        description=product.description,
        course_id=product.course_id,
        max_lessons=product.max_lessons,
        validity_days=product.validity_days,
        price=product.price,
        is_active=product.is_active,
        created_at=product.created_at,
        course=CourseBrief.model_validate(product.course),
        enrollment_count=enrollment_count,
    )


class ProductService:

    async def _enrollment_counts(self, db: AsyncSession, product_ids: List[UUID]) -> Dict[UUID, int]:
        if not product_ids:
            return {}
        rows = (
            await db.execute(
                select(StudentProductEnrollment.product_id, func.count(StudentProductEnrollment.id))
                .where(StudentProductEnrollment.product_id.in_(product_ids))
                .group_by(StudentProductEnrollment.product_id)
            )
        ).all()
        return {product_id: count for product_id, count in rows}

    async def _load_product(self, db: AsyncSession, product_id: UUID) -> Product | None:
        result = await db.execute(
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.course))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_products(self, db: AsyncSession) -> List[ProductResponse]:
        result = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True))
            .options(selectinload(Product.course))
            .order_by(Product.created_at.desc())
        )
        products = result.scalars().all()
        counts = await self._enrollment_counts(db, [p.id for p in products])
        return [_product_to_response(p, counts.get(p.id, 0)) for p in products]

    async def create_product(self, db: AsyncSession, data: ProductCreateRequest) -> ProductResponse:
        if await db.get(Course, data.course_id) is None:
            raise NotFoundError(resource="Course", resource_id=data.course_id, message="Course not found")

        product = Product(
            name=data.name.strip(),
            type=data.type,
            description=data.description,
            course_id=data.course_id,
            max_lessons=data.max_lessons,
            validity_days=data.validity_days,
            price=data.price,
        )
        db.add(product)
        await db.flush()
        logger.info("Created %s product %s", data.type.value, product.id)
        return _product_to_response(await self._load_product(db, product.id), 0)

    async def enroll(
        self, db: AsyncSession, data: ProductEnrollRequest
    ) -> ProductEnrollmentResponse:
        """
        Enroll a student in a product. Without an explicit `expires_at`, the
        product's `validity_days` (when set) decides the expiry.
        """
        student = await db.get(User, data.student_id)
        if student is None or student.role != Role.STUDENT:
            raise NotFoundError(resource="Student", resource_id=data.student_id, message="Student not found")
        product = await self._load_product(db, data.product_id)
        if product is None:
            raise NotFoundError(resource="Product", resource_id=data.product_id, message="Product not found")

        existing = (
            await db.execute(
                select(StudentProductEnrollment.id).where(
                    StudentProductEnrollment.student_id == student.id,
                    StudentProductEnrollment.product_id == product.id,
                )
            )
        ).first()
        if existing is not None:
            raise ValidationError(message="Student is already enrolled in this product")

        enrolled_at = utcnow()
        expires_at = as_utc(data.expires_at) if data.expires_at else None
        if expires_at is None and product.validity_days:
            expires_at = enrolled_at + timedelta(days=product.validity_days)

        enrollment = StudentProductEnrollment(
            student_id=student.id,
            product_id=product.id,
            enrolled_at=enrolled_at,
            expires_at=expires_at,
        )
        db.add(enrollment)
        await db.flush()
        logger.info("Student %s enrolled in product %s", student.id, product.id)

        counts = await self._enrollment_counts(db, [product.id])
        return ProductEnrollmentResponse(
            id=enrollment.id,
            student_id=student.id,
            product_id=product.id,
            enrolled_at=enrollment.enrolled_at,
            expires_at=enrollment.expires_at,
            is_active=enrollment.is_active,
            student=UserBrief.model_validate(student),
            product=_product_to_response(product, counts.get(product.id, 0)),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
product_service = ProductService()
