"""
Tutorium Backend — Product Routes
===================================

ADMIN only: the sellable packages (group course, individual lesson packs)
and student enrollments in them.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import require_admin
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse
from tutorium.schemas.product import (
    ProductCreateRequest,
    ProductEnrollmentResponse,
    ProductEnrollRequest,
    ProductResponse,
)
from tutorium.services.product_service import product_service

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=List[ProductResponse], summary="Active products")
async def list_products(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[ProductResponse]:
    return await product_service.list_products(db)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Course not found", "model": ErrorResponse}},
)
async def create_product(
    data: ProductCreateRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ProductResponse:
    return await product_service.create_product(db, data)


@router.post(
    "/enroll",
    response_model=ProductEnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Already enrolled", "model": ErrorResponse},
        404: {"description": "Student or product not found", "model": ErrorResponse},
    },
    summary="Enroll a student in a product",
)
async def enroll_in_product(
    data: ProductEnrollRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> ProductEnrollmentResponse:
    return await product_service.enroll(db, data)
