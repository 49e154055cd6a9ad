"""
Tutorium Backend — Admin User Management Routes
=================================================

What:  CRUD over every account. ADMIN only.
Who:   The admin "Users" screen.

Created accounts get a generated password that is returned exactly once
in the create response (`default_password`); it is never stored in clear.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import require_admin
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.user import (
    AdminUserCreateRequest,
    AdminUserCreateResponse,
    AdminUserResponse,
    AdminUserUpdateRequest,
)
from tutorium.services.admin_service import admin_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.get("/users", response_model=List[AdminUserResponse], summary="List all users")
async def list_users(
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> List[AdminUserResponse]:
    return await admin_service.list_users(db)


@router.post(
    "/users",
    response_model=AdminUserCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Email already in use", "model": ErrorResponse},
        404: {"description": "Group not found", "model": ErrorResponse},
    },
    summary="Create a user with a generated password",
)
async def create_user(
    data: AdminUserCreateRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminUserCreateResponse:
    return await admin_service.create_user(db, data)


@router.put(
    "/users/{user_id}",
    response_model=AdminUserResponse,
    responses={
        400: {"description": "Duplicate email or unknown course", "model": ErrorResponse},
        404: {"description": "User or group not found", "model": ErrorResponse},
    },
    summary="Update a user",
)
async def update_user(
    user_id: UUID,
    data: AdminUserUpdateRequest,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AdminUserResponse:
    return await admin_service.update_user(db, user_id, data)


@router.delete(
    "/users/{user_id}",
    response_model=MessageResponse,
    responses={
        400: {"description": "Last admin, or a teacher who still owns groups/lessons",
              "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Delete a user and their personal records",
)
async def delete_user(
    user_id: UUID,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await admin_service.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")
