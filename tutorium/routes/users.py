"""
Tutorium Backend — Self-Service Profile Routes
================================================
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.dependencies import get_current_user
from tutorium.database import get_db_session
from tutorium.models import User
from tutorium.schemas.common import ErrorResponse
from tutorium.schemas.user import ProfileUpdateRequest, UserMessageResponse, UserResponse
from tutorium.services.auth_service import auth_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse, summary="The current user")
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put(
    "/update",
    response_model=UserMessageResponse,
    responses={400: {"description": "Email already taken", "model": ErrorResponse}},
    summary="Update the current user's name, email and level",
)
async def update_profile(
    data: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserMessageResponse:
    updated = await auth_service.update_profile(db, user, data)
    return UserMessageResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(updated),
    )
