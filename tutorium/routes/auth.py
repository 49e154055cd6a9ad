"""
Tutorium Backend — Authentication Routes
==========================================

What:  Registration, login and logout.
How:   Login returns the JWT in the body and also sets it as an httpOnly
       cookie, so browser clients need no token handling of their own.
       Logout only clears the cookie; tokens are stateless and simply expire.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.jwt import jwt_manager
from tutorium.config import settings
from tutorium.database import get_db_session
from tutorium.schemas.common import ErrorResponse, MessageResponse
from tutorium.schemas.user import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from tutorium.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=jwt_manager.max_age_seconds,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
        path="/",
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Unknown role", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.register(db, data)
    return AuthResponse(
        message="User created successfully",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
    summary="Log in and receive a session token",
)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user, token = await auth_service.login(db, data.email, data.password)
    _set_auth_cookie(response, token)
    logger.info("User %s logged in", user.id)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        token=token,
    )


@router.post("/logout", response_model=MessageResponse, summary="Clear the session cookie")
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite="lax",
    )
    return MessageResponse(message="Logout successful")
