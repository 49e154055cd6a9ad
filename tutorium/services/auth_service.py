"""
Tutorium Backend — Auth Service
=================================

What:  Registration, login, token issue and self-service profile edits.
Who:   Called by routes/auth.py and routes/users.py.

Login never reveals whether the email exists: unknown email, wrong
password and deactivated account all produce the same 401.
"""

import logging
from typing import Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.jwt import jwt_manager
from tutorium.auth.password import hash_password, verify_password
from tutorium.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ValidationError,
)
from tutorium.models import Role, User
from tutorium.schemas.user import ProfileUpdateRequest, RegisterRequest

logger = logging.getLogger(__name__)


async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


class AuthService:
    """Stateless: every method receives the request's session."""

    def issue_token(self, user: User) -> str:
        return jwt_manager.create_token(user_id=user.id, email=user.email, role=user.role.value)

    async def register(self, db: AsyncSession, data: RegisterRequest) -> Tuple[User, str]:
        try:
            role = Role(data.role.upper())
        except ValueError:
            raise ValidationError(
                message=f"Invalid role '{data.role}'",
                field="role",
                context={"allowed": [r.value for r in Role]},
            )

        if await find_user_by_email(db, data.email):
            raise ConflictError(
                message="User with this email already exists",
                context={"email": data.email},
            )

        user = User(
            name=data.name.strip(),
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            role=role,
        )
        try:
            db.add(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to register user %s: %s", data.email, str(e))
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"original_error": type(e).__name__},
            )

        logger.info("Registered %s user %s", role.value, user.id)
        return user, self.issue_token(user)

    async def login(self, db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
        user = await find_user_by_email(db, email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %s", email)
            raise AuthenticationError(message="Invalid credentials")
        if not user.is_active:
            logger.info("Login attempt for deactivated account %s", user.id)
            raise AuthenticationError(message="Invalid credentials")

        return user, self.issue_token(user)

    async def update_profile(
        self, db: AsyncSession, user: User, data: ProfileUpdateRequest
    ) -> User:
        existing = await find_user_by_email(db, data.email)
        if existing is not None and existing.id != user.id:
            raise ValidationError(message="Email is already taken", field="email")

        user.name = f"{data.first_name.strip()} {data.last_name.strip()}"
        user.email = data.email.lower()
        user.level = data.level
        await db.flush()
        logger.info("User %s updated their profile", user.id)
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
