"""JWT session token management.

Tokens are signed with HS256 (configurable) using python-jose and carry the
user's id, email and role. They are valid for ``settings.jwt_expire_days``.

Example:
    >>> manager = JWTManager(secret_key="x" * 32)
    >>> token = manager.create_token(user_id=uid, email="a@b.c", role="TEACHER")
    >>> manager.decode_token(token).role
    'TEACHER'
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel

from tutorium.config import settings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        user_id: Subject user ID.
        email: Email at issue time.
        role: ADMIN, TEACHER or STUDENT at issue time.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
    """

    user_id: UUID
    email: str
    role: str
    exp: int
    iat: int


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is malformed, tampered with, or missing claims."""

    pass


class JWTManager:
    """Session token creation and validation."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_days: int = 7,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_days = expire_days

    @property
    def max_age_seconds(self) -> int:
        return self._expire_days * 24 * 60 * 60

    def create_token(
        self,
        user_id: UUID,
        email: str,
        role: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed session token.

        Args:
            user_id: User identifier.
            email: User's email address.
            role: User's role code.
            now: Issue time override (tests use it to mint expired tokens).

        Returns:
            Encoded JWT string.
        """
        issued = now or datetime.now(timezone.utc)
        expires = issued + timedelta(days=self._expire_days)

        payload = {
            "user_id": str(user_id),
            "email": email,
            "role": role,
            "exp": int(expires.timestamp()),
            "iat": int(issued.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate a session token.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            return TokenPayload(
                user_id=UUID(payload["user_id"]),
                email=payload["email"],
                role=payload["role"],
                exp=payload["exp"],
                iat=payload["iat"],
            )
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except (JoseJWTError, KeyError, ValueError) as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")


jwt_manager = JWTManager(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
    expire_days=settings.jwt_expire_days,
)
