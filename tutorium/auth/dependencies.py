"""
Tutorium Backend — Authentication Dependencies
================================================

What:  FastAPI dependencies that resolve the calling user and enforce roles.
How:   The JWT is taken from `Authorization: Bearer <token>`, falling back
       to the httpOnly `token` cookie set at login. The user row is loaded
       fresh on every request, so deactivating or deleting an account takes
       effect immediately even though its tokens are still signed.

Usage:
    @router.get("/groups")
    async def list_groups(user: User = Depends(require_staff)): ...
"""

import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tutorium.auth.jwt import JWTError, jwt_manager
from tutorium.config import settings
from tutorium.database import get_db_session
from tutorium.exceptions import AuthenticationError, PermissionDeniedError
from tutorium.models import Role, User

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is not an error yet, the cookie may carry the token
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = credentials.credentials if credentials else request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationError(message="Authentication required")

    try:
        payload = jwt_manager.decode_token(token)
    except JWTError as e:
        logger.info("Rejected token: %s", str(e))
        raise AuthenticationError(message="Invalid token")

    user = await db.get(User, payload.user_id)
    if user is None or not user.is_active:
        raise AuthenticationError(message="Invalid token")
    return user


class RequireRole:
    """Dependency factory: `Depends(RequireRole(Role.ADMIN, Role.TEACHER))`."""

    def __init__(self, *roles: Role):
        self.roles = frozenset(roles)

    async def __call__(self, user: User = Depends(get_current_user)) -> User:
        if user.role not in self.roles:
            raise PermissionDeniedError(
                message="Insufficient permissions",
                context={"required": sorted(r.value for r in self.roles)},
            )
        return user


require_admin = RequireRole(Role.ADMIN)
require_staff = RequireRole(Role.ADMIN, Role.TEACHER)
require_student = RequireRole(Role.STUDENT)
require_student_or_admin = RequireRole(Role.STUDENT, Role.ADMIN)
