"""Administrator session tokens.

Sessions are issued by the surrounding application and are distinct from
the API tokens this service manages: they are signed with
SESSION_SECRET_KEY and carry ``type: "session"``.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt
from jwt.exceptions import PyJWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.core import settings
from tokengate.core.request_utils import extract_bearer_token
from tokengate.models.admin_user import AdminUser
from tokengate.services.errors import UnauthorizedError

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"
SESSION_TYPE = "session"


@dataclass(frozen=True)
class AdminPrincipal:
    """The authenticated administrator behind a management request."""

    id: UUID
    email: str
    role: str
    tenant: str

    @classmethod
    def from_user(cls, user: AdminUser) -> "AdminPrincipal":
        return cls(id=user.id, email=user.email, role=user.role, tenant=user.tenant)


def _session_secret(secret: str | None) -> str:
    resolved = secret if secret is not None else settings.session_secret_key
    if not resolved:
        logger.error("SESSION_SECRET_KEY is not configured")
        raise UnauthorizedError()
    return resolved


def create_session_token(
    user: AdminUser,
    expires_minutes: int | None = None,
    secret: str | None = None,
) -> str:
    """Create an administrator session token."""
    minutes = expires_minutes or settings.session_token_expire_minutes
    payload = {
        "sub": str(user.id),
        "exp": datetime.now(UTC) + timedelta(minutes=minutes),
        "type": SESSION_TYPE,
        "sv": user.session_version,  # Session version for invalidation
    }
    return str(jwt.encode(payload, _session_secret(secret), algorithm=SESSION_ALGORITHM))


def decode_session_token(token: str, secret: str | None = None) -> dict[str, Any]:
    """Decode and validate a session token.

    Raises:
        UnauthorizedError: Expired, tampered, or not a session token.
    """
    try:
        payload = jwt.decode(token, _session_secret(secret), algorithms=[SESSION_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise UnauthorizedError("Session expired") from e
    except PyJWTError as e:
        raise UnauthorizedError() from e
    if payload.get("type") != SESSION_TYPE:
        raise UnauthorizedError("Not a session token")
    return payload


class AdminSessionResolver:
    """Resolves an Authorization header to an active administrator."""

    def __init__(self, session: AsyncSession, secret: str | None = None):
        self.session = session
        self.secret = secret

    async def resolve(self, authorization: str | None) -> AdminPrincipal:
        token = extract_bearer_token(authorization)
        if token is None:
            raise UnauthorizedError()

        payload = decode_session_token(token, self.secret)
        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError as e:
            raise UnauthorizedError() from e

        result = await self.session.execute(select(AdminUser).where(AdminUser.id == user_id))
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            raise UnauthorizedError()
        if user.session_version != payload.get("sv"):
            raise UnauthorizedError("Session invalidated")
        return AdminPrincipal.from_user(user)
