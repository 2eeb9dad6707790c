"""Token Audit Logging Service.

Append-only record of token lifecycle events:
- Token creation (direct or by rotation)
- Rotation
- Revocation
- Use by a consumer that opted in (never written by verification itself)

Appends are best-effort. A failed audit write is logged and dropped; it
never undoes the token operation that triggered it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.core.request_utils import RequestContext
from tokengate.models.token_audit_log import TokenAuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    """Token audit action types."""

    CREATED = "created"
    ROTATED = "rotated"
    REVOKED = "revoked"
    USED = "used"


@dataclass
class AuditEntry:
    """One event to append."""

    token_jti: str
    actor_id: UUID
    action: AuditAction
    details: dict[str, Any] = field(default_factory=dict)
    context: RequestContext = field(default_factory=RequestContext)


class TokenAuditService:
    """Writes and pages through ``token_audit_log``."""

    SENSITIVE_KEYS = {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
    }

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, *entries: AuditEntry) -> bool:
        """Append entries in one commit.

        Returns False (after logging) if the write failed.
        """
        for entry in entries:
            self.session.add(
                TokenAuditLog(
                    token_jti=entry.token_jti,
                    actor_id=entry.actor_id,
                    action=entry.action.value,
                    details=self._sanitize_details(entry.details),
                    ip_address=entry.context.ip_address,
                    user_agent=entry.context.user_agent,
                )
            )
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(
                "Failed to write token audit entries: "
                + ", ".join(f"{e.action.value}:{e.token_jti}" for e in entries)
            )
            return False
        return True

    async def record_use(
        self,
        token_jti: str,
        subject: str | UUID,
        *,
        details: dict[str, Any] | None = None,
        context: RequestContext | None = None,
    ) -> bool:
        """Append a ``used`` entry for a verified token.

        The actor is the token's owner (its ``sub`` claim). Best-effort like
        :meth:`append`.
        """
        actor_id = subject if isinstance(subject, UUID) else UUID(subject)
        return await self.append(
            AuditEntry(
                token_jti=token_jti,
                actor_id=actor_id,
                action=AuditAction.USED,
                details=details or {},
                context=context or RequestContext(),
            )
        )

    def _sanitize_details(self, details: dict[str, Any]) -> dict[str, Any]:
        """Redact secrets from audit details.

        Keys are matched case-insensitively on substrings, so
        ``token_hash`` is redacted as well as ``token``.
        """
        sanitized: dict[str, Any] = {}
        for key, value in details.items():
            key_lower = key.lower()
            if any(s in key_lower for s in self.SENSITIVE_KEYS):
                sanitized[key] = "[REDACTED - set]" if value is not None else "[REDACTED - unset]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_details(value)
            else:
                sanitized[key] = value
        return sanitized

    async def list_for_token(
        self,
        token_jti: str,
        *,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[TokenAuditLog], int]:
        """Newest-first page of a token's audit trail.

        Callers must first establish that the token belongs to the
        requesting owner and tenant.
        """
        total_result = await self.session.execute(
            select(func.count())
            .select_from(TokenAuditLog)
            .where(TokenAuditLog.token_jti == token_jti)
        )
        total = total_result.scalar() or 0
        result = await self.session.execute(
            select(TokenAuditLog)
            .where(TokenAuditLog.token_jti == token_jti)
            .order_by(TokenAuditLog.created_at.desc(), TokenAuditLog.id)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total
