"""Token rotation and revocation.

Rotation swaps an active token for a new one in a single transaction:
the old row is revoked with an update conditional on it still being
active, and the successor is inserted before one commit. Of two
concurrent rotations of the same jti only one can win the conditional
update; the other rolls back with AlreadyRevokedError.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.core.request_utils import RequestContext
from tokengate.models.access_token import STATUS_ACTIVE, STATUS_REVOKED, AccessToken
from tokengate.services.admin_session import AdminPrincipal
from tokengate.services.audit import AuditAction, AuditEntry, TokenAuditService
from tokengate.services.crypto import get_signing_secret, hash_token
from tokengate.services.errors import (
    AlreadyRevokedError,
    RotationTargetExpiredError,
    TokenNotFoundError,
)
from tokengate.services.token_issuer import Clock, ensure_admin, mint, utc_clock
from tokengate.services.token_store import AccessTokenStore

logger = logging.getLogger(__name__)

ROTATED_SUFFIX = " (rotated)"


@dataclass
class RotationResult:
    token: str
    old_jti: str
    new_jti: str
    scopes: list[str]
    tenant: str
    expires_at: datetime


@dataclass
class RevocationResult:
    jti: str
    revoked_at: datetime


class TokenRotator:
    """Rotates and revokes tokens owned by an administrator."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        signing_secret: str | None = None,
        clock: Clock = utc_clock,
    ):
        self.store = AccessTokenStore(session)
        self.audit = TokenAuditService(session)
        self.signing_secret = signing_secret
        self.clock = clock

    async def _load_target(self, principal: AdminPrincipal, jti: str) -> AccessToken:
        row = await self.store.get_owned(jti, principal.id, principal.tenant, for_update=True)
        if row is None:
            raise TokenNotFoundError()
        if row.status == STATUS_REVOKED:
            raise AlreadyRevokedError()
        return row

    async def rotate(
        self,
        principal: AdminPrincipal | None,
        jti: str,
        context: RequestContext | None = None,
    ) -> RotationResult:
        """Replace token ``jti`` with a new token carrying the same grants.

        The successor's lifetime equals the original's creation-to-expiry
        span, measured from now.

        Raises:
            UnauthorizedError: No administrator principal.
            ConfigurationError: No signing secret.
            TokenNotFoundError: Unknown jti, or owned by someone else.
            AlreadyRevokedError: Target already revoked (or lost a race).
            RotationTargetExpiredError: Target has expired.
            PersistenceError: The store rejected the swap.
        """
        actor = ensure_admin(principal)
        secret = get_signing_secret(self.signing_secret)
        now = self.clock()

        old = await self._load_target(actor, jti)
        if old.is_expired(now):
            raise RotationTargetExpiredError()

        name = old.name
        scopes = list(old.scopes or [])
        tenant = old.tenant
        role = old.role
        lifetime_seconds = int(old.lifetime.total_seconds())

        token, new_jti, iat, exp = mint(
            secret=secret,
            subject=str(actor.id),
            role=role,
            tenant=tenant,
            scopes=scopes,
            issued_at=now,
            lifetime_seconds=lifetime_seconds,
        )
        created_at = datetime.fromtimestamp(iat, UTC)
        expires_at = datetime.fromtimestamp(exp, UTC)

        if not await self.store.mark_revoked(jti, actor.id, now):
            await self.store.rollback()
            logger.warning(f"Rotation of token {jti} lost a concurrent revoke")
            raise AlreadyRevokedError()

        await self.store.insert(
            AccessToken(
                jti=new_jti,
                name=f"{name}{ROTATED_SUFFIX}",
                token_hash=hash_token(token),
                owner_id=actor.id,
                tenant=tenant,
                scopes=scopes,
                role=role,
                expires_at=expires_at,
                status=STATUS_ACTIVE,
                created_at=created_at,
                updated_at=created_at,
            )
        )
        await self.store.commit()

        ctx = context or RequestContext()
        await self.audit.append(
            AuditEntry(
                token_jti=jti,
                actor_id=actor.id,
                action=AuditAction.ROTATED,
                details={"old_jti": jti, "new_jti": new_jti, "name": name},
                context=ctx,
            ),
            AuditEntry(
                token_jti=new_jti,
                actor_id=actor.id,
                action=AuditAction.CREATED,
                details={"created_by_rotation": True, "old_jti": jti, "name": name},
                context=ctx,
            ),
        )
        logger.info(
            f"Rotated token {jti} -> {new_jti}",
            extra={"jti": new_jti, "tenant": tenant, "actor": actor.email},
        )
        return RotationResult(
            token=token,
            old_jti=jti,
            new_jti=new_jti,
            scopes=scopes,
            tenant=tenant,
            expires_at=expires_at,
        )

    async def revoke(
        self,
        principal: AdminPrincipal | None,
        jti: str,
        context: RequestContext | None = None,
    ) -> RevocationResult:
        """Revoke token ``jti``. Revocation is terminal.

        Raises:
            UnauthorizedError: No administrator principal.
            TokenNotFoundError: Unknown jti, or owned by someone else.
            AlreadyRevokedError: Target already revoked.
            PersistenceError: The store rejected the update.
        """
        actor = ensure_admin(principal)
        now = self.clock()

        row = await self._load_target(actor, jti)
        name = row.name
        scopes = list(row.scopes or [])

        if not await self.store.mark_revoked(jti, actor.id, now):
            await self.store.rollback()
            raise AlreadyRevokedError()
        await self.store.commit()

        await self.audit.append(
            AuditEntry(
                token_jti=jti,
                actor_id=actor.id,
                action=AuditAction.REVOKED,
                details={"name": name, "scopes": scopes},
                context=context or RequestContext(),
            )
        )
        logger.info(
            f"Revoked token {jti}",
            extra={"jti": jti, "tenant": actor.tenant, "actor": actor.email},
        )
        return RevocationResult(jti=jti, revoked_at=now)
