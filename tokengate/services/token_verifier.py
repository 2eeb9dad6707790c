"""Bearer token verification.

Stateless checks (structure, expiry, signature) run first and reject
garbage before the store is touched. Only then is the row looked up by
``(jti, hash)`` and the scope and role gates applied.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.services import token_codec
from tokengate.services.crypto import get_signing_secret, hash_token
from tokengate.services.errors import NotFoundOrRevokedError, TokenExpiredError
from tokengate.services.last_used import LastUsedRecorder, get_last_used_recorder
from tokengate.services.token_issuer import Clock, utc_clock
from tokengate.services.token_policy import ensure_role, ensure_scopes
from tokengate.services.token_store import AccessTokenStore

logger = logging.getLogger(__name__)


@dataclass
class VerifiedToken:
    subject: str
    tenant: str
    role: str
    scopes: list[str]
    jti: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "valid": True,
            "sub": self.subject,
            "scopes": self.scopes,
            "role": self.role,
            "tenant": self.tenant,
            "exp": self.expires_at.isoformat(),
            "iat": self.issued_at.isoformat(),
            "jti": self.jti,
        }


class TokenVerifier:
    """Verifies presented bearer tokens against the codec and the store."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        signing_secret: str | None = None,
        recorder: LastUsedRecorder | None = None,
        clock: Clock = utc_clock,
    ):
        self.store = AccessTokenStore(session)
        self.signing_secret = signing_secret
        self.recorder = recorder or get_last_used_recorder()
        self.clock = clock

    async def verify(
        self,
        token: str,
        required_scopes: Iterable[str] = (),
        required_role: str | None = None,
    ) -> VerifiedToken:
        """Verify ``token`` and authorize it for ``required_scopes``.

        Raises:
            ConfigurationError: No signing secret.
            InvalidFormatError, InvalidSignatureError, TokenExpiredError:
                Stateless rejection.
            NotFoundOrRevokedError: Unknown, revoked, or mismatched token.
            InsufficientScopeError: Token lacks a required scope.
            InsufficientRoleError: Token role does not match ``required_role``.
        """
        secret = get_signing_secret(self.signing_secret)
        now = self.clock()
        claims = token_codec.verify(token, secret, now=now.timestamp())
        jti = str(claims["jti"])

        row = await self.store.get_active(jti, hash_token(token))
        if row is None or row.tenant != claims["tenant"] or str(row.owner_id) != claims["sub"]:
            logger.debug(f"Rejected token {jti}: not found or revoked", extra={"jti": jti})
            raise NotFoundOrRevokedError()

        # The row is authoritative even when the claim says otherwise
        if row.is_expired(now):
            logger.debug(f"Rejected token {jti}: row expired", extra={"jti": jti})
            raise TokenExpiredError()

        verified = VerifiedToken(
            subject=str(row.owner_id),
            tenant=row.tenant,
            role=row.role,
            scopes=list(row.scopes or []),
            jti=row.jti,
            issued_at=datetime.fromtimestamp(claims["iat"], UTC),
            expires_at=row.expires_at,
        )

        ensure_scopes(verified.scopes, required_scopes)
        ensure_role(verified.role, required_role)

        self.recorder.schedule(jti, now)
        return verified
