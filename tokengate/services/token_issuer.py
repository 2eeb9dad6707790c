"""Token issuance."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.core import settings
from tokengate.core.config import MAX_LIFETIME_HOURS
from tokengate.core.request_utils import RequestContext
from tokengate.models.access_token import STATUS_ACTIVE, AccessToken
from tokengate.models.admin_user import ADMIN_ROLE
from tokengate.services import token_codec
from tokengate.services.admin_session import AdminPrincipal
from tokengate.services.audit import AuditAction, AuditEntry, TokenAuditService
from tokengate.services.crypto import generate_jti, get_signing_secret, hash_token
from tokengate.services.errors import InvalidRequestError, UnauthorizedError
from tokengate.services.token_policy import resolve_lifetime_hours, validate_scopes
from tokengate.services.token_store import AccessTokenStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_clock() -> datetime:
    return datetime.now(UTC)


@dataclass
class IssuedToken:
    """A freshly minted token. ``token`` is the only copy of the plaintext."""

    token: str
    jti: str
    name: str
    scopes: list[str]
    tenant: str
    role: str
    issued_at: datetime
    expires_at: datetime


def ensure_admin(principal: AdminPrincipal | None) -> AdminPrincipal:
    if principal is None or principal.role != ADMIN_ROLE:
        raise UnauthorizedError()
    return principal


def mint(
    *,
    secret: str,
    subject: str,
    role: str,
    tenant: str,
    scopes: list[str],
    issued_at: datetime,
    lifetime_seconds: int,
) -> tuple[str, str, int, int]:
    """Sign a new token. Returns ``(token, jti, iat, exp)``."""
    iat = int(issued_at.timestamp())
    exp = iat + lifetime_seconds
    jti = generate_jti()
    claims = {
        "sub": subject,
        "role": role,
        "tenant": tenant,
        "scopes": scopes,
        "iat": iat,
        "exp": exp,
        "jti": jti,
    }
    return token_codec.sign(claims, secret), jti, iat, exp


class TokenIssuer:
    """Mints API tokens for authenticated administrators."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        signing_secret: str | None = None,
        allowed_scopes: Iterable[str] | None = None,
        max_lifetime_hours: int | None = None,
        clock: Clock = utc_clock,
    ):
        self.session = session
        self.store = AccessTokenStore(session)
        self.audit = TokenAuditService(session)
        self.signing_secret = signing_secret
        self.allowed_scopes = (
            frozenset(allowed_scopes) if allowed_scopes is not None else settings.allowed_scopes
        )
        self.max_lifetime_hours = min(
            max_lifetime_hours or settings.token_max_lifetime_hours, MAX_LIFETIME_HOURS
        )
        self.clock = clock

    async def issue(
        self,
        principal: AdminPrincipal | None,
        name: str,
        expires_in: int | str,
        scopes: Iterable[str],
        context: RequestContext | None = None,
    ) -> IssuedToken:
        """Issue a new token.

        The plaintext is returned exactly once; only its hash is stored.

        Raises:
            UnauthorizedError: No administrator principal.
            InvalidRequestError: Empty name.
            InvalidExpirationError: Bad or out-of-range expiration.
            InvalidScopesError: Scopes outside the whitelist.
            ConfigurationError: No signing secret.
            PersistenceError: The store rejected the row.
        """
        actor = ensure_admin(principal)
        label = (name or "").strip()
        if not label:
            raise InvalidRequestError("Token name is required")
        hours = resolve_lifetime_hours(expires_in, self.max_lifetime_hours)
        granted = validate_scopes(scopes, self.allowed_scopes)
        secret = get_signing_secret(self.signing_secret)

        token, jti, iat, exp = mint(
            secret=secret,
            subject=str(actor.id),
            role=ADMIN_ROLE,
            tenant=actor.tenant,
            scopes=granted,
            issued_at=self.clock(),
            lifetime_seconds=hours * 3600,
        )
        created_at = datetime.fromtimestamp(iat, UTC)
        expires_at = datetime.fromtimestamp(exp, UTC)

        await self.store.insert(
            AccessToken(
                jti=jti,
                name=label,
                token_hash=hash_token(token),
                owner_id=actor.id,
                tenant=actor.tenant,
                scopes=granted,
                role=ADMIN_ROLE,
                expires_at=expires_at,
                status=STATUS_ACTIVE,
                created_at=created_at,
                updated_at=created_at,
            )
        )
        await self.store.commit()

        issued = IssuedToken(
            token=token,
            jti=jti,
            name=label,
            scopes=granted,
            tenant=actor.tenant,
            role=ADMIN_ROLE,
            issued_at=created_at,
            expires_at=expires_at,
        )
        await self.audit.append(
            AuditEntry(
                token_jti=jti,
                actor_id=actor.id,
                action=AuditAction.CREATED,
                details={
                    "name": label,
                    "scopes": granted,
                    "expires_at": expires_at.isoformat(),
                },
                context=context or RequestContext(),
            )
        )
        logger.info(
            f"Issued token {jti} for {actor.email} ({hours}h)",
            extra={"jti": jti, "tenant": actor.tenant, "actor": actor.email},
        )
        return issued
