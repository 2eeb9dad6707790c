"""Shared FastAPI dependencies."""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.core import get_db
from tokengate.core.request_utils import (
    RequestContext,
    extract_bearer_token,
    get_request_context,
)
from tokengate.services.admin_session import AdminPrincipal, AdminSessionResolver
from tokengate.services.audit import TokenAuditService
from tokengate.services.errors import InvalidFormatError
from tokengate.services.token_issuer import TokenIssuer
from tokengate.services.token_rotator import TokenRotator
from tokengate.services.token_verifier import TokenVerifier, VerifiedToken


async def get_admin_principal(
    authorization: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> AdminPrincipal:
    """Dependency resolving the administrator session on the request."""
    return await AdminSessionResolver(db).resolve(authorization)


def get_token_issuer(db: AsyncSession = Depends(get_db)) -> TokenIssuer:
    return TokenIssuer(db)


def get_token_verifier(db: AsyncSession = Depends(get_db)) -> TokenVerifier:
    return TokenVerifier(db)


def get_token_rotator(db: AsyncSession = Depends(get_db)) -> TokenRotator:
    return TokenRotator(db)


def require_api_token(
    *scopes: str, role: str | None = None, audit_use: bool = False
) -> Callable[..., Awaitable[VerifiedToken]]:
    """Build a dependency that admits requests bearing a valid API token.

    With ``audit_use`` each admitted request also appends a ``used`` audit
    entry naming the method and path. Verification on its own never audits.

    Usage::

        @router.get("/documents", dependencies=[Depends(require_api_token("read"))])
    """

    async def dependency(
        request: Request,
        authorization: str | None = Header(None),
        verifier: TokenVerifier = Depends(get_token_verifier),
        db: AsyncSession = Depends(get_db),
        context: RequestContext = Depends(get_request_context),
    ) -> VerifiedToken:
        token = extract_bearer_token(authorization)
        if token is None:
            raise InvalidFormatError("Missing bearer token")
        verified = await verifier.verify(token, scopes, role)
        if audit_use:
            await TokenAuditService(db).record_use(
                verified.jti,
                verified.subject,
                details={"method": request.method, "path": request.url.path},
                context=context,
            )
        return verified

    return dependency
