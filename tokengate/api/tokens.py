"""API token management and verification endpoints.

Management endpoints (create, list, rotate, revoke, audit) require an
administrator session. Verification takes the API token itself.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.api.deps import (
    get_admin_principal,
    get_token_issuer,
    get_token_rotator,
    get_token_verifier,
)
from tokengate.core import get_db
from tokengate.core.request_utils import (
    RequestContext,
    extract_bearer_token,
    get_request_context,
)
from tokengate.schemas.token import (
    AuditLogEntryResponse,
    AuditLogPaginatedResponse,
    Pagination,
    TokenCreate,
    TokenIssuedResponse,
    TokenListPaginatedResponse,
    TokenRevokedResponse,
    TokenRotatedResponse,
    TokenSummary,
    TokenVerifyResponse,
)
from tokengate.services.admin_session import AdminPrincipal
from tokengate.services.audit import TokenAuditService
from tokengate.services.errors import InvalidFormatError, TokenNotFoundError, TokenServiceError
from tokengate.services.token_issuer import TokenIssuer
from tokengate.services.token_rotator import TokenRotator
from tokengate.services.token_store import AccessTokenStore
from tokengate.services.token_verifier import TokenVerifier

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tokens",
    tags=["tokens"],
)


@router.post("", response_model=TokenIssuedResponse, status_code=status.HTTP_201_CREATED)
async def create_token(
    data: TokenCreate,
    principal: AdminPrincipal = Depends(get_admin_principal),
    issuer: TokenIssuer = Depends(get_token_issuer),
    context: RequestContext = Depends(get_request_context),
) -> TokenIssuedResponse:
    """Issue a new API token. The token value is returned only once."""
    issued = await issuer.issue(principal, data.name, data.expires_in, data.scopes, context)
    return TokenIssuedResponse(
        token=issued.token,
        jti=issued.jti,
        expires_at=issued.expires_at,
        scopes=issued.scopes,
        tenant=issued.tenant,
    )


@router.get("", response_model=TokenListPaginatedResponse)
async def list_tokens(
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    q: str | None = Query(None, max_length=255, description="Search by name"),
    token_status: Literal["active", "revoked"] | None = Query(None, alias="status"),
    order_by: Literal["created_at", "expires_at", "last_used_at", "name"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    principal: AdminPrincipal = Depends(get_admin_principal),
    db: AsyncSession = Depends(get_db),
) -> TokenListPaginatedResponse:
    """List the caller's tokens within their tenant."""
    rows, total = await AccessTokenStore(db).list_for_owner(
        principal.id,
        principal.tenant,
        page=page,
        per_page=per_page,
        search=q,
        status=token_status,
        order_by=order_by,
        descending=order == "desc",
    )
    return TokenListPaginatedResponse(
        items=[TokenSummary(**row.to_dict()) for row in rows],
        pagination=Pagination.build(page, per_page, total),
    )


def _verify_failure(error: TokenServiceError, head: bool) -> Response:
    headers = {"X-Token-Valid": "false", "X-Token-Error": error.code}
    if error.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    if head:
        return Response(status_code=error.status_code, headers=headers)
    body = TokenVerifyResponse(valid=False, error=str(error), code=error.code)
    return JSONResponse(
        status_code=error.status_code,
        content=body.model_dump(mode="json", include={"valid", "error", "code"}),
        headers=headers,
    )


@router.api_route("/verify", methods=["GET", "HEAD"], response_model=TokenVerifyResponse)
async def verify_token(
    request: Request,
    scope: list[str] = Query([], description="Required scopes"),
    role: str | None = Query(None, description="Required token role"),
    authorization: str | None = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Response:
    """Verify the bearer token in the Authorization header.

    HEAD returns the same outcome through ``X-Token-*`` headers only.
    """
    head = request.method == "HEAD"
    try:
        token = extract_bearer_token(authorization)
        if token is None:
            raise InvalidFormatError("Missing bearer token")
        verified = await verifier.verify(token, scope, role)
    except TokenServiceError as e:
        logger.debug(f"Token verification failed: {e.code}", extra={"code": e.code})
        return _verify_failure(e, head)

    headers = {
        "X-Token-Valid": "true",
        "X-Token-Scopes": ",".join(verified.scopes),
        "X-Token-Role": verified.role,
        "X-Token-Tenant": verified.tenant,
        "X-Token-Expires": verified.expires_at.isoformat(),
    }
    if head:
        return Response(status_code=status.HTTP_200_OK, headers=headers)
    body = TokenVerifyResponse(
        valid=True,
        scopes=verified.scopes,
        role=verified.role,
        tenant=verified.tenant,
        exp=verified.expires_at,
        iat=verified.issued_at,
        jti=verified.jti,
    )
    return JSONResponse(
        content=body.model_dump(mode="json", exclude={"error", "code"}),
        headers=headers,
    )


@router.patch("/{jti}/rotate", response_model=TokenRotatedResponse)
async def rotate_token(
    jti: str,
    principal: AdminPrincipal = Depends(get_admin_principal),
    rotator: TokenRotator = Depends(get_token_rotator),
    context: RequestContext = Depends(get_request_context),
) -> TokenRotatedResponse:
    """Replace a token with a fresh one carrying the same grants."""
    result = await rotator.rotate(principal, jti, context)
    return TokenRotatedResponse(
        token=result.token,
        expires_at=result.expires_at,
        scopes=result.scopes,
        tenant=result.tenant,
        old_jti=result.old_jti,
        new_jti=result.new_jti,
    )


@router.delete("/{jti}", response_model=TokenRevokedResponse)
async def revoke_token(
    jti: str,
    principal: AdminPrincipal = Depends(get_admin_principal),
    rotator: TokenRotator = Depends(get_token_rotator),
    context: RequestContext = Depends(get_request_context),
) -> TokenRevokedResponse:
    """Revoke a token. Revocation cannot be undone."""
    result = await rotator.revoke(principal, jti, context)
    return TokenRevokedResponse(jti=result.jti, revoked_at=result.revoked_at)


@router.get("/{jti}/audit", response_model=AuditLogPaginatedResponse)
async def get_token_audit(
    jti: str,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
    principal: AdminPrincipal = Depends(get_admin_principal),
    db: AsyncSession = Depends(get_db),
) -> AuditLogPaginatedResponse:
    """Audit trail of one of the caller's tokens, newest first."""
    owned = await AccessTokenStore(db).get_owned(jti, principal.id, principal.tenant)
    if owned is None:
        raise TokenNotFoundError()
    entries, total = await TokenAuditService(db).list_for_token(
        jti, page=page, per_page=per_page
    )
    return AuditLogPaginatedResponse(
        items=[AuditLogEntryResponse.model_validate(e) for e in entries],
        pagination=Pagination.build(page, per_page, total),
    )
