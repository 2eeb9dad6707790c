"""Pydantic schemas for the API token endpoints."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TokenCreate(BaseModel):
    """Schema for issuing a new token.

    ``expires_in`` takes an hour count (``24``) or a suffixed duration
    (``"30m"``, ``"24h"``, ``"7d"``, ``"2w"``). Minute durations are floored
    to whole hours with a one-hour minimum.
    """

    name: str = Field(..., min_length=1, max_length=255)
    expires_in: int | str = Field(..., description="Hours, or a duration like 24h / 7d / 2w")
    scopes: list[str] = Field(..., description="Subset of the scope whitelist; may be empty")


class TokenIssuedResponse(BaseModel):
    """Returned once on creation. The plaintext token is never shown again."""

    token: str
    type: Literal["Bearer"] = "Bearer"
    jti: str
    expires_at: datetime
    scopes: list[str]
    tenant: str


class TokenRotatedResponse(BaseModel):
    rotated: bool = True
    token: str
    type: Literal["Bearer"] = "Bearer"
    expires_at: datetime
    scopes: list[str]
    tenant: str
    old_jti: str
    new_jti: str


class TokenRevokedResponse(BaseModel):
    revoked: bool = True
    jti: str
    revoked_at: datetime


class TokenVerifyResponse(BaseModel):
    """Validity payload for a presented bearer token."""

    valid: bool
    scopes: list[str] = []
    role: str | None = None
    tenant: str | None = None
    exp: datetime | None = None
    iat: datetime | None = None
    jti: str | None = None
    error: str | None = None
    code: str | None = None


class TokenSummary(BaseModel):
    """Token metadata for listings. Never includes the token or its hash."""

    model_config = ConfigDict(from_attributes=True)

    jti: str
    name: str
    scopes: list[str]
    role: str
    tenant: str
    status: str
    expires_at: datetime
    created_at: datetime
    last_used_at: datetime | None
    revoked_at: datetime | None
    expired: bool


class Pagination(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "Pagination":
        total_pages = (total + per_page - 1) // per_page if total > 0 else 0
        return cls(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class TokenListPaginatedResponse(BaseModel):
    items: list[TokenSummary]
    pagination: Pagination


class AuditLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token_jti: str
    actor_id: UUID
    action: str
    details: dict[str, Any] | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime


class AuditLogPaginatedResponse(BaseModel):
    items: list[AuditLogEntryResponse]
    pagination: Pagination
