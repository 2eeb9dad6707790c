# Tokengate Pydantic Schemas
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

__all__ = [
    "AuditLogEntryResponse",
    "AuditLogPaginatedResponse",
    "Pagination",
    "TokenCreate",
    "TokenIssuedResponse",
    "TokenListPaginatedResponse",
    "TokenRevokedResponse",
    "TokenRotatedResponse",
    "TokenSummary",
    "TokenVerifyResponse",
]
