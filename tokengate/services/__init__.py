# Tokengate Services
from tokengate.services.admin_session import AdminPrincipal, AdminSessionResolver
from tokengate.services.audit import AuditAction, AuditEntry, TokenAuditService
from tokengate.services.last_used import LastUsedRecorder, get_last_used_recorder
from tokengate.services.token_issuer import IssuedToken, TokenIssuer
from tokengate.services.token_rotator import RevocationResult, RotationResult, TokenRotator
from tokengate.services.token_store import AccessTokenStore
from tokengate.services.token_verifier import TokenVerifier, VerifiedToken

__all__ = [
    "AccessTokenStore",
    "AdminPrincipal",
    "AdminSessionResolver",
    "AuditAction",
    "AuditEntry",
    "IssuedToken",
    "LastUsedRecorder",
    "RevocationResult",
    "RotationResult",
    "TokenAuditService",
    "TokenIssuer",
    "TokenRotator",
    "TokenVerifier",
    "VerifiedToken",
    "get_last_used_recorder",
]
