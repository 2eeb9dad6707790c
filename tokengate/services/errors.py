"""Error taxonomy for the token service.

Every error carries a stable ``code`` clients can branch on and the HTTP
status the API layer maps it to. Messages never include token material.
"""

from collections.abc import Iterable


class TokenServiceError(Exception):
    """Base error for all token service failures."""

    code = "token_service_error"
    status_code = 500
    default_message = "Token service error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class UnauthorizedError(TokenServiceError):
    """No valid administrator session."""

    code = "unauthorized"
    status_code = 401
    default_message = "Unauthorized - Administrator session required"


class InvalidRequestError(TokenServiceError):
    """Request is missing a required field."""

    code = "invalid_request"
    status_code = 400
    default_message = "Invalid request"


class InvalidScopesError(TokenServiceError):
    """Requested scopes are not in the whitelist."""

    code = "invalid_scopes"
    status_code = 400

    def __init__(self, invalid: Iterable[str]):
        self.invalid_scopes = sorted(set(invalid))
        super().__init__(f"Invalid scopes: {', '.join(self.invalid_scopes)}")


class InvalidExpirationError(TokenServiceError):
    """Malformed or out-of-range expiration."""

    code = "invalid_expiration"
    status_code = 400
    default_message = "Invalid expiration"


class ConfigurationError(TokenServiceError):
    """Signing secret or other required configuration is missing. Never retried."""

    code = "configuration_error"
    status_code = 500
    default_message = "Token signing secret not configured"


class PersistenceError(TokenServiceError):
    """The token store rejected a write."""

    code = "persistence_error"
    status_code = 500
    default_message = "Failed to persist token record"


# --- Presented-token failures (verifier side) ---


class TokenInvalidError(TokenServiceError):
    """The presented bearer token failed stateless validation."""

    code = "invalid_token"
    status_code = 401
    default_message = "Invalid token"


class InvalidFormatError(TokenInvalidError):
    """Token is not a well-formed three-segment compact JWT."""

    code = "invalid_format"
    default_message = "Invalid token format"


class InvalidSignatureError(TokenInvalidError):
    """HMAC signature does not match."""

    code = "invalid_signature"
    default_message = "Invalid signature"


class TokenExpiredError(TokenInvalidError):
    """Token expiry has passed."""

    code = "token_expired"
    default_message = "Token expired"


class NotFoundOrRevokedError(TokenServiceError):
    """No active row matches the token.

    Unknown jti, hash mismatch and revocation all collapse into this one
    error so callers cannot probe which case applied.
    """

    code = "not_found_or_revoked"
    status_code = 401
    default_message = "Token not found or revoked"


class InsufficientScopeError(TokenServiceError):
    """Token lacks one or more required scopes."""

    code = "insufficient_scope"
    status_code = 403

    def __init__(self, missing: Iterable[str]):
        self.missing_scopes = sorted(set(missing))
        super().__init__(f"Missing required scopes: {', '.join(self.missing_scopes)}")


class InsufficientRoleError(TokenServiceError):
    """Token role does not satisfy the operation's role gate."""

    code = "insufficient_role"
    status_code = 403

    def __init__(self, required_role: str):
        self.required_role = required_role
        super().__init__(f"Token role '{required_role}' required")


# --- Management failures (rotate / revoke targets) ---


class TokenNotFoundError(TokenServiceError):
    """Target token does not exist or belongs to another owner/tenant."""

    code = "not_found"
    status_code = 404
    default_message = "Token not found or access denied"


class AlreadyRevokedError(TokenServiceError):
    """Target token is already revoked."""

    code = "already_revoked"
    status_code = 400
    default_message = "Token is already revoked"


class RotationTargetExpiredError(TokenServiceError):
    """Target token has expired and can only be re-issued."""

    code = "expired"
    status_code = 400
    default_message = "Cannot rotate an expired token"
