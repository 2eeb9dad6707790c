"""Compact JWT codec for API tokens (HS256).

Tokens are ``base64url(header).base64url(payload).base64url(signature)``
with a fixed ``{"alg": "HS256", "typ": "JWT"}`` header. Verification runs
in three stages so each failure kind stays distinct:

1. structure - three non-empty base64url segments holding JSON objects
2. expiry - ``exp`` must be strictly in the future
3. signature - HMAC check by PyJWT (constant-time comparison)
"""

import json
import time
from typing import Any

import jwt

from tokengate.services.crypto import base64url_decode
from tokengate.services.errors import (
    ConfigurationError,
    InvalidFormatError,
    InvalidSignatureError,
    TokenExpiredError,
)

ALGORITHM = "HS256"
HEADER = {"alg": ALGORITHM, "typ": "JWT"}
REQUIRED_CLAIMS = ("sub", "role", "tenant", "scopes", "iat", "exp", "jti")


def sign(claims: dict[str, Any], secret: str) -> str:
    """Sign a claim set and return the compact token."""
    if not secret:
        raise ConfigurationError()
    return jwt.encode(claims, secret, algorithm=ALGORITHM, headers={"typ": "JWT"})


def _decode_segment(segment: str) -> dict[str, Any]:
    try:
        value = json.loads(base64url_decode(segment))
    except (ValueError, UnicodeDecodeError) as e:
        raise InvalidFormatError() from e
    if not isinstance(value, dict):
        raise InvalidFormatError()
    return value


def parse_unverified(token: str) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split a compact token and decode header and payload without trusting them.

    Raises:
        InvalidFormatError: Not exactly three non-empty segments, bad
            base64url/JSON, or a header other than HS256.
    """
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise InvalidFormatError()

    header = _decode_segment(parts[0])
    payload = _decode_segment(parts[1])
    try:
        base64url_decode(parts[2])
    except ValueError as e:
        raise InvalidFormatError() from e

    if header.get("alg") != ALGORITHM:
        raise InvalidFormatError("Unsupported token algorithm")
    return header, payload


def verify(token: str, secret: str, *, now: float | None = None) -> dict[str, Any]:
    """Verify a compact token and return its claims.

    Args:
        token: Compact JWT string.
        secret: HS256 secret.
        now: Unix time to check expiry against (defaults to the current time).

    Raises:
        ConfigurationError: No secret.
        InvalidFormatError: Malformed token or missing claims.
        TokenExpiredError: ``exp`` <= now.
        InvalidSignatureError: HMAC mismatch.
    """
    if not secret:
        raise ConfigurationError()

    _, payload = parse_unverified(token)

    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise InvalidFormatError("Token missing expiration")
    current = time.time() if now is None else now
    if exp <= current:
        raise TokenExpiredError()

    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={
                "require": list(REQUIRED_CLAIMS),
                # Expiry already checked against the caller's clock above
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except jwt.InvalidSignatureError as e:
        raise InvalidSignatureError() from e
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except jwt.PyJWTError as e:
        raise InvalidFormatError(f"Invalid token: {e}") from e
