"""Cryptographic primitives for API tokens.

HMAC-SHA256 signing itself is delegated to PyJWT (see token_codec); this
module holds the pieces around it: unpadded base64url, the SHA-256
content hash used for store lookups, jti generation and signing key
resolution.
"""

import hashlib
import logging
import uuid

from jwt.utils import base64url_decode as _jwt_b64decode
from jwt.utils import base64url_encode as _jwt_b64encode

from tokengate.core import settings
from tokengate.services.errors import ConfigurationError

logger = logging.getLogger(__name__)


def base64url_encode(data: bytes) -> str:
    """Encode bytes as base64url with ``=`` padding stripped."""
    return _jwt_b64encode(data).decode("ascii")


def base64url_decode(segment: str) -> bytes:
    """Decode an unpadded base64url segment, restoring padding first.

    Raises:
        ValueError: If the segment is not valid base64url.
    """
    return _jwt_b64decode(segment)


def hash_token(token: str) -> str:
    """SHA-256 hex digest of the full compact token.

    Used only as a store lookup key. It proves nothing about authenticity
    and must never replace signature verification.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_jti() -> str:
    """Fresh unique token identifier."""
    return str(uuid.uuid4())


def get_signing_secret(override: str | None = None) -> str:
    """Resolve the HS256 signing secret.

    Raises:
        ConfigurationError: If no secret is configured. This is fatal for
            the request and is never retried.
    """
    secret = override if override is not None else settings.token_signing_secret
    if not secret:
        logger.error("TOKEN_SIGNING_SECRET is not configured")
        raise ConfigurationError()
    return secret
