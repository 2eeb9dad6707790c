"""Request provenance helpers used for audit records."""

import ipaddress
import logging
from dataclasses import dataclass

from fastapi import Request

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

_LOCAL_PROXIES = ("127.0.0.1", "::1", "localhost")


@dataclass(frozen=True)
class RequestContext:
    """Where a token management request came from."""

    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(request: Request) -> str | None:
    """Get the client IP address from a request.

    Priority order:
    1. CF-Connecting-IP (set by Cloudflare, cannot be forged through the tunnel)
    2. X-Real-IP, only when the peer is a local reverse proxy
    3. Direct client connection

    X-Forwarded-For is not trusted since any client can set it.
    """
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        ip = cf_ip.strip()
        if _is_valid_ip(ip):
            return ip
        logger.warning(f"Invalid CF-Connecting-IP: {cf_ip}")

    if request.client and request.client.host in _LOCAL_PROXIES:
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid X-Real-IP: {real_ip}")

    if request.client:
        return request.client.host

    return None


def get_request_context(request: Request) -> RequestContext:
    """Dependency returning the caller's IP and user agent."""
    return RequestContext(
        ip_address=get_client_ip(request) or UNKNOWN,
        user_agent=request.headers.get("User-Agent") or UNKNOWN,
    )


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the credential from an ``Authorization: Bearer`` header value."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None
