"""Issuance and authorization policy for API tokens.

Covers expiration parsing, the scope whitelist and the scope/role checks
applied on verification.
"""

import re
from collections.abc import Iterable

from tokengate.core.config import MAX_LIFETIME_HOURS
from tokengate.services.errors import (
    InsufficientRoleError,
    InsufficientScopeError,
    InvalidExpirationError,
    InvalidScopesError,
)

ADMIN_SCOPE = "admin"

_NUMERIC_RE = re.compile(r"^(\d+)$")
_DURATION_RE = re.compile(r"^(\d+)([mhdw])$")


def round_minutes_to_hours(minutes: int) -> int:
    """Convert a minute count to whole hours.

    Rounding policy: lifetimes are tracked in whole hours. Minutes are
    floored to hours with a one-hour minimum, so ``"30m"`` and ``"90m"``
    both yield 1 hour and ``"150m"`` yields 2.
    """
    return max(1, minutes // 60)


def parse_expiration(expires_in: int | str) -> int:
    """Parse an expiration into hours.

    Accepts a raw hour count (``24`` or ``"24"``) or a suffixed duration:
    ``m`` (minutes, see :func:`round_minutes_to_hours`), ``h`` (hours),
    ``d`` (days), ``w`` (weeks).

    Raises:
        InvalidExpirationError: Unrecognised format.
    """
    if isinstance(expires_in, bool):
        raise InvalidExpirationError(f"Invalid expiration format: {expires_in}")
    if isinstance(expires_in, int):
        return expires_in

    text = str(expires_in).strip().lower()

    match = _NUMERIC_RE.match(text)
    if match:
        return int(match.group(1))

    match = _DURATION_RE.match(text)
    if not match:
        raise InvalidExpirationError(
            f"Invalid expiration format: {expires_in}. "
            'Use formats like: 24, "24h", "7d", "30m", "2w"'
        )

    value = int(match.group(1))
    unit = match.group(2)
    if unit == "m":
        return round_minutes_to_hours(value)
    if unit == "h":
        return value
    if unit == "d":
        return value * 24
    return value * 24 * 7


def resolve_lifetime_hours(expires_in: int | str, max_hours: int = MAX_LIFETIME_HOURS) -> int:
    """Parse an expiration and enforce the ``(0, max_hours]`` range.

    ``max_hours`` can narrow the one-year ceiling but never widen it.
    """
    max_hours = min(max_hours, MAX_LIFETIME_HOURS)
    hours = parse_expiration(expires_in)
    if hours <= 0 or hours > max_hours:
        raise InvalidExpirationError(
            f"Expiration must be between 1 hour and {max_hours} hours, got {hours}"
        )
    return hours


def validate_scopes(scopes: Iterable[str], allowed: Iterable[str]) -> list[str]:
    """Check requested scopes against the whitelist.

    Returns the scopes de-duplicated in request order.

    Raises:
        InvalidScopesError: Naming every scope outside the whitelist.
    """
    allowed_set = set(allowed)
    requested = list(dict.fromkeys(scopes))
    invalid = [s for s in requested if s not in allowed_set]
    if invalid:
        raise InvalidScopesError(invalid)
    return requested


def missing_scopes(granted: Iterable[str], required: Iterable[str]) -> set[str]:
    """Required scopes not covered by the grant. ``admin`` covers everything."""
    granted_set = set(granted)
    if ADMIN_SCOPE in granted_set:
        return set()
    return set(required) - granted_set


def ensure_scopes(granted: Iterable[str], required: Iterable[str]) -> None:
    missing = missing_scopes(granted, required)
    if missing:
        raise InsufficientScopeError(missing)


def ensure_role(token_role: str | None, required_role: str | None) -> None:
    """Role gate, applied independently of the scope check."""
    if required_role is not None and token_role != required_role:
        raise InsufficientRoleError(required_role)
