"""Tests for expiration parsing and scope/role policy."""

import pytest

from tokengate.services.errors import (
    InsufficientRoleError,
    InsufficientScopeError,
    InvalidExpirationError,
    InvalidScopesError,
)
from tokengate.services.token_policy import (
    ensure_role,
    ensure_scopes,
    missing_scopes,
    parse_expiration,
    resolve_lifetime_hours,
    round_minutes_to_hours,
    validate_scopes,
)

WHITELIST = {"read", "write", "delete", "admin"}


class TestParseExpiration:
    @pytest.mark.parametrize(
        "value,hours",
        [
            (24, 24),
            ("24", 24),
            ("24h", 24),
            ("7d", 168),
            ("2w", 336),
            ("1H", 1),
            (" 3d ", 72),
        ],
    )
    def test_formats(self, value, hours):
        assert parse_expiration(value) == hours

    @pytest.mark.parametrize("value", ["", "abc", "24x", "1.5h", "-1h", "h", "24 h"])
    def test_invalid_formats(self, value):
        with pytest.raises(InvalidExpirationError):
            parse_expiration(value)

    def test_bool_rejected(self):
        with pytest.raises(InvalidExpirationError):
            parse_expiration(True)


class TestMinuteRounding:
    """Minute durations are floored to whole hours, never below one."""

    @pytest.mark.parametrize(
        "minutes,hours",
        [(1, 1), (30, 1), (59, 1), (60, 1), (90, 1), (119, 1), (120, 2), (150, 2)],
    )
    def test_round_minutes_to_hours(self, minutes, hours):
        assert round_minutes_to_hours(minutes) == hours

    def test_minute_suffix_uses_policy(self):
        assert parse_expiration("30m") == 1
        assert parse_expiration("180m") == 3


class TestLifetimeRange:
    def test_upper_bound_inclusive(self):
        assert resolve_lifetime_hours(8760) == 8760

    def test_above_max(self):
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours(8761)

    def test_zero(self):
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours(0)
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours("0h")

    def test_negative_int(self):
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours(-5)

    def test_custom_max(self):
        assert resolve_lifetime_hours("1d", max_hours=24) == 24
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours("2d", max_hours=24)

    def test_custom_max_cannot_exceed_one_year(self):
        """A larger max_hours still leaves the one-year ceiling in force."""
        assert resolve_lifetime_hours("52w", max_hours=20000) == 8736
        with pytest.raises(InvalidExpirationError):
            resolve_lifetime_hours("100w", max_hours=20000)

    def test_zero_minutes_rounds_up(self):
        assert resolve_lifetime_hours("0m") == 1


class TestValidateScopes:
    def test_valid_scopes_deduplicated_in_order(self):
        assert validate_scopes(["write", "read", "write"], WHITELIST) == ["write", "read"]

    def test_invalid_scopes_named(self):
        with pytest.raises(InvalidScopesError) as exc_info:
            validate_scopes(["read", "superuser", "drop"], WHITELIST)
        assert exc_info.value.invalid_scopes == ["drop", "superuser"]
        assert exc_info.value.code == "invalid_scopes"


class TestScopeChecks:
    def test_subset_passes(self):
        ensure_scopes(["read", "write"], ["read"])

    def test_no_requirements(self):
        ensure_scopes(["read"], [])

    def test_missing_scope_named(self):
        with pytest.raises(InsufficientScopeError) as exc_info:
            ensure_scopes(["read"], ["read", "write", "delete"])
        assert exc_info.value.missing_scopes == ["delete", "write"]
        assert exc_info.value.status_code == 403

    @pytest.mark.parametrize("required", [["read"], ["write", "delete"], ["anything"]])
    def test_admin_is_superscope(self, required):
        assert missing_scopes(["admin"], required) == set()

    @pytest.mark.parametrize("granted", ["read", "write", "delete"])
    def test_no_other_scope_is_super(self, granted):
        others = WHITELIST - {granted}
        assert missing_scopes([granted], others) == others


class TestRoleGate:
    def test_no_role_required(self):
        ensure_role("admin", None)
        ensure_role(None, None)

    def test_matching_role(self):
        ensure_role("admin", "admin")

    def test_mismatched_role(self):
        with pytest.raises(InsufficientRoleError):
            ensure_role("reader", "admin")

    def test_role_gate_independent_of_admin_scope(self):
        """The admin superscope does not satisfy the role gate."""
        ensure_scopes(["admin"], ["write"])
        with pytest.raises(InsufficientRoleError):
            ensure_role("service", "admin")
