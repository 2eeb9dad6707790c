"""Tests for request utility functions."""

from unittest.mock import MagicMock

from tokengate.core.request_utils import (
    RequestContext,
    _is_valid_ip,
    extract_bearer_token,
    get_client_ip,
    get_request_context,
)


class TestIsValidIP:
    def test_valid_addresses(self):
        assert _is_valid_ip("192.168.1.1") is True
        assert _is_valid_ip("2001:db8::1") is True

    def test_invalid_addresses(self):
        assert _is_valid_ip("") is False
        assert _is_valid_ip("not-an-ip") is False
        assert _is_valid_ip("192.168.1.1:8080") is False
        assert _is_valid_ip(" 192.168.1.1") is False


class TestGetClientIP:
    def _create_mock_request(self, headers=None, client_host=None):
        request = MagicMock()
        request.headers = headers or {}
        if client_host:
            request.client = MagicMock()
            request.client.host = client_host
        else:
            request.client = None
        return request

    def test_cf_connecting_ip_preferred(self):
        request = self._create_mock_request(
            {"CF-Connecting-IP": "203.0.113.50", "X-Real-IP": "10.0.0.1"}, "127.0.0.1"
        )
        assert get_client_ip(request) == "203.0.113.50"

    def test_invalid_cf_ip_falls_through(self):
        request = self._create_mock_request({"CF-Connecting-IP": "garbage"}, "198.51.100.4")
        assert get_client_ip(request) == "198.51.100.4"

    def test_x_real_ip_trusted_from_local_proxy(self):
        request = self._create_mock_request({"X-Real-IP": "203.0.113.9"}, "127.0.0.1")
        assert get_client_ip(request) == "203.0.113.9"

    def test_x_real_ip_ignored_from_remote_peer(self):
        request = self._create_mock_request({"X-Real-IP": "203.0.113.9"}, "198.51.100.4")
        assert get_client_ip(request) == "198.51.100.4"

    def test_x_forwarded_for_never_trusted(self):
        request = self._create_mock_request({"X-Forwarded-For": "1.2.3.4"}, "198.51.100.4")
        assert get_client_ip(request) == "198.51.100.4"

    def test_no_client(self):
        assert get_client_ip(self._create_mock_request()) is None


class TestRequestContext:
    def test_defaults_to_unknown(self):
        request = MagicMock()
        request.headers = {}
        request.client = None
        assert get_request_context(request) == RequestContext("unknown", "unknown")

    def test_user_agent_captured(self):
        request = MagicMock()
        request.headers = {"User-Agent": "deploy-bot/1.0"}
        request.client = MagicMock()
        request.client.host = "198.51.100.4"
        context = get_request_context(request)
        assert context.ip_address == "198.51.100.4"
        assert context.user_agent == "deploy-bot/1.0"


class TestExtractBearerToken:
    def test_bearer(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_missing_or_other_scheme(self):
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("") is None
        assert extract_bearer_token("Basic dXNlcjpwYXNz") is None
        assert extract_bearer_token("Bearer ") is None
