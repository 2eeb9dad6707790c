"""Tests for security headers middleware.

Verifies that all required security headers are present on API responses.
"""


class TestSecurityHeaders:
    """Tests for SecurityHeadersMiddleware."""

    def test_x_content_type_options_header(self, sync_client):
        response = sync_client.get("/health")
        assert response.headers.get("X-Content-Type-Options") == "nosniff"

    def test_x_frame_options_header(self, sync_client):
        response = sync_client.get("/health")
        assert response.headers.get("X-Frame-Options") == "DENY"

    def test_responses_not_cacheable(self, sync_client):
        """Token bodies must never be cached by intermediaries."""
        response = sync_client.get("/health")
        assert response.headers.get("Cache-Control") == "no-store"
        assert response.headers.get("Pragma") == "no-cache"

    def test_content_security_policy_header(self, sync_client):
        response = sync_client.get("/health")
        csp = response.headers.get("Content-Security-Policy")
        assert csp is not None
        assert "default-src 'none'" in csp

    def test_referrer_policy_header(self, sync_client):
        response = sync_client.get("/health")
        assert response.headers.get("Referrer-Policy") == "no-referrer"

    def test_hsts_header_with_https(self, sync_client):
        response = sync_client.get("/health", headers={"X-Forwarded-Proto": "https"})
        hsts = response.headers.get("Strict-Transport-Security")
        assert hsts is not None
        assert "max-age" in hsts
        assert "includeSubDomains" in hsts

    def test_hsts_header_not_set_for_http(self, sync_client):
        response = sync_client.get("/health")
        assert "Strict-Transport-Security" not in response.headers

    def test_security_headers_on_auth_error_responses(self, sync_client):
        """Headers are present on 401 responses from the management API."""
        response = sync_client.get("/api/tokens")

        assert response.status_code == 401
        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("Cache-Control") == "no-store"
        assert response.headers.get("WWW-Authenticate") == "Bearer"

    def test_verify_headers_exposed_to_browsers(self, sync_client):
        response = sync_client.get(
            "/api/tokens/verify", headers={"Origin": "http://localhost:3000"}
        )

        assert response.status_code == 401
        exposed = response.headers.get("Access-Control-Expose-Headers", "")
        assert "X-Token-Valid" in exposed
        assert "X-Token-Error" in exposed
