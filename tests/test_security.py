"""
Tests for security and edge cases.
"""

from datetime import timedelta

from app.auth.services import SessionTokenService, get_session_token_service
from tests.conftest import SESSION_COOKIE, client


class TestEndpointSecurity:
    """Test security and edge cases for endpoints."""

    def test_refresh_accepts_post_only(self):
        """Test that the refresh endpoint only accepts POST requests."""
        response = client.get("/api/auth/refresh")
        assert response.status_code == 405

    def test_nonexistent_endpoint_returns_404(self):
        """Test that a nonexistent endpoint returns 404."""
        response = client.get("/nonexistent")
        assert response.status_code == 404

    def test_session_signed_with_other_secret_rejected(self, api_client):
        """Test a session minted with a different secret is not accepted."""
        forged = SessionTokenService("attacker-secret", timedelta(hours=1)).sign(
            {"user_id": "rec-1", "external_id": "li-1"}
        )
        api_client.cookies.set(SESSION_COOKIE, forged)

        response = api_client.get("/api/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid token"

    def test_session_missing_claims_rejected(self, api_client):
        """Test a validly signed token without a user id is not accepted."""
        token = get_session_token_service().sign({"email": "ada@example.com"})
        api_client.cookies.set(SESSION_COOKIE, token)

        response = api_client.get("/api/me")

        assert response.status_code == 401

    def test_expired_session_rejected(self, api_client):
        """Test an expired session cookie is treated as invalid."""
        token = get_session_token_service().sign(
            {"user_id": "rec-1", "external_id": "li-1"}, ttl=timedelta(seconds=-5)
        )
        api_client.cookies.set(SESSION_COOKIE, token)

        response = api_client.get("/api/me")

        assert response.status_code == 401

    def test_validation_errors_do_not_echo_input(self, api_client, login):
        """Test 422 responses never contain the submitted values."""
        login()

        response = api_client.post(
            "/api/onboarding/complete", json={"email": "secret-value-not-an-email"}
        )

        assert response.status_code == 422
        assert "secret-value-not-an-email" not in response.text
