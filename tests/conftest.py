"""
Shared test configuration and fixtures.
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

# Configuration is read once and cached, so it must be in place before the
# app is imported. Tests always use the in-memory user store.
os.environ.setdefault("SESSION_SECRET_KEY", "test-secret")
os.environ.setdefault("LINKEDIN_CLIENT_ID", "test-client-id")
os.environ.setdefault("LINKEDIN_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("REFRESH_TOKEN_ENCRYPTION_KEY", "test-refresh-token-key")
os.environ["BASE_URL"] = "http://testserver"
os.environ.pop("GCP_PROJECT_ID", None)
os.environ.pop("GOOGLE_CLOUD_PROJECT", None)

from app.main import app  # noqa: E402
from app.core.domain import PrimaryProfileShape, TokenSet  # noqa: E402
from app.core.ports import IdentityProvider  # noqa: E402
from app.infrastructure.encryption import reset_encryption  # noqa: E402
from app.oauth.dependencies import get_identity_provider, get_repository  # noqa: E402
from app.users.repository import (  # noqa: E402
    InMemoryUserRepository,
    reset_user_repository,
    set_user_repository,
)

client = TestClient(app)

STATE_COOKIE = "li_oauth_state"
SESSION_COOKIE = "li_session"


def make_token_set(**overrides) -> TokenSet:
    """Token endpoint response as LinkedIn returns it."""
    data = {
        "access_token": "access-token-1",
        "expires_in": 5184000,
        "refresh_token": "refresh-token-1",
        "refresh_token_expires_in": 31536000,
        "scope": "openid,profile,email,w_member_social",
    }
    data.update(overrides)
    return TokenSet.from_token_response(
        {k: v for k, v in data.items() if v is not None}
    )


def make_primary_profile(**profile_overrides) -> PrimaryProfileShape:
    """REST profile and email responses for Ada Lovelace."""
    profile = {
        "id": "li-ada-123",
        "localizedFirstName": "Ada",
        "localizedLastName": "Lovelace",
        "vanityName": "ada",
        "headline": "Analyst of the Analytical Engine",
    }
    profile.update(profile_overrides)
    return PrimaryProfileShape(
        profile=profile,
        email_response={"elements": [{"handle~": {"emailAddress": "ada@example.com"}}]},
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Start every test with a fresh cipher and user store."""
    reset_encryption()
    reset_user_repository()
    yield
    reset_encryption()
    reset_user_repository()


@pytest.fixture
def repository():
    """Fresh in-memory user repository."""
    repo = InMemoryUserRepository()
    set_user_repository(repo)
    return repo


@pytest.fixture
def fake_provider():
    """
    Identity provider double.

    Returns a successful login for Ada Lovelace by default; tests override
    the return values or side effects they care about.
    """
    provider = MagicMock(spec=IdentityProvider)
    provider.authorization_url.return_value = (
        "https://www.linkedin.com/oauth/v2/authorization?state=fake"
    )
    provider.exchange_code = AsyncMock(return_value=make_token_set())
    provider.fetch_profile = AsyncMock(return_value=make_primary_profile())
    provider.refresh = AsyncMock(
        return_value=make_token_set(
            access_token="access-token-2", expires_in=3600, refresh_token=None
        )
    )
    return provider


@pytest.fixture
def api_client(repository, fake_provider):
    """Test client wired to the in-memory repository and the fake provider."""
    app.dependency_overrides[get_identity_provider] = lambda: fake_provider
    app.dependency_overrides[get_repository] = lambda: repository

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.pop(get_identity_provider, None)
    app.dependency_overrides.pop(get_repository, None)


@pytest.fixture
def login(api_client):
    """
    Run the OAuth callback and leave the session cookie in the client.

    Returns the callback response.
    """

    def _login(state: str = "state-123", code: str = "auth-code"):
        api_client.cookies.set(STATE_COOKIE, state)
        return api_client.get(
            "/api/auth/callback",
            params={"code": code, "state": state},
            follow_redirects=False,
        )

    return _login
