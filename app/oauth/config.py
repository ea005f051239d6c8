"""
LinkedIn OAuth2 configuration.

Loaded from environment variables. Endpoint URLs are overridable so the
client can be pointed at a stub provider in tests.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache


DEFAULT_SCOPES = ["openid", "profile", "email", "w_member_social"]

AUTHORIZE_URL = "https://www.linkedin.com/oauth/v2/authorization"
TOKEN_URL = "https://www.linkedin.com/oauth/v2/accessToken"
PROFILE_URL = "https://api.linkedin.com/v2/me"
EMAIL_URL = "https://api.linkedin.com/v2/emailAddress"

CALLBACK_PATH = "/api/auth/callback"


def parse_scopes(value: str | None) -> list[str]:
    """Parse a comma-separated scope list, falling back to the defaults."""
    if not value:
        return list(DEFAULT_SCOPES)
    scopes = [s.strip() for s in value.split(",") if s.strip()]
    return scopes or list(DEFAULT_SCOPES)


@dataclass
class LinkedInConfig:
    """LinkedIn client settings."""

    base_url: str
    client_id: str | None
    client_secret: str | None
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    authorize_url: str = AUTHORIZE_URL
    token_url: str = TOKEN_URL
    profile_url: str = PROFILE_URL
    email_url: str = EMAIL_URL
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "LinkedInConfig":
        """Load configuration from environment variables."""
        return cls(
            base_url=os.getenv("BASE_URL", "http://localhost:8080").rstrip("/"),
            client_id=os.getenv("LINKEDIN_CLIENT_ID"),
            client_secret=os.getenv("LINKEDIN_CLIENT_SECRET"),
            scopes=parse_scopes(os.getenv("LINKEDIN_SCOPES")),
            authorize_url=os.getenv("LINKEDIN_AUTHORIZE_URL", AUTHORIZE_URL),
            token_url=os.getenv("LINKEDIN_TOKEN_URL", TOKEN_URL),
            profile_url=os.getenv("LINKEDIN_PROFILE_URL", PROFILE_URL),
            email_url=os.getenv("LINKEDIN_EMAIL_URL", EMAIL_URL),
            request_timeout=float(os.getenv("LINKEDIN_TIMEOUT_SECONDS", "10")),
        )

    @property
    def callback_url(self) -> str:
        """Redirect URI registered with LinkedIn."""
        return f"{self.base_url}{CALLBACK_PATH}"

    @property
    def is_configured(self) -> bool:
        """Check if client credentials are present."""
        return bool(self.client_id and self.client_secret)


@lru_cache()
def get_linkedin_config() -> LinkedInConfig:
    """Get LinkedIn configuration singleton."""
    return LinkedInConfig.from_env()
