"""
Session and cookie configuration.

Handles the settings shared by session token issuance and the cookie
based endpoints.
"""

import os
from functools import lru_cache


class AuthConfig:
    """Configuration for the session layer.

    Required environment variables:
    - SESSION_SECRET_KEY: HMAC secret for session tokens

    Optional:
    - SESSION_COOKIE_NAME: defaults to "li_session"
    - SESSION_TTL_SECONDS: defaults to 7 days
    - BASE_URL: https base URLs mark cookies as Secure
    - POST_LOGIN_REDIRECT: where the callback sends the browser
    """

    def __init__(self):
        self.session_secret = os.getenv("SESSION_SECRET_KEY")
        self.base_url = os.getenv("BASE_URL", "http://localhost:8080")
        self.session_cookie_name = os.getenv("SESSION_COOKIE_NAME", "li_session")
        # Session lifetime: 7 days (in seconds)
        self.session_ttl_seconds = int(
            os.getenv("SESSION_TTL_SECONDS", str(60 * 60 * 24 * 7))
        )
        self.state_cookie_name = "li_oauth_state"
        self.state_cookie_max_age = 60 * 10
        self.post_login_redirect = os.getenv("POST_LOGIN_REDIRECT", "/profile")

    @property
    def secure_cookies(self) -> bool:
        """Mark cookies Secure when served over https."""
        return self.base_url.startswith("https")

    def validate(self) -> None:
        """Validate required configuration. Call at startup to fail fast."""
        if not self.session_secret:
            raise ValueError("SESSION_SECRET_KEY is not set in the environment.")


@lru_cache()
def get_auth_config() -> AuthConfig:
    """Get session configuration (singleton)."""
    return AuthConfig()
