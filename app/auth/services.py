"""
Session token service.

Signs and verifies the compact session tokens (HS256 JWTs) that prove a
prior successful login. Tokens are carried in an HTTP-only cookie.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.auth.config import AuthConfig, get_auth_config


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class SessionTokenService:
    """Service for creating and verifying session tokens."""

    def __init__(self, secret: str, default_ttl: timedelta):
        if not secret:
            raise ValueError("Session signing secret must not be empty")
        self._secret = secret
        self._default_ttl = default_ttl

    @classmethod
    def from_config(cls, config: AuthConfig) -> "SessionTokenService":
        """Build the service from session configuration."""
        config.validate()
        return cls(
            secret=config.session_secret or "",
            default_ttl=timedelta(seconds=config.session_ttl_seconds),
        )

    def sign(self, claims: dict[str, Any], ttl: timedelta | None = None) -> str:
        """
        Sign claims into a session token.

        Args:
            claims: Small JSON-serializable claims mapping
            ttl: Token lifetime (defaults to the configured session TTL)

        Returns:
            Encoded token string
        """
        now = datetime.now(UTC)
        payload = {
            **claims,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self._default_ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> dict[str, Any] | None:
        """
        Verify a session token and return its claims.

        Signature and expiry are checked together. Every failure (bad
        signature, expired, malformed) collapses to None.

        Args:
            token: Encoded session token

        Returns:
            Decoded claims, or None if the token is not valid
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Session token rejected: {type(e).__name__}")
            return None


def get_session_token_service() -> SessionTokenService:
    """Provide the session token service from the cached configuration."""
    return SessionTokenService.from_config(get_auth_config())
