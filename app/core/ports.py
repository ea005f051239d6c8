"""
Port definitions (interfaces) for the core domain.

Ports define the contracts between the core domain and external systems.
Infrastructure adapters implement these ports.
"""

from typing import Protocol

from app.core.domain import PrimaryProfileShape, TokenSet


class IdentityProvider(Protocol):
    """
    Port (interface) for the OAuth 2.0 / OIDC identity provider.

    Implemented by LinkedInClient. Every method raises ProviderError on
    upstream failure (non-2xx, OAuth error body, timeout, network error).
    """

    def authorization_url(self, state: str) -> str:
        """Build the authorization endpoint URL for the given state nonce."""
        ...

    async def exchange_code(self, code: str) -> TokenSet:
        """Exchange an authorization code for tokens."""
        ...

    async def refresh(self, refresh_token: str) -> TokenSet:
        """Obtain a new access token using a refresh token."""
        ...

    async def fetch_profile(self, access_token: str) -> PrimaryProfileShape:
        """Fetch the REST profile and email address."""
        ...
