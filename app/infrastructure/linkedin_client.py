"""
LinkedIn OAuth 2.0 / REST client.

Implements the IdentityProvider port: builds the authorization URL,
talks to the token endpoint, and fetches the member profile and email.
Request parameters are prepared with authlib's RFC 6749 helpers; HTTP
calls go through httpx with a bounded timeout. Nothing is retried.
"""

import asyncio
import logging
from typing import Any

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri, prepare_token_request

from app.core.domain import PrimaryProfileShape, TokenSet
from app.core.exceptions import ProviderError
from app.oauth.config import LinkedInConfig


logger = logging.getLogger(__name__)

TOKEN_REQUEST_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/x-www-form-urlencoded",
}

EMAIL_QUERY = {"q": "members", "projection": "(elements*(handle~))"}


class LinkedInClient:
    """Client for LinkedIn's OAuth and member REST endpoints."""

    def __init__(self, config: LinkedInConfig):
        self._config = config

    def authorization_url(self, state: str) -> str:
        """
        Build the authorization endpoint URL.

        Args:
            state: One-time nonce echoed back on the callback

        Returns:
            URL with response_type, client_id, redirect_uri, scope and state
        """
        return prepare_grant_uri(
            self._config.authorize_url,
            client_id=self._config.client_id,
            response_type="code",
            redirect_uri=self._config.callback_url,
            scope=self._config.scopes,
            state=state,
        )

    async def exchange_code(self, code: str) -> TokenSet:
        """
        Exchange an authorization code for tokens.

        Raises:
            ProviderError: On OAuth error, non-2xx status or network failure
        """
        body = prepare_token_request(
            "authorization_code",
            code=code,
            redirect_uri=self._config.callback_url,
            client_id=self._config.client_id,
            client_secret=self._config.client_secret,
        )
        return await self._request_token(body, grant_type="authorization_code")

    async def refresh(self, refresh_token: str) -> TokenSet:
        """
        Exchange a refresh token for a new access token.

        Raises:
            ProviderError: On OAuth error, non-2xx status or network failure
        """
        body = prepare_token_request(
            "refresh_token",
            refresh_token=refresh_token,
            client_id=self._config.client_id,
            client_secret=self._config.client_secret,
        )
        return await self._request_token(body, grant_type="refresh_token")

    async def fetch_profile(self, access_token: str) -> PrimaryProfileShape:
        """
        Fetch the member profile and primary email address.

        Both calls are issued concurrently; both must succeed.

        Raises:
            ProviderError: If either call fails
        """
        headers = {"Authorization": f"Bearer {access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self._config.request_timeout) as client:
                # Both requests finish before the client closes
                responses = await asyncio.gather(
                    client.get(self._config.profile_url, headers=headers),
                    client.get(
                        self._config.email_url, headers=headers, params=EMAIL_QUERY
                    ),
                    return_exceptions=True,
                )
            for response in responses:
                if isinstance(response, BaseException):
                    raise response
                response.raise_for_status()

            profile_response, email_response = responses
            return PrimaryProfileShape(
                profile=profile_response.json(),
                email_response=email_response.json(),
            )

        except httpx.HTTPStatusError as e:
            logger.warning(
                f"LinkedIn profile request failed: {e.response.status_code}",
                extra={
                    "status_code": e.response.status_code,
                    "provider_error": e.response.text[:500],
                },
            )
            raise ProviderError(f"Profile request failed: {e.response.status_code}")
        except httpx.RequestError as e:
            logger.warning(f"Network error fetching LinkedIn profile: {e!r}")
            raise ProviderError(f"Network error: {e!r}")
        except ValueError as e:
            logger.warning(f"Invalid LinkedIn profile response: {e}")
            raise ProviderError("Invalid profile response")

    async def _request_token(self, body: str, grant_type: str) -> TokenSet:
        """POST a form-encoded token request and parse the token response."""
        try:
            async with httpx.AsyncClient(timeout=self._config.request_timeout) as client:
                response = await client.post(
                    self._config.token_url,
                    content=body,
                    headers=TOKEN_REQUEST_HEADERS,
                )
        except httpx.RequestError as e:
            logger.error(f"Network error during {grant_type} grant: {e!r}")
            raise ProviderError(f"Network error: {e!r}")

        data = self._parse_json(response)

        if response.status_code != 200 or "error" in data:
            error = data.get("error", "unknown_error")
            logger.error(
                f"LinkedIn {grant_type} grant failed: {error}",
                extra={
                    "status_code": response.status_code,
                    "provider_error": data.get("error_description") or error,
                },
            )
            raise ProviderError(f"Token request failed: {error}")

        if not data.get("access_token"):
            raise ProviderError("Token response has no access_token")

        try:
            tokens = TokenSet.from_token_response(data)
        except ValueError as e:
            logger.error(f"Malformed {grant_type} token response: {e}")
            raise ProviderError("Malformed token response")

        logger.info(f"LinkedIn {grant_type} grant succeeded")
        return tokens

    @staticmethod
    def _parse_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {"error": f"http_{response.status_code}"}
        if not isinstance(data, dict):
            return {"error": "invalid_response"}
        return data
