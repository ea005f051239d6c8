"""
Core service for the LinkedIn login flow.

Drives the authorization-code exchange, profile normalization,
persistence and session issuance, plus the on-demand access token
refresh. HTTP concerns (cookies, redirects, status codes) stay in the
router.
"""

import logging
from dataclasses import dataclass

from app.auth.services import SessionTokenService
from app.core.domain import SessionClaims
from app.core.exceptions import (
    PersistenceError,
    ProviderError,
    RefreshTokenUnavailableError,
)
from app.core.ports import IdentityProvider
from app.core.profile import resolve_profile
from app.infrastructure.encryption import TokenCipher
from app.users.models import LoginUpdate, UserRecord
from app.users.repository import UserRepository


logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Outcome of a completed login."""

    user: UserRecord
    session_token: str


@dataclass
class RefreshResult:
    """Outcome of an access token refresh."""

    expires_in: int | None
    token_expires_at: int
    refresh_token_rotated: bool


class LoginService:
    """
    Service for completing logins and refreshing access tokens.

    The provider, repository, cipher and session codec are injected so the
    service can be exercised without network or database access.
    """

    def __init__(
        self,
        provider: IdentityProvider,
        repository: UserRepository,
        session_service: SessionTokenService,
        cipher: TokenCipher,
    ):
        self._provider = provider
        self._repository = repository
        self._session_service = session_service
        self._cipher = cipher

    async def complete_login(self, code: str) -> LoginResult:
        """
        Complete a login from an authorization code.

        1. Exchange the code for tokens
        2. Fetch the REST profile, falling back to the identity token
        3. Upsert the user record (encrypted refresh token in the same write)
        4. Re-read the record and mint a session bound to its id

        Args:
            code: Authorization code from the callback

        Returns:
            The persisted user and a signed session token

        Raises:
            ProviderError: If the token exchange fails
            ProfileUnavailableError: If no external identity id is available
            PersistenceError: If the record cannot be read after the upsert
        """
        tokens = await self._provider.exchange_code(code)

        primary = None
        try:
            primary = await self._provider.fetch_profile(tokens.access_token)
        except ProviderError as e:
            logger.warning(f"Profile endpoints failed, using id_token fallback: {e}")

        attributes = resolve_profile(primary, tokens.id_token)

        refresh_token_encrypted = (
            self._cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None
        )
        update = LoginUpdate.from_login(
            attributes,
            tokens,
            refresh_token_encrypted=refresh_token_encrypted,
            raw={
                "profile": primary.profile if primary else None,
                "email_response": primary.email_response if primary else None,
                "token_response": tokens.redacted(),
            },
        )

        await self._repository.upsert_login(update)

        user = await self._repository.get_by_external_id(update.external_id)
        if user is None:
            logger.error(
                "User record missing after upsert",
                extra={"external_id": update.external_id},
            )
            raise PersistenceError("Failed to retrieve user after upsert")

        claims = SessionClaims(
            user_id=user.id, external_id=user.external_id, email=user.email
        )
        session_token = self._session_service.sign(claims.model_dump())

        logger.info("Login completed", extra={"user_id": user.id})
        return LoginResult(user=user, session_token=session_token)

    async def refresh_access_token(self, record_id: str) -> RefreshResult:
        """
        Refresh the stored access token for a user.

        The refresh token is replaced only when the provider issues a new one.

        Args:
            record_id: Internal record id from the session

        Returns:
            New expiry information (the access token itself stays server-side)

        Raises:
            RefreshTokenUnavailableError: If no refresh token is stored or it
                cannot be decrypted; the provider is not contacted
            ProviderError: If the refresh grant fails
        """
        user = await self._repository.get_by_id(record_id)
        if user is None or not user.refresh_token_encrypted:
            raise RefreshTokenUnavailableError(RefreshTokenUnavailableError.NOT_FOUND)

        refresh_token = self._cipher.decrypt(user.refresh_token_encrypted)
        if refresh_token is None:
            logger.error(
                "Stored refresh token is undecryptable", extra={"user_id": record_id}
            )
            raise RefreshTokenUnavailableError(
                RefreshTokenUnavailableError.UNDECRYPTABLE
            )

        tokens = await self._provider.refresh(refresh_token)

        rotated = bool(tokens.refresh_token) and tokens.refresh_token != refresh_token
        token_expires_at = tokens.expires_at_millis()

        updated = await self._repository.update_tokens(
            record_id,
            access_token=tokens.access_token,
            token_expires_at=token_expires_at,
            refresh_token_encrypted=(
                self._cipher.encrypt(tokens.refresh_token) if rotated else None
            ),
        )
        if not updated:
            raise PersistenceError("User record disappeared during refresh")

        logger.info(
            f"Access token refreshed (refresh token rotated: {rotated})",
            extra={"user_id": record_id},
        )
        return RefreshResult(
            expires_in=tokens.expires_in,
            token_expires_at=token_expires_at,
            refresh_token_rotated=rotated,
        )
