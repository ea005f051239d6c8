"""
Domain exceptions for the login flow.

These exceptions represent failures of the OAuth/profile/persistence flow
and are translated to bounded HTTP responses by the centralized exception
handlers in main.py (or by the callback endpoint itself).
"""


class AuthenticationError(Exception):
    """Base class for login flow failures."""

    pass


class ProviderError(AuthenticationError):
    """
    Raised when a call to the identity provider fails.

    Covers non-2xx responses, OAuth error bodies, timeouts and other
    network errors. The message is for logs only, never for clients.
    """

    pass


class ProfileUnavailableError(AuthenticationError):
    """Raised when no profile source yields an external identity id."""

    pass


class PersistenceError(AuthenticationError):
    """Raised when a user record cannot be read back after an upsert."""

    pass


class RefreshTokenUnavailableError(Exception):
    """
    Raised when no usable refresh token is stored for a user.

    The reason distinguishes a missing token from one that could not be
    decrypted; both mean the refresh cannot be attempted.
    """

    NOT_FOUND = "no_refresh_token"
    UNDECRYPTABLE = "refresh_token_undecryptable"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
