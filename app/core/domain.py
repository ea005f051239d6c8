"""
Core domain models for the LinkedIn login flow.

These models represent the business domain and are independent of
any infrastructure or delivery mechanism.
"""

import time
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Token response keys that must never be persisted in the diagnostic blob
SECRET_TOKEN_KEYS = ("access_token", "refresh_token", "id_token")


class TokenSet(BaseModel):
    """
    Tokens returned by the provider's token endpoint.

    Built from the raw authlib token dict for both the authorization_code
    and the refresh_token grants.
    """

    access_token: str
    expires_in: int | None = None
    refresh_token: str | None = None
    id_token: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @classmethod
    def from_token_response(cls, token_data: dict[str, Any]) -> "TokenSet":
        """
        Create TokenSet from a token endpoint response.

        Args:
            token_data: Raw token dict (authlib OAuth2Token or parsed JSON)

        Returns:
            TokenSet instance
        """
        expires_in = token_data.get("expires_in")
        return cls(
            access_token=token_data["access_token"],
            expires_in=int(expires_in) if expires_in is not None else None,
            refresh_token=token_data.get("refresh_token"),
            id_token=token_data.get("id_token"),
            raw=dict(token_data),
        )

    def expires_at_millis(self, now_millis: int | None = None) -> int:
        """Absolute access token expiry in epoch milliseconds."""
        if now_millis is None:
            now_millis = int(time.time() * 1000)
        return now_millis + (self.expires_in or 0) * 1000

    def redacted(self) -> dict[str, Any]:
        """Raw response without token values, safe for diagnostic storage."""
        return {k: v for k, v in self.raw.items() if k not in SECRET_TOKEN_KEYS}


class ProfileAttributes(BaseModel):
    """
    Canonical user attributes produced by the profile normalizer.

    None means "not known from this source", which is different from a
    known empty value.
    """

    external_id: str | None = None
    full_name: str = ""
    email: str | None = None
    headline: str | None = None
    profile_url: str | None = None
    profile_picture: str | None = None
    location: str | None = None
    experience: list[Any] | None = None
    education: list[Any] | None = None


class PrimaryProfileShape(BaseModel):
    """Legacy REST profile (/v2/me) plus the email address response."""

    kind: Literal["primary"] = "primary"
    profile: dict[str, Any]
    email_response: dict[str, Any] = Field(default_factory=dict)


class IdTokenShape(BaseModel):
    """Claims decoded from the OpenID Connect identity token."""

    kind: Literal["id_token"] = "id_token"
    claims: dict[str, Any]


ProfileShape = Annotated[
    Union[PrimaryProfileShape, IdTokenShape], Field(discriminator="kind")
]


class SessionClaims(BaseModel):
    """Identity carried by the session token."""

    user_id: str
    external_id: str
    email: str | None = None

    model_config = ConfigDict(extra="ignore")
