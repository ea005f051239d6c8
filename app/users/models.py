"""
User record domain models.

A user record is keyed by the LinkedIn subject identifier (external id).
Its internal id is derived deterministically from the external id, so
the same identity always maps to the same record.
"""

import uuid
from datetime import datetime, UTC
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)

from app.core.domain import ProfileAttributes, TokenSet


# Namespace for deriving record ids from LinkedIn subject identifiers
RECORD_ID_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "https://www.linkedin.com/")


def record_id_for(external_id: str) -> str:
    """Derive the internal record id for an external identity id."""
    return uuid.uuid5(RECORD_ID_NAMESPACE, external_id).hex


class UserRecord(BaseModel):
    """
    Persisted user record.

    Stores the normalized LinkedIn profile together with the current access
    token and the encrypted refresh token.
    """

    id: str = Field(description="Internal record id (document id)")
    external_id: str = Field(description="LinkedIn subject identifier")
    full_name: str = Field(default="", description="Display name")
    email: str | None = None
    headline: str | None = None
    profile_url: str | None = None
    profile_picture: str | None = None
    location: str | None = None
    experience: list[Any] | None = None
    education: list[Any] | None = None
    access_token: str | None = Field(
        default=None, description="Plaintext short-lived access token"
    )
    refresh_token_encrypted: str | None = Field(
        default=None, description="AES-GCM envelope of the refresh token"
    )
    token_expires_at: int | None = Field(
        default=None, description="Access token expiry (epoch millis)"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(
        default_factory=dict, description="Last upstream responses (diagnostic)"
    )

    model_config = ConfigDict(extra="ignore")

    def to_view(self) -> "UserProfileView":
        """Project the record onto the fields safe to return to clients."""
        return UserProfileView.model_validate(self.model_dump(include=VIEW_FIELDS))


class UserProfileView(BaseModel):
    """Presentation-safe subset of a user record."""

    id: str
    full_name: str
    email: str | None = None
    headline: str | None = None
    profile_url: str | None = None
    profile_picture: str | None = None
    location: str | None = None
    experience: list[Any] | None = None
    education: list[Any] | None = None


VIEW_FIELDS = set(UserProfileView.model_fields)


class LoginUpdate(BaseModel):
    """
    Fields written by a successful login.

    None values mean "not produced by this login" and are not written, so
    a login never clears previously known data.
    """

    external_id: str
    full_name: str = ""
    email: str | None = None
    headline: str | None = None
    profile_url: str | None = None
    profile_picture: str | None = None
    location: str | None = None
    experience: list[Any] | None = None
    education: list[Any] | None = None
    access_token: str
    token_expires_at: int
    refresh_token_encrypted: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_login(
        cls,
        attributes: ProfileAttributes,
        tokens: TokenSet,
        refresh_token_encrypted: str | None,
        raw: dict[str, Any],
    ) -> "LoginUpdate":
        """Combine normalized attributes and token data into one update."""
        if not attributes.external_id:
            raise ValueError("Login update requires an external id")
        return cls(
            **attributes.model_dump(exclude={"external_id"}),
            external_id=attributes.external_id,
            access_token=tokens.access_token,
            token_expires_at=tokens.expires_at_millis(),
            refresh_token_encrypted=refresh_token_encrypted,
            raw=raw,
        )

    @property
    def record_id(self) -> str:
        return record_id_for(self.external_id)

    def to_fields(self) -> dict[str, Any]:
        """Fields to set on the record (None values omitted)."""
        fields = self.model_dump(exclude_none=True)
        fields["id"] = self.record_id
        return fields


class ProfileUpdate(BaseModel):
    """
    Onboarding update body.

    Only provided fields are applied. Empty strings count as absent.
    """

    email: EmailStr | None = None
    profile_picture: str | None = Field(default=None, alias="profilePicture")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("email", "profile_picture", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings as not provided."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_empty(self) -> bool:
        return self.email is None and self.profile_picture is None

    def to_fields(self) -> dict[str, Any]:
        """Provided fields only, keyed by record field name."""
        return self.model_dump(exclude_none=True, by_alias=False)
