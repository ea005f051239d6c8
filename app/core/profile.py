"""
Profile normalization.

LinkedIn delivers user data in two unrelated shapes: the legacy REST
profile (/v2/me plus the email address endpoint) and the claims of the
OpenID Connect identity token. Each shape has one pure mapping function
onto ProfileAttributes; resolve_profile() picks and merges them.
"""

import logging
from typing import Any

import jwt

from app.core.domain import (
    IdTokenShape,
    PrimaryProfileShape,
    ProfileAttributes,
    ProfileShape,
)
from app.core.exceptions import ProfileUnavailableError

logger = logging.getLogger(__name__)

PUBLIC_PROFILE_BASE_URL = "https://www.linkedin.com/in/"

# Fields the identity token may fill in when the primary profile lacks them
ENRICHMENT_FIELDS = (
    "headline",
    "profile_url",
    "profile_picture",
    "location",
    "experience",
    "education",
)


def _first(mapping: dict[str, Any], *keys: str) -> Any:
    """Return the first truthy value among keys, or None."""
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def _full_name(first: str | None, last: str | None) -> str:
    return f"{first or ''} {last or ''}".strip()


def _primary_email(email_response: dict[str, Any]) -> str | None:
    elements = email_response.get("elements") or []
    if not elements:
        return None
    handle = elements[0].get("handle~") or {}
    return handle.get("emailAddress")


def _primary_picture(profile: dict[str, Any]) -> str | None:
    """
    Pick the largest display image.

    LinkedIn orders displayImage~ elements from smallest to largest, so the
    last element is the largest variant.
    """
    picture = profile.get("profilePicture") or {}
    elements = (picture.get("displayImage~") or {}).get("elements")
    if not isinstance(elements, list) or not elements:
        return None
    identifiers = elements[-1].get("identifiers") or []
    if not identifiers:
        return None
    return identifiers[0].get("identifier")


def from_primary_profile(shape: PrimaryProfileShape) -> ProfileAttributes:
    """Map the legacy REST profile onto canonical attributes."""
    profile = shape.profile
    vanity_name = profile.get("vanityName")

    return ProfileAttributes(
        external_id=profile.get("id"),
        full_name=_full_name(
            profile.get("localizedFirstName"), profile.get("localizedLastName")
        ),
        email=_primary_email(shape.email_response),
        headline=profile.get("headline"),
        profile_url=f"{PUBLIC_PROFILE_BASE_URL}{vanity_name}" if vanity_name else None,
        profile_picture=_primary_picture(profile),
        location=profile.get("locationName"),
        experience=profile.get("positions"),
        education=profile.get("educations"),
    )


def from_id_token_claims(shape: IdTokenShape) -> ProfileAttributes:
    """Map OIDC identity token claims onto canonical attributes."""
    claims = shape.claims
    first = _first(claims, "given_name", "givenName")
    last = _first(claims, "family_name", "familyName")

    # Each missing half comes from the display name
    name_first, _, name_last = (claims.get("name") or "").partition(" ")
    first = first or name_first
    last = last or name_last

    return ProfileAttributes(
        external_id=_first(claims, "sub", "user_id"),
        full_name=_full_name(first, last),
        email=_first(claims, "email", "email_address", "preferred_username"),
        headline=claims.get("headline"),
        profile_url=claims.get("profile"),
        profile_picture=_first(claims, "picture", "picture_url", "image"),
        location=claims.get("location"),
        experience=claims.get("positions"),
        education=claims.get("education"),
    )


def normalize(shape: ProfileShape) -> ProfileAttributes:
    """Dispatch a tagged profile shape to its mapping function."""
    if isinstance(shape, PrimaryProfileShape):
        return from_primary_profile(shape)
    return from_id_token_claims(shape)


def merge_profiles(
    primary: ProfileAttributes, fallback: ProfileAttributes | None
) -> ProfileAttributes:
    """
    Fill enrichment fields missing from the primary profile.

    Primary values always win; only ENRICHMENT_FIELDS are taken from the
    fallback, and only where the primary has None. A primary profile
    without an id takes the identity token subject.
    """
    if fallback is None:
        return primary

    updates = {
        field: getattr(fallback, field)
        for field in ENRICHMENT_FIELDS
        if getattr(primary, field) is None and getattr(fallback, field) is not None
    }
    if not primary.external_id and fallback.external_id:
        updates["external_id"] = fallback.external_id
    return primary.model_copy(update=updates)


def decode_id_token(id_token: str | None) -> IdTokenShape | None:
    """
    Decode identity token claims without verifying the signature.

    The token arrives directly from the token endpoint over TLS and is only
    used to enrich the profile, never as proof of identity.

    Returns:
        IdTokenShape, or None if there is no token or it cannot be decoded
    """
    if not id_token:
        return None

    try:
        claims = jwt.decode(id_token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        logger.warning(f"Failed to decode id_token: {e}")
        return None

    return IdTokenShape(claims=claims)


def resolve_profile(
    primary: PrimaryProfileShape | None, id_token: str | None
) -> ProfileAttributes:
    """
    Produce one canonical attribute set from whatever sources succeeded.

    Args:
        primary: REST profile shape, or None if those calls failed
        id_token: Raw identity token from the token response, if any

    Returns:
        Normalized attributes with a non-empty external_id

    Raises:
        ProfileUnavailableError: If no source yields an external identity id
    """
    id_token_shape = decode_id_token(id_token)
    fallback = normalize(id_token_shape) if id_token_shape else None

    if primary is not None:
        attributes = merge_profiles(normalize(primary), fallback)
    elif fallback is not None:
        attributes = fallback
    else:
        raise ProfileUnavailableError("No profile source available")

    if not attributes.external_id:
        raise ProfileUnavailableError("Profile has no external identity id")

    return attributes
