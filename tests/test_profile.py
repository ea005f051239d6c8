"""
Tests for profile normalization.
"""

import jwt
import pytest
from pydantic import TypeAdapter

from app.core.domain import (
    IdTokenShape,
    PrimaryProfileShape,
    ProfileAttributes,
    ProfileShape,
)
from app.core.exceptions import ProfileUnavailableError
from app.core.profile import (
    decode_id_token,
    from_id_token_claims,
    from_primary_profile,
    merge_profiles,
    normalize,
    resolve_profile,
)
from tests.conftest import make_primary_profile


def _id_token(claims: dict) -> str:
    return jwt.encode(claims, "provider-signing-key", algorithm="HS256")


def _picture(*identifiers: str) -> dict:
    return {
        "displayImage~": {
            "elements": [
                {"identifiers": [{"identifier": identifier}]}
                for identifier in identifiers
            ]
        }
    }


class TestPrimaryProfile:
    """Tests for the REST profile mapping."""

    def test_ada_lovelace(self):
        """Test the canonical name, URL and email mapping."""
        attrs = from_primary_profile(make_primary_profile())

        assert attrs.external_id == "li-ada-123"
        assert attrs.full_name == "Ada Lovelace"
        assert attrs.profile_url == "https://www.linkedin.com/in/ada"
        assert attrs.email == "ada@example.com"
        assert attrs.headline == "Analyst of the Analytical Engine"

    def test_largest_picture_selected(self):
        """Test the last display image element wins."""
        shape = make_primary_profile(
            profilePicture=_picture("https://media/100.jpg", "https://media/800.jpg")
        )

        assert from_primary_profile(shape).profile_picture == "https://media/800.jpg"

    def test_missing_optional_fields(self):
        """Test absent fields stay None."""
        shape = PrimaryProfileShape(profile={"id": "li-1", "localizedFirstName": "Ada"})

        attrs = from_primary_profile(shape)

        assert attrs.full_name == "Ada"
        assert attrs.email is None
        assert attrs.profile_url is None
        assert attrs.profile_picture is None
        assert attrs.experience is None

    def test_empty_email_elements(self):
        shape = PrimaryProfileShape(profile={"id": "li-1"}, email_response={"elements": []})

        assert from_primary_profile(shape).email is None

    def test_malformed_picture_ignored(self):
        shape = make_primary_profile(profilePicture={"displayImage~": {"elements": []}})

        assert from_primary_profile(shape).profile_picture is None

    def test_positions_and_location(self):
        positions = [{"title": "Analyst", "company": "Analytical Engine"}]
        shape = make_primary_profile(
            positions=positions, educations=[], locationName="London"
        )

        attrs = from_primary_profile(shape)

        assert attrs.experience == positions
        assert attrs.education == []
        assert attrs.location == "London"


class TestIdTokenClaims:
    """Tests for the identity token mapping."""

    def test_given_and_family_name(self):
        """Test the fallback produces the same name and email."""
        shape = IdTokenShape(
            claims={
                "sub": "li-ada-123",
                "given_name": "Ada",
                "family_name": "Lovelace",
                "email": "ada@example.com",
            }
        )

        attrs = from_id_token_claims(shape)

        assert attrs.external_id == "li-ada-123"
        assert attrs.full_name == "Ada Lovelace"
        assert attrs.email == "ada@example.com"
        assert attrs.profile_url is None

    def test_name_split_on_first_space(self):
        shape = IdTokenShape(claims={"sub": "x", "name": "Ada King Lovelace"})

        assert from_id_token_claims(shape).full_name == "Ada King Lovelace"

    def test_alternate_claim_names(self):
        shape = IdTokenShape(
            claims={
                "user_id": "li-2",
                "givenName": "Ada",
                "familyName": "Lovelace",
                "preferred_username": "ada@example.com",
                "picture_url": "https://media/ada.jpg",
                "profile": "https://www.linkedin.com/in/ada",
            }
        )

        attrs = from_id_token_claims(shape)

        assert attrs.external_id == "li-2"
        assert attrs.full_name == "Ada Lovelace"
        assert attrs.email == "ada@example.com"
        assert attrs.profile_picture == "https://media/ada.jpg"
        assert attrs.profile_url == "https://www.linkedin.com/in/ada"

    def test_missing_half_taken_from_name(self):
        """Test a lone family name is completed from the display name."""
        shape = IdTokenShape(
            claims={"sub": "x", "family_name": "Lovelace", "name": "Ada Lovelace"}
        )

        assert from_id_token_claims(shape).full_name == "Ada Lovelace"

    def test_given_name_kept_over_name(self):
        shape = IdTokenShape(
            claims={"sub": "x", "given_name": "Augusta", "name": "Ada Lovelace"}
        )

        assert from_id_token_claims(shape).full_name == "Augusta Lovelace"

    def test_no_names(self):
        assert from_id_token_claims(IdTokenShape(claims={"sub": "x"})).full_name == ""


class TestNormalize:
    """Tests for tagged-union dispatch."""

    def test_dispatch_on_kind(self):
        adapter = TypeAdapter(ProfileShape)

        primary = adapter.validate_python(
            {"kind": "primary", "profile": {"id": "p", "localizedFirstName": "Ada"}}
        )
        fallback = adapter.validate_python(
            {"kind": "id_token", "claims": {"sub": "c", "given_name": "Ada"}}
        )

        assert isinstance(primary, PrimaryProfileShape)
        assert normalize(primary).external_id == "p"
        assert isinstance(fallback, IdTokenShape)
        assert normalize(fallback).external_id == "c"


class TestMergeProfiles:
    """Tests for enrichment of the primary profile."""

    def test_primary_wins(self):
        primary = ProfileAttributes(external_id="p", full_name="Ada", headline="A")
        fallback = ProfileAttributes(external_id="c", full_name="Other", headline="B")

        merged = merge_profiles(primary, fallback)

        assert merged.external_id == "p"
        assert merged.full_name == "Ada"
        assert merged.headline == "A"

    def test_missing_fields_filled(self):
        primary = ProfileAttributes(external_id="p")
        fallback = ProfileAttributes(
            external_id="c",
            profile_picture="https://media/ada.jpg",
            location="London",
        )

        merged = merge_profiles(primary, fallback)

        assert merged.profile_picture == "https://media/ada.jpg"
        assert merged.location == "London"

    def test_missing_id_taken_from_fallback(self):
        primary = ProfileAttributes(full_name="Ada")
        fallback = ProfileAttributes(external_id="c", full_name="Other")

        merged = merge_profiles(primary, fallback)

        assert merged.external_id == "c"
        assert merged.full_name == "Ada"

    def test_no_fallback(self):
        primary = ProfileAttributes(external_id="p")

        assert merge_profiles(primary, None) == primary


class TestDecodeIdToken:
    """Tests for identity token decoding."""

    def test_decodes_without_verification(self):
        shape = decode_id_token(_id_token({"sub": "li-1"}))

        assert shape is not None
        assert shape.claims["sub"] == "li-1"

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_undecodable_returns_none(self, token):
        assert decode_id_token(token) is None


class TestResolveProfile:
    """Tests for choosing between profile sources."""

    def test_primary_enriched_by_id_token(self):
        token = _id_token({"sub": "li-ada-123", "picture": "https://media/ada.jpg"})

        attrs = resolve_profile(make_primary_profile(), token)

        assert attrs.full_name == "Ada Lovelace"
        assert attrs.profile_picture == "https://media/ada.jpg"

    def test_id_token_only(self):
        token = _id_token({"sub": "li-ada-123", "name": "Ada Lovelace"})

        attrs = resolve_profile(None, token)

        assert attrs.external_id == "li-ada-123"
        assert attrs.full_name == "Ada Lovelace"

    def test_no_source_raises(self):
        with pytest.raises(ProfileUnavailableError):
            resolve_profile(None, None)

    def test_no_external_id_raises(self):
        shape = PrimaryProfileShape(profile={"localizedFirstName": "Ada"})

        with pytest.raises(ProfileUnavailableError):
            resolve_profile(shape, None)

    def test_primary_without_id_uses_id_token_subject(self):
        """Test the identity token supplies the id the REST profile lacks."""
        shape = PrimaryProfileShape(profile={"localizedFirstName": "Ada"})

        attrs = resolve_profile(shape, _id_token({"sub": "li-ada"}))

        assert attrs.external_id == "li-ada"
        assert attrs.full_name == "Ada"
