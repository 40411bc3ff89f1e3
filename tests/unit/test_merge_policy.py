"""Unit tests for the caregiver field merge policy."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.schemas.caregiver import CaregiverProfile, CaregiverUpdate, ProfileStatus
from src.services.merge_policy import (
    FIELD_KINDS,
    FieldKind,
    apply_update,
    changed_fields,
    merge_field,
    merge_map,
    merge_scalar,
    merge_set,
)

CREATED = datetime(2025, 1, 1, tzinfo=timezone.utc)
LATER = CREATED + timedelta(minutes=5)


@pytest.fixture
def profile() -> CaregiverProfile:
    """Create a partially filled caregiver profile."""
    return CaregiverProfile(
        id="cg-1",
        location="Boston, MA",
        hourly_rate="$20",
        languages=["English"],
        years_of_experience={"infant": 2},
        created_at=CREATED,
        updated_at=CREATED,
    )


class TestFieldKinds:
    """Tests for the field kind table."""

    def test_covers_every_mergeable_field(self) -> None:
        """Test that every profile field except id and timestamps has a kind."""
        expected = set(CaregiverProfile.model_fields) - {"id", "created_at", "updated_at"}
        assert set(FIELD_KINDS) == expected

    def test_status_is_scalar(self) -> None:
        """Test that status is merged by overwrite."""
        assert FIELD_KINDS["status"] is FieldKind.SCALAR
        assert FIELD_KINDS["languages"] is FieldKind.SET
        assert FIELD_KINDS["years_of_experience"] is FieldKind.MAP

    def test_unknown_field_raises(self) -> None:
        """Test that merging an unknown field is rejected."""
        with pytest.raises(KeyError):
            merge_field("favorite_color", None, "blue")


class TestMergeScalar:
    """Tests for scalar overwrite."""

    def test_incoming_replaces_existing(self) -> None:
        """Test that the incoming value wins."""
        assert merge_scalar("Boston", "Austin") == "Austin"

    def test_explicit_none_clears(self) -> None:
        """Test that None replaces a stored value."""
        assert merge_scalar("Boston", None) is None


class TestMergeSet:
    """Tests for set union."""

    def test_union_without_duplicates(self) -> None:
        """Test that shared elements appear once."""
        assert merge_set(["English", "Spanish"], ["Spanish", "French"]) == [
            "English",
            "Spanish",
            "French",
        ]

    def test_duplicates_within_incoming_are_dropped(self) -> None:
        """Test that repeated incoming elements are collapsed."""
        assert merge_set([], ["CPR", "CPR", "First Aid"]) == ["CPR", "First Aid"]

    def test_empty_incoming_is_no_op(self) -> None:
        """Test that an empty list leaves the stored set alone."""
        assert merge_set(["English"], []) == ["English"]
        assert merge_set(["English"], None) == ["English"]

    def test_comparison_is_case_sensitive(self) -> None:
        """Test that differently cased values are distinct elements."""
        assert merge_set(["english"], ["English"]) == ["english", "English"]

    def test_idempotent(self) -> None:
        """Test that merging the same update twice equals merging it once."""
        once = merge_set(["English"], ["Spanish", "French"])
        assert merge_set(once, ["Spanish", "French"]) == once

    def test_commutative_as_sets(self) -> None:
        """Test that update order does not change the resulting set."""
        a, b = ["Spanish", "French"], ["French", "German"]
        assert set(merge_set(merge_set(["English"], a), b)) == set(
            merge_set(merge_set(["English"], b), a)
        )

    def test_does_not_mutate_inputs(self) -> None:
        """Test that the stored list is not modified in place."""
        existing = ["English"]
        merge_set(existing, ["Spanish"])
        assert existing == ["English"]


class TestMergeMap:
    """Tests for map union."""

    def test_shallow_merge(self) -> None:
        """Test that incoming keys override and other keys persist."""
        assert merge_map({"infant": 2, "toddler": 3}, {"toddler": 5, "preschool": 4}) == {
            "infant": 2,
            "toddler": 5,
            "preschool": 4,
        }

    def test_empty_incoming_is_no_op(self) -> None:
        """Test that an empty or missing mapping changes nothing."""
        assert merge_map({"infant": 2}, {}) == {"infant": 2}
        assert merge_map({"infant": 2}, None) == {"infant": 2}

    def test_mixed_value_types(self) -> None:
        """Test that numeric and free-text values are both kept."""
        assert merge_map({"infant": 2}, {"school-age": "a few summers"}) == {
            "infant": 2,
            "school-age": "a few summers",
        }


class TestApplyUpdate:
    """Tests for apply_update."""

    def test_absent_fields_untouched(self, profile: CaregiverProfile) -> None:
        """Test that fields missing from the update keep their values."""
        result = apply_update(profile, CaregiverUpdate(weekly_hours="30"), LATER)

        assert result.weekly_hours == "30"
        assert result.location == "Boston, MA"
        assert result.hourly_rate == "$20"
        assert result.languages == ["English"]
        assert result.years_of_experience == {"infant": 2}

    def test_null_clears_but_absent_does_not(self, profile: CaregiverProfile) -> None:
        """Test the difference between an explicit null and an absent key."""
        cleared = apply_update(profile, CaregiverUpdate(location=None), LATER)
        untouched = apply_update(profile, CaregiverUpdate(), LATER)

        assert cleared.location is None
        assert untouched.location == "Boston, MA"

    def test_null_list_is_no_op(self, profile: CaregiverProfile) -> None:
        """Test that null for a list field does not wipe the stored set."""
        result = apply_update(profile, CaregiverUpdate(languages=None), LATER)
        assert result.languages == ["English"]

    def test_merges_by_kind(self, profile: CaregiverProfile) -> None:
        """Test that each field kind uses its own rule in one update."""
        update = CaregiverUpdate(
            location="Austin, TX",
            languages=["Spanish", "English"],
            years_of_experience={"toddler": 1},
            status=ProfileStatus.COMPLETE,
        )
        result = apply_update(profile, update, LATER)

        assert result.location == "Austin, TX"
        assert result.languages == ["English", "Spanish"]
        assert result.years_of_experience == {"infant": 2, "toddler": 1}
        assert result.status is ProfileStatus.COMPLETE

    def test_stamps_updated_at_and_keeps_identity(self, profile: CaregiverProfile) -> None:
        """Test that only updated_at moves among the bookkeeping fields."""
        result = apply_update(profile, CaregiverUpdate(), LATER)

        assert result.updated_at == LATER
        assert result.created_at == CREATED
        assert result.id == "cg-1"

    def test_input_profile_not_mutated(self, profile: CaregiverProfile) -> None:
        """Test that the original snapshot is left as it was."""
        apply_update(profile, CaregiverUpdate(languages=["French"], location=None), LATER)

        assert profile.languages == ["English"]
        assert profile.location == "Boston, MA"
        assert profile.updated_at == CREATED

    def test_changed_fields(self, profile: CaregiverProfile) -> None:
        """Test that only fields whose value moved are reported."""
        result = apply_update(
            profile,
            CaregiverUpdate(languages=["English"], hourly_rate="$22"),
            LATER,
        )
        assert changed_fields(profile, result) == ["hourly_rate"]


class TestCaregiverUpdateSchema:
    """Tests for CaregiverUpdate validation."""

    def test_provided_fields_tracks_explicit_keys(self) -> None:
        """Test that only explicitly set keys are reported."""
        assert CaregiverUpdate().provided_fields() == {}
        assert CaregiverUpdate(location=None).provided_fields() == {"location": None}

    def test_accepts_camel_case_keys(self) -> None:
        """Test that JSON-style names populate the update."""
        update = CaregiverUpdate.model_validate(
            {"hourlyRate": "$25", "yearsOfExperience": {"infant": 2}}
        )
        assert update.provided_fields() == {
            "hourly_rate": "$25",
            "years_of_experience": {"infant": 2},
        }

    @pytest.mark.parametrize("payload", [{"favoriteColor": "blue"}, {"id": "other"}, {"createdAt": "2025-01-01"}])
    def test_rejects_unknown_and_bookkeeping_fields(self, payload: dict) -> None:
        """Test that unknown fields, id and timestamps cannot be updated."""
        with pytest.raises(ValidationError):
            CaregiverUpdate.model_validate(payload)

    def test_rejects_null_status(self) -> None:
        """Test that status can be changed but not cleared."""
        with pytest.raises(ValidationError):
            CaregiverUpdate.model_validate({"status": None})

    def test_rejects_unknown_status(self) -> None:
        """Test that status must be one of the known values."""
        with pytest.raises(ValidationError):
            CaregiverUpdate.model_validate({"status": "archived"})

    @pytest.mark.parametrize("flag", [True, False])
    def test_rejects_boolean_experience_values(self, flag: bool) -> None:
        """Test that booleans are not coerced into years of experience."""
        with pytest.raises(ValidationError):
            CaregiverUpdate.model_validate_json(json.dumps({"yearsOfExperience": {"infant": flag}}))

    def test_keeps_numeric_and_text_experience_values(self) -> None:
        """Test that ints, floats and strings keep their types."""
        update = CaregiverUpdate.model_validate_json(
            '{"yearsOfExperience": {"infant": 2, "toddler": 1.5, "teen": "some"}}'
        )

        assert update.years_of_experience == {"infant": 2, "toddler": 1.5, "teen": "some"}
        assert type(update.years_of_experience["infant"]) is int


class TestCaregiverProfileSchema:
    """Tests for CaregiverProfile invariants."""

    def test_list_fields_deduplicated(self) -> None:
        """Test that a snapshot never holds duplicate list elements."""
        profile = CaregiverProfile(
            id="cg-2",
            languages=["English", "English", "Spanish"],
            created_at=CREATED,
            updated_at=CREATED,
        )
        assert profile.languages == ["English", "Spanish"]

    def test_serializes_camel_case(self) -> None:
        """Test that JSON output uses camelCase keys."""
        profile = CaregiverProfile(id="cg-3", created_at=CREATED, updated_at=CREATED)
        data = profile.model_dump(by_alias=True)

        assert "yearsOfExperience" in data
        assert "profilePictureUrl" in data
        assert data["status"] == ProfileStatus.IN_PROGRESS
