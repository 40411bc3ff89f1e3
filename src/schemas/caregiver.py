"""Caregiver profile Pydantic schemas.

``CaregiverProfile`` is the canonical in-memory snapshot returned by every
store operation. ``CaregiverUpdate`` is the partial update sent by the
extraction agent: a field that was never set on the model is "absent" and
leaves the stored value alone, while an explicit ``null`` clears a scalar.
JSON payloads use camelCase names (``hourlyRate``, ``yearsOfExperience``);
Python callers may use either the alias or the attribute name.
"""

from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, field_validator
from pydantic.alias_generators import to_camel

# Strict numbers keep JSON booleans from being coerced to 1 and 0
ExperienceValue = Union[StrictInt, StrictFloat, str]


class ProfileStatus(str, Enum):
    """Persisted collection status of a caregiver profile."""

    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class CompletionStatus(str, Enum):
    """Display label derived from the completion percentage."""

    IN_PROGRESS = "In Progress"
    NEARLY_COMPLETE = "Nearly Complete"
    COMPLETE = "Complete"


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class CaregiverSchema(BaseModel):
    """Shared camelCase configuration for caregiver payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CaregiverProfile(CaregiverSchema):
    """Full caregiver profile snapshot."""

    id: str = Field(description="Opaque caregiver identifier")
    status: ProfileStatus = Field(default=ProfileStatus.IN_PROGRESS, description="Collection status")

    location: str | None = Field(default=None, description="City or area where the caregiver is located")
    profile_picture_url: str | None = Field(default=None, description="Reference to the profile picture")

    qualifications: list[str] = Field(default_factory=list, description="Qualifications, certifications or training")
    languages: list[str] = Field(default_factory=list, description="Languages spoken")
    preferred_age_groups: list[str] = Field(default_factory=list, description="Preferred age groups")
    dietary_preferences: list[str] = Field(default_factory=list, description="Dietary preferences or restrictions")
    responsibilities: list[str] = Field(default_factory=list, description="Responsibilities willing to take on")
    benefits_required: list[str] = Field(default_factory=list, description="Benefits needed")
    care_types: list[str] = Field(default_factory=list, description="Care types (full-time, overnight, ...)")

    start_date: str | None = Field(default=None, description="When the caregiver can start")
    general_availability: str | None = Field(default=None, description="General availability description")
    weekly_hours: str | None = Field(default=None, description="Desired weekly hours")

    commute_distance: str | None = Field(default=None, description="Maximum commute distance")
    commute_type: str | None = Field(default=None, description="Preferred commute type")
    will_drive_children: str | None = Field(default=None, description="Whether willing to drive children")

    accessibility_needs: str | None = Field(default=None, description="Any accessibility needs")

    years_of_experience: dict[str, ExperienceValue] = Field(
        default_factory=dict,
        description="Years of experience keyed by age group or care type",
    )

    hourly_rate: str | None = Field(default=None, description="Desired hourly rate")
    additional_child_rate: str | None = Field(default=None, description="Rate for each additional child")
    payroll_required: str | None = Field(default=None, description="Whether payroll is required")

    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last successful update timestamp")

    @field_validator(
        "qualifications",
        "languages",
        "preferred_age_groups",
        "dietary_preferences",
        "responsibilities",
        "benefits_required",
        "care_types",
    )
    @classmethod
    def drop_duplicates(cls, value: list[str]) -> list[str]:
        """Keep the first occurrence of each element."""
        return _unique(value)


class CaregiverUpdate(CaregiverSchema):
    """Partial caregiver update.

    Only fields explicitly provided are applied. Scalars are overwritten
    (``None`` clears them), list fields are unioned into the stored set and
    ``years_of_experience`` is shallow-merged into the stored map. ``id`` and
    timestamps cannot be updated.
    """

    model_config = ConfigDict(extra="forbid")

    status: ProfileStatus | None = None

    location: str | None = None
    profile_picture_url: str | None = None

    qualifications: list[str] | None = None
    languages: list[str] | None = None
    preferred_age_groups: list[str] | None = None
    dietary_preferences: list[str] | None = None
    responsibilities: list[str] | None = None
    benefits_required: list[str] | None = None
    care_types: list[str] | None = None

    start_date: str | None = None
    general_availability: str | None = None
    weekly_hours: str | None = None

    commute_distance: str | None = None
    commute_type: str | None = None
    will_drive_children: str | None = None

    accessibility_needs: str | None = None

    years_of_experience: dict[str, ExperienceValue] | None = None

    hourly_rate: str | None = None
    additional_child_rate: str | None = None
    payroll_required: str | None = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value: ProfileStatus | None) -> ProfileStatus:
        """Status always holds a value; it can be changed but not cleared."""
        if value is None:
            raise ValueError("status cannot be null")
        return value

    def provided_fields(self) -> dict[str, object]:
        """Return only the fields the caller explicitly set, by attribute name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class CaregiverCreate(CaregiverSchema):
    """Payload for creating a caregiver profile."""

    id: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Optional caller-supplied id; a UUID is generated when omitted",
    )


class CompletenessReport(CaregiverSchema):
    """Derived completeness of a caregiver profile snapshot."""

    caregiver_id: str = Field(description="Caregiver the report was computed for")
    completion_percentage: int = Field(ge=0, le=100, description="Rounded share of filled facets")
    completion_status: CompletionStatus = Field(description="Display label for the percentage")
    filled_facets: int = Field(ge=0, description="Number of filled facets")
    total_facets: int = Field(ge=1, description="Number of facets in the checklist")
    missing_facets: list[str] = Field(default_factory=list, description="Unfilled facets in checklist order")
    missing_critical_facets: list[str] = Field(default_factory=list, description="Unfilled critical facets")
    all_critical_filled: bool = Field(description="Whether every critical facet is filled")
    ready_to_close: bool = Field(description="Whether data collection may be closed out")


class CaregiverResponse(CaregiverProfile):
    """Caregiver profile with its derived completion read-out."""

    completion_percentage: int = Field(ge=0, le=100, description="Rounded share of filled facets")
    completion_status: CompletionStatus = Field(description="Display label for the percentage")
