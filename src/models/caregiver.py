"""Caregiver model type definitions for database operations."""

from typing import TypedDict


class CaregiverRow(TypedDict):
    """Caregiver table row representation.

    One row per caregiver. List-valued fields are stored as JSON array text
    (default ``'[]'``) and ``years_of_experience`` as JSON object text
    (default ``'{}'``). Timestamps are ISO-8601 strings in UTC. ``version``
    is an opaque token replaced on every write, including the insert, and
    guards compare-and-swap updates. A re-created id never reuses a token
    from an earlier incarnation.
    """

    id: str
    status: str
    location: str | None
    profile_picture_url: str | None
    qualifications: str | None
    languages: str | None
    preferred_age_groups: str | None
    dietary_preferences: str | None
    responsibilities: str | None
    benefits_required: str | None
    care_types: str | None
    start_date: str | None
    general_availability: str | None
    weekly_hours: str | None
    commute_distance: str | None
    commute_type: str | None
    will_drive_children: str | None
    accessibility_needs: str | None
    years_of_experience: str | None
    hourly_rate: str | None
    additional_child_rate: str | None
    payroll_required: str | None
    version: str
    created_at: str
    updated_at: str
