"""Completeness scoring for caregiver profiles.

Everything here is a pure function of a profile snapshot. The percentage is
the share of checklist facets that are filled: a scalar counts once it is
not null, a list or map once it is non-empty. ``status``, ``id`` and the
timestamps are bookkeeping and are not facets.

The extraction agent may close out data collection once every critical
facet is filled and the profile is at least ``READY_THRESHOLD`` percent
complete. Setting ``status`` to complete is the agent's call, not ours.
"""

import math

from src.schemas.caregiver import CaregiverProfile, CompletenessReport, CompletionStatus

FACETS: tuple[str, ...] = (
    "location",
    "profile_picture_url",
    "qualifications",
    "languages",
    "preferred_age_groups",
    "dietary_preferences",
    "responsibilities",
    "benefits_required",
    "care_types",
    "start_date",
    "general_availability",
    "weekly_hours",
    "commute_distance",
    "commute_type",
    "will_drive_children",
    "accessibility_needs",
    "years_of_experience",
    "hourly_rate",
    "additional_child_rate",
    "payroll_required",
)

CRITICAL_FACETS: tuple[str, ...] = ("location", "languages", "care_types", "hourly_rate")

READY_THRESHOLD = 80


def is_filled(profile: CaregiverProfile, facet: str) -> bool:
    """Check whether a single facet holds a value."""
    value = getattr(profile, facet)
    if isinstance(value, (list, dict)):
        return len(value) > 0
    return value is not None


def filled_facets(profile: CaregiverProfile) -> list[str]:
    return [facet for facet in FACETS if is_filled(profile, facet)]


def missing_facets(profile: CaregiverProfile) -> list[str]:
    """Unfilled facets, in checklist order."""
    return [facet for facet in FACETS if not is_filled(profile, facet)]


def missing_critical_facets(profile: CaregiverProfile) -> list[str]:
    return [facet for facet in CRITICAL_FACETS if not is_filled(profile, facet)]


def completion_percentage(profile: CaregiverProfile) -> int:
    """Percentage of filled facets, rounded half up to an integer in [0, 100]."""
    return math.floor(100 * len(filled_facets(profile)) / len(FACETS) + 0.5)


def completion_status(percentage: int) -> CompletionStatus:
    """Map a completion percentage to its display label."""
    if percentage >= 100:
        return CompletionStatus.COMPLETE
    if percentage >= READY_THRESHOLD:
        return CompletionStatus.NEARLY_COMPLETE
    return CompletionStatus.IN_PROGRESS


def all_critical_filled(profile: CaregiverProfile) -> bool:
    return not missing_critical_facets(profile)


def is_ready_to_close(profile: CaregiverProfile) -> bool:
    """Stop condition for data collection: critical facets filled and >= 80%."""
    return all_critical_filled(profile) and completion_percentage(profile) >= READY_THRESHOLD


def score(profile: CaregiverProfile) -> CompletenessReport:
    """Compute the full completeness read-out for a profile.

    Args:
        profile: Snapshot to score.

    Returns:
        CompletenessReport: Percentage, label, missing facets and the stop
        condition inputs.
    """
    percentage = completion_percentage(profile)
    missing_critical = missing_critical_facets(profile)
    return CompletenessReport(
        caregiver_id=profile.id,
        completion_percentage=percentage,
        completion_status=completion_status(percentage),
        filled_facets=len(filled_facets(profile)),
        total_facets=len(FACETS),
        missing_facets=missing_facets(profile),
        missing_critical_facets=missing_critical,
        all_critical_filled=not missing_critical,
        ready_to_close=not missing_critical and percentage >= READY_THRESHOLD,
    )
