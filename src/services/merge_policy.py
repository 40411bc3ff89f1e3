"""Per-field merge rules for partial caregiver updates.

Every mergeable field has a kind:

- ``SCALAR``: the incoming value replaces the stored one, ``None`` included.
- ``SET``: the incoming list is unioned into the stored list. Stored elements
  keep their position, new elements are appended in first-seen order, and
  nothing is ever removed.
- ``MAP``: incoming keys are written over the stored mapping one level deep;
  keys not mentioned survive.

Fields missing from an update are never touched.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from src.schemas.caregiver import CaregiverProfile, CaregiverUpdate, ExperienceValue


class FieldKind(str, Enum):
    """How a field combines stored and incoming values."""

    SCALAR = "scalar"
    SET = "set"
    MAP = "map"


SCALAR_FIELDS: tuple[str, ...] = (
    "status",
    "location",
    "profile_picture_url",
    "start_date",
    "general_availability",
    "weekly_hours",
    "commute_distance",
    "commute_type",
    "will_drive_children",
    "accessibility_needs",
    "hourly_rate",
    "additional_child_rate",
    "payroll_required",
)

SET_FIELDS: tuple[str, ...] = (
    "qualifications",
    "languages",
    "preferred_age_groups",
    "dietary_preferences",
    "responsibilities",
    "benefits_required",
    "care_types",
)

MAP_FIELDS: tuple[str, ...] = ("years_of_experience",)

FIELD_KINDS: dict[str, FieldKind] = {
    **{name: FieldKind.SCALAR for name in SCALAR_FIELDS},
    **{name: FieldKind.SET for name in SET_FIELDS},
    **{name: FieldKind.MAP for name in MAP_FIELDS},
}


def merge_scalar(existing: Any, incoming: Any) -> Any:
    """Overwrite unconditionally."""
    return incoming


def merge_set(existing: Iterable[str], incoming: Iterable[str] | None) -> list[str]:
    """Union two string collections, keeping stored order first."""
    merged = dict.fromkeys(existing)
    if incoming:
        merged.update(dict.fromkeys(incoming))
    return list(merged)


def merge_map(
    existing: Mapping[str, ExperienceValue],
    incoming: Mapping[str, ExperienceValue] | None,
) -> dict[str, ExperienceValue]:
    """Shallow-merge ``incoming`` over ``existing``."""
    if not incoming:
        return dict(existing)
    return {**existing, **incoming}


_MERGERS = {
    FieldKind.SCALAR: merge_scalar,
    FieldKind.SET: merge_set,
    FieldKind.MAP: merge_map,
}


def merge_field(name: str, existing: Any, incoming: Any) -> Any:
    """Merge a single field according to its kind.

    Raises:
        KeyError: If ``name`` is not a mergeable caregiver field.
    """
    return _MERGERS[FIELD_KINDS[name]](existing, incoming)


def apply_update(
    profile: CaregiverProfile,
    update: CaregiverUpdate,
    updated_at: datetime,
) -> CaregiverProfile:
    """Return a new snapshot with ``update`` merged into ``profile``.

    ``profile`` is not modified. ``updated_at`` is stamped on the result even
    when the update carries no fields.
    """
    changes: dict[str, Any] = {"updated_at": updated_at}
    for name, incoming in update.provided_fields().items():
        changes[name] = merge_field(name, getattr(profile, name), incoming)
    return profile.model_copy(update=changes, deep=True)


def changed_fields(before: CaregiverProfile, after: CaregiverProfile) -> list[str]:
    """List the mergeable fields whose value differs between two snapshots."""
    return [name for name in FIELD_KINDS if getattr(before, name) != getattr(after, name)]
