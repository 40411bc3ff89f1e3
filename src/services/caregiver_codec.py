"""Conversion between caregiver snapshots and persisted rows.

Only this module knows that list and map fields are stored as JSON text.
The merge logic works on typed collections and never sees serialized values.
"""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from pydantic import ValidationError

from src.models.caregiver import CaregiverRow
from src.schemas.caregiver import CaregiverProfile
from src.services.exceptions import MalformedPersistedStateError
from src.services.merge_policy import MAP_FIELDS, SCALAR_FIELDS, SET_FIELDS

# Validation errors may report a field by its camelCase alias
_COLUMN_BY_ALIAS = {
    field.alias or name: name for name, field in CaregiverProfile.model_fields.items()
}


def _decode_list(caregiver_id: str, column: str, raw: Any) -> list[str]:
    if raw is None:
        return []
    try:
        value = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError as e:
        raise MalformedPersistedStateError(caregiver_id, column, f"invalid JSON ({e.msg})") from e
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MalformedPersistedStateError(caregiver_id, column, "expected a JSON array of strings")
    return value


def _decode_map(caregiver_id: str, column: str, raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    try:
        value = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError as e:
        raise MalformedPersistedStateError(caregiver_id, column, f"invalid JSON ({e.msg})") from e
    if not isinstance(value, dict):
        raise MalformedPersistedStateError(caregiver_id, column, "expected a JSON object")
    for key, item in value.items():
        if isinstance(item, bool) or not isinstance(item, (int, float, str)):
            raise MalformedPersistedStateError(
                caregiver_id, column, f"value for {key!r} must be a number or string"
            )
    return value


def encode_timestamp(value: datetime) -> str:
    """Render a timestamp as an ISO-8601 UTC string with microseconds."""
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def new_version() -> str:
    """Return a fresh compare-and-swap token for a row write."""
    return uuid4().hex


def row_version(row: CaregiverRow) -> str:
    """Return the compare-and-swap token stored on ``row``.

    Raises:
        MalformedPersistedStateError: If the row carries no version.
    """
    version = row.get("version")
    if not version:
        raise MalformedPersistedStateError(str(row.get("id")), "version", "missing value")
    return str(version)


def decode_row(row: CaregiverRow) -> CaregiverProfile:
    """Build a caregiver snapshot from a persisted row.

    ``NULL`` list and map columns read as empty collections; anything that is
    present but unparsable raises instead.

    Raises:
        MalformedPersistedStateError: If a column cannot be decoded.
    """
    caregiver_id = str(row.get("id"))
    data: dict[str, Any] = {"id": caregiver_id}
    for name in SCALAR_FIELDS:
        data[name] = row.get(name)
    if data["status"] is None:
        raise MalformedPersistedStateError(caregiver_id, "status", "missing value")
    for name in SET_FIELDS:
        data[name] = _decode_list(caregiver_id, name, row.get(name))
    for name in MAP_FIELDS:
        data[name] = _decode_map(caregiver_id, name, row.get(name))
    data["created_at"] = row.get("created_at")
    data["updated_at"] = row.get("updated_at")

    try:
        return CaregiverProfile.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        loc = str(first["loc"][0]) if first["loc"] else "row"
        column = _COLUMN_BY_ALIAS.get(loc, loc)
        raise MalformedPersistedStateError(caregiver_id, column, first["msg"]) from e


def encode_row(profile: CaregiverProfile, version: str) -> CaregiverRow:
    """Serialize a caregiver snapshot into a row carrying the given version token."""
    row: dict[str, Any] = {"id": profile.id, "version": version}
    for name in SCALAR_FIELDS:
        row[name] = getattr(profile, name)
    row["status"] = profile.status.value
    for name in SET_FIELDS:
        row[name] = json.dumps(getattr(profile, name))
    for name in MAP_FIELDS:
        row[name] = json.dumps(getattr(profile, name))
    row["created_at"] = encode_timestamp(profile.created_at)
    row["updated_at"] = encode_timestamp(profile.updated_at)
    return row  # type: ignore[return-value]
