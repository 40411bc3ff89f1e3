"""Row storage backends for caregiver profiles.

A repository stores ``CaregiverRow`` dicts and knows nothing about merging.
Every write that changes an existing row goes through ``compare_and_swap``,
which only succeeds if the row still carries the version token the caller
read. Tokens are never reused, so a write prepared against a deleted row
cannot land on a later row created under the same id.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from postgrest.exceptions import APIError

from src.models.caregiver import CaregiverRow
from src.services.exceptions import (
    CaregiverAlreadyExistsError,
    CaregiverNotFoundError,
    ConcurrentModificationError,
    PersistenceUnavailableError,
)

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class CaregiverRepository(Protocol):
    """Storage operations the caregiver store relies on."""

    def insert(self, row: CaregiverRow) -> CaregiverRow:
        """Insert a new row; raise CaregiverAlreadyExistsError on id collision."""
        ...

    def fetch(self, caregiver_id: str) -> CaregiverRow | None:
        """Return the row for ``caregiver_id`` or None."""
        ...

    def fetch_all(self) -> list[CaregiverRow]:
        """Return every row in a stable order."""
        ...

    def compare_and_swap(self, row: CaregiverRow, expected_version: str) -> CaregiverRow:
        """Replace the row if its stored version token equals ``expected_version``."""
        ...

    def delete(self, caregiver_id: str) -> bool:
        """Delete the row; return whether one existed."""
        ...


class InMemoryCaregiverRepository:
    """Thread-safe process-local caregiver table.

    Rows are kept in insertion order, which makes ``fetch_all`` stable for
    the lifetime of the process.
    """

    def __init__(self) -> None:
        self._rows: dict[str, CaregiverRow] = {}
        self._lock = Lock()

    def insert(self, row: CaregiverRow) -> CaregiverRow:
        with self._lock:
            if row["id"] in self._rows:
                raise CaregiverAlreadyExistsError(row["id"])
            self._rows[row["id"]] = dict(row)  # type: ignore[assignment]
            return dict(row)  # type: ignore[return-value]

    def fetch(self, caregiver_id: str) -> CaregiverRow | None:
        with self._lock:
            row = self._rows.get(caregiver_id)
            return dict(row) if row is not None else None  # type: ignore[return-value]

    def fetch_all(self) -> list[CaregiverRow]:
        with self._lock:
            return [dict(row) for row in self._rows.values()]  # type: ignore[misc]

    def compare_and_swap(self, row: CaregiverRow, expected_version: str) -> CaregiverRow:
        caregiver_id = row["id"]
        with self._lock:
            current = self._rows.get(caregiver_id)
            if current is None:
                raise CaregiverNotFoundError(caregiver_id)
            if current["version"] != expected_version:
                raise ConcurrentModificationError(caregiver_id, expected_version)
            self._rows[caregiver_id] = dict(row)  # type: ignore[assignment]
            return dict(row)  # type: ignore[return-value]

    def delete(self, caregiver_id: str) -> bool:
        with self._lock:
            return self._rows.pop(caregiver_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


class SupabaseCaregiverRepository:
    """Caregiver rows stored in a Supabase (PostgREST) table.

    Expected columns: the ``CaregiverRow`` keys, with ``id`` as primary key,
    list columns defaulting to ``'[]'``, ``years_of_experience`` defaulting
    to ``'{}'`` and ``version`` a text column holding the current write token.
    """

    def __init__(self, client: Client, table: str = "caregivers") -> None:
        """Initialize the repository.

        Args:
            client: Supabase client used for every query.
            table: Name of the caregivers table.
        """
        self.client = client
        self.table = table

    def _execute(self, query: Any, action: str, caregiver_id: str | None = None) -> Any:
        try:
            return query.execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION and caregiver_id is not None:
                raise CaregiverAlreadyExistsError(caregiver_id) from e
            logger.error("Supabase %s failed on %s: %s", action, self.table, e.message)
            raise PersistenceUnavailableError(f"{action} failed: {e.message}") from e
        except httpx.HTTPError as e:
            logger.error("Supabase %s failed on %s: %s", action, self.table, e)
            raise PersistenceUnavailableError(f"{action} failed: {e}") from e

    def insert(self, row: CaregiverRow) -> CaregiverRow:
        response = self._execute(
            self.client.table(self.table).insert(dict(row)),
            "insert",
            caregiver_id=row["id"],
        )
        if not response.data:
            raise PersistenceUnavailableError("insert returned no row")
        return response.data[0]

    def fetch(self, caregiver_id: str) -> CaregiverRow | None:
        response = self._execute(
            self.client.table(self.table).select("*").eq("id", caregiver_id).limit(1),
            "select",
        )
        return response.data[0] if response.data else None

    def fetch_all(self) -> list[CaregiverRow]:
        response = self._execute(
            self.client.table(self.table).select("*").order("created_at").order("id"),
            "select",
        )
        return list(response.data or [])

    def compare_and_swap(self, row: CaregiverRow, expected_version: str) -> CaregiverRow:
        caregiver_id = row["id"]
        changes = {key: value for key, value in row.items() if key != "id"}
        response = self._execute(
            self.client.table(self.table)
            .update(changes)
            .eq("id", caregiver_id)
            .eq("version", expected_version),
            "update",
        )
        if response.data:
            return response.data[0]

        # No row matched: either it was deleted or another writer got there first.
        if self.fetch(caregiver_id) is None:
            raise CaregiverNotFoundError(caregiver_id)
        raise ConcurrentModificationError(caregiver_id, expected_version)

    def delete(self, caregiver_id: str) -> bool:
        response = self._execute(
            self.client.table(self.table).delete().eq("id", caregiver_id),
            "delete",
        )
        return bool(response.data)
