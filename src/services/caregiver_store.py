"""Caregiver profile store.

The store is the only writer of caregiver rows. Each ``update`` is one
read-merge-write cycle: read the current row, merge the partial update with
the field merge policy, then compare-and-swap the result against the version
that was read. Updates to the same id are queued behind a per-id lock inside
the process; a write that still loses a race (another process, or a call
abandoned mid-flight) is retried from a fresh read. Updates to different ids
never wait on each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import Settings, get_settings
from src.schemas.caregiver import CaregiverProfile, CaregiverUpdate
from src.services.caregiver_codec import decode_row, encode_row, new_version, row_version
from src.services.caregiver_repository import (
    CaregiverRepository,
    InMemoryCaregiverRepository,
    SupabaseCaregiverRepository,
)
from src.services.exceptions import (
    CaregiverAlreadyExistsError,
    CaregiverNotFoundError,
    ConcurrentModificationError,
)
from src.services.merge_policy import apply_update, changed_fields

logger = logging.getLogger(__name__)

MIN_WAIT_SECONDS = 0.01
MAX_WAIT_SECONDS = 0.25
TIMESTAMP_STEP = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    holders: int = 0


class KeyedLock:
    """Lazily created asyncio locks, one per key.

    An entry lives only while some coroutine holds or waits for it, so the
    table does not grow with the number of ids ever seen.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _LockEntry()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


class CaregiverStore:
    """Create, read, merge-update and delete caregiver profiles."""

    def __init__(
        self,
        repository: CaregiverRepository,
        max_update_attempts: int = 5,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            repository: Row storage backend.
            max_update_attempts: Read-merge-write attempts before a lost
                compare-and-swap race is reported to the caller.
            clock: Source of aware UTC timestamps.
        """
        self.repository = repository
        self.max_update_attempts = max_update_attempts
        self._clock = clock
        self._locks = KeyedLock()

    async def create(self, caregiver_id: str | None = None) -> CaregiverProfile:
        """Create an empty profile.

        Args:
            caregiver_id: Optional explicit id; a UUID is generated otherwise.

        Returns:
            CaregiverProfile: The new profile with every field at its default.

        Raises:
            CaregiverAlreadyExistsError: If ``caregiver_id`` is already in use.
        """
        caregiver_id = caregiver_id or str(uuid4())
        now = self._clock()
        profile = CaregiverProfile(id=caregiver_id, created_at=now, updated_at=now)

        stored = await asyncio.to_thread(self.repository.insert, encode_row(profile, version=new_version()))
        logger.info("Created caregiver %s", caregiver_id)
        return decode_row(stored)

    async def get_by_id(self, caregiver_id: str) -> CaregiverProfile | None:
        """Fetch a profile.

        Returns:
            CaregiverProfile | None: The profile or None if not found.

        Raises:
            MalformedPersistedStateError: If the stored row cannot be decoded.
        """
        row = await asyncio.to_thread(self.repository.fetch, caregiver_id)
        if row is None:
            logger.debug("Caregiver %s not found", caregiver_id)
            return None
        return decode_row(row)

    async def get_or_create(self, caregiver_id: str) -> CaregiverProfile:
        """Fetch a profile, creating it first if it does not exist."""
        profile = await self.get_by_id(caregiver_id)
        if profile is not None:
            return profile
        try:
            return await self.create(caregiver_id)
        except CaregiverAlreadyExistsError:
            # Lost a create race; the winner's record is the one to use.
            profile = await self.get_by_id(caregiver_id)
            if profile is None:
                raise
            return profile

    async def update(
        self,
        caregiver_id: str,
        update: CaregiverUpdate | Mapping[str, Any],
    ) -> CaregiverProfile:
        """Merge a partial update into a profile.

        Args:
            caregiver_id: Profile to update.
            update: Fields to merge. Plain mappings are validated into a
                ``CaregiverUpdate`` first, so keys left out stay untouched.

        Returns:
            CaregiverProfile: The full profile after the merge.

        Raises:
            CaregiverNotFoundError: If no profile exists for ``caregiver_id``.
            ConcurrentModificationError: If every attempt lost a write race.
            MalformedPersistedStateError: If the stored row cannot be decoded.
            PersistenceUnavailableError: If the backend fails.
        """
        if not isinstance(update, CaregiverUpdate):
            update = CaregiverUpdate.model_validate(update)

        async with self._locks.hold(caregiver_id):
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(ConcurrentModificationError),
                stop=stop_after_attempt(self.max_update_attempts),
                wait=wait_exponential(multiplier=MIN_WAIT_SECONDS, min=MIN_WAIT_SECONDS, max=MAX_WAIT_SECONDS),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            "Retrying update of caregiver %s (attempt %d)",
                            caregiver_id,
                            attempt.retry_state.attempt_number,
                        )
                    return await self._merge_once(caregiver_id, update)
        raise AssertionError("unreachable")  # pragma: no cover

    async def _merge_once(self, caregiver_id: str, update: CaregiverUpdate) -> CaregiverProfile:
        row = await asyncio.to_thread(self.repository.fetch, caregiver_id)
        if row is None:
            raise CaregiverNotFoundError(caregiver_id)

        current = decode_row(row)
        merged = apply_update(current, update, self._next_timestamp(current.updated_at))
        expected = row_version(row)
        version = new_version()

        stored = await asyncio.to_thread(
            self.repository.compare_and_swap,
            encode_row(merged, version=version),
            expected,
        )
        logger.info(
            "Updated caregiver %s (version %s): %s",
            caregiver_id,
            version,
            changed_fields(current, merged) or "no field changes",
        )
        return decode_row(stored)

    def _next_timestamp(self, previous: datetime) -> datetime:
        now = self._clock()
        if now <= previous:
            return previous + TIMESTAMP_STEP
        return now

    async def delete(self, caregiver_id: str) -> bool:
        """Delete a profile.

        Returns:
            bool: True if a profile was removed, False if none existed.
        """
        deleted = await asyncio.to_thread(self.repository.delete, caregiver_id)
        if deleted:
            logger.info("Deleted caregiver %s", caregiver_id)
        return deleted

    async def list_all(self) -> list[CaregiverProfile]:
        """Return every profile.

        Raises:
            MalformedPersistedStateError: If any stored row cannot be decoded.
        """
        rows = await asyncio.to_thread(self.repository.fetch_all)
        return [decode_row(row) for row in rows]


def build_caregiver_store(settings: Settings) -> CaregiverStore:
    """Create a store backed by the repository the settings select."""
    repository: CaregiverRepository
    if settings.caregiver_store_backend == "supabase":
        from src.core.supabase import get_supabase_client

        repository = SupabaseCaregiverRepository(get_supabase_client(), settings.caregivers_table)
    else:
        repository = InMemoryCaregiverRepository()
    return CaregiverStore(repository, max_update_attempts=settings.caregiver_update_max_attempts)


# Process-wide store, owned by the application lifespan
_caregiver_store: CaregiverStore | None = None


def get_caregiver_store() -> CaregiverStore:
    """Return the initialized caregiver store.

    Raises:
        RuntimeError: If ``init_caregiver_store`` has not been called.
    """
    if _caregiver_store is None:
        raise RuntimeError("Caregiver store is not initialized")
    return _caregiver_store


async def init_caregiver_store(store: CaregiverStore | None = None) -> CaregiverStore:
    """Initialize the caregiver store. Call at app startup."""
    global _caregiver_store
    if _caregiver_store is None:
        settings = get_settings()
        _caregiver_store = store or build_caregiver_store(settings)
        logger.info(
            "Caregiver store initialized (%s backend)",
            type(_caregiver_store.repository).__name__,
        )
    return _caregiver_store


async def shutdown_caregiver_store() -> None:
    """Release the caregiver store. Call at app shutdown."""
    global _caregiver_store
    if _caregiver_store is not None:
        _caregiver_store = None
        logger.info("Caregiver store shut down")
