"""Exceptions raised by the caregiver profile store."""


class CaregiverStoreError(Exception):
    """Base class for caregiver store failures."""


class CaregiverNotFoundError(CaregiverStoreError):
    """An update targeted a caregiver id with no live record."""

    def __init__(self, caregiver_id: str) -> None:
        self.caregiver_id = caregiver_id
        super().__init__(f"Caregiver {caregiver_id!r} not found")


class CaregiverAlreadyExistsError(CaregiverStoreError):
    """A create used an explicit id that belongs to a live record."""

    def __init__(self, caregiver_id: str) -> None:
        self.caregiver_id = caregiver_id
        super().__init__(f"Caregiver {caregiver_id!r} already exists")


class MalformedPersistedStateError(CaregiverStoreError):
    """A persisted row could not be decoded into a caregiver profile.

    The record is left as-is in storage; callers see this error instead of an
    empty collection so that corrupted data is never mistaken for missing data.
    """

    def __init__(self, caregiver_id: str, column: str, reason: str) -> None:
        self.caregiver_id = caregiver_id
        self.column = column
        self.reason = reason
        super().__init__(
            f"Caregiver {caregiver_id!r} has unreadable column {column!r}: {reason}"
        )


class PersistenceUnavailableError(CaregiverStoreError):
    """The storage backend failed to complete an operation."""


class ConcurrentModificationError(CaregiverStoreError):
    """A compare-and-swap write lost to a concurrent writer.

    Raised by repositories and consumed by the store's retry loop; it only
    reaches callers once every attempt has lost.
    """

    def __init__(self, caregiver_id: str, expected_version: str) -> None:
        self.caregiver_id = caregiver_id
        self.expected_version = expected_version
        super().__init__(
            f"Caregiver {caregiver_id!r} changed since version {expected_version!r}"
        )
