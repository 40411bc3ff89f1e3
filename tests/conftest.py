"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("CAREGIVER_STORE_BACKEND", "memory")

from src.services.caregiver_repository import InMemoryCaregiverRepository  # noqa: E402
from src.services.caregiver_store import CaregiverStore  # noqa: E402

FULL_UPDATE: dict[str, Any] = {
    "location": "Austin, TX",
    "profile_picture_url": "https://example.com/photo.png",
    "qualifications": ["CPR"],
    "languages": ["English"],
    "preferred_age_groups": ["toddlers"],
    "dietary_preferences": ["vegetarian"],
    "responsibilities": ["meal prep"],
    "benefits_required": ["paid time off"],
    "care_types": ["full-time"],
    "start_date": "next Monday",
    "general_availability": "weekdays",
    "weekly_hours": "40",
    "commute_distance": "10 miles",
    "commute_type": "car",
    "will_drive_children": "yes",
    "accessibility_needs": "none",
    "years_of_experience": {"toddler": 3},
    "hourly_rate": "$25",
    "additional_child_rate": "$5",
    "payroll_required": "yes",
}


class SteppingClock:
    """Deterministic clock advancing by a fixed step on every call."""

    def __init__(
        self,
        start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc),
        step: timedelta = timedelta(seconds=1),
    ) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def clock() -> SteppingClock:
    """Provide a clock that ticks one second per reading."""
    return SteppingClock()


@pytest.fixture
def full_update() -> dict[str, Any]:
    """Provide an update that fills every completeness facet."""
    return dict(FULL_UPDATE)


@pytest.fixture
def repository() -> InMemoryCaregiverRepository:
    """Provide an empty in-memory caregiver repository."""
    return InMemoryCaregiverRepository()


@pytest.fixture
def store(repository: InMemoryCaregiverRepository) -> CaregiverStore:
    """Provide a caregiver store over the in-memory repository."""
    return CaregiverStore(repository)


@pytest.fixture
def mock_supabase_client() -> MagicMock:
    """Provide a mocked Supabase client.

    Returns:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()
    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.eq.return_value.limit.return_value.execute.return_value = (
        mock_response
    )
    return mock_client


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client with a fresh in-memory caregiver store.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
