"""Database model type definitions."""

from src.models.caregiver import CaregiverRow

__all__ = [
    "CaregiverRow",
]
