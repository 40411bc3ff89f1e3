"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends

from src.services.caregiver_store import CaregiverStore, get_caregiver_store


def caregiver_store() -> CaregiverStore:
    """Provide the process-wide caregiver store to route handlers."""
    return get_caregiver_store()


# Type alias for dependency injection
CaregiverStoreDep = Annotated[CaregiverStore, Depends(caregiver_store)]
