"""Caregiver profile API routes.

Thin HTTP consumer of the caregiver store. Every successful response carries
the full profile snapshot together with its derived completion read-out, so
clients never need to diff or recompute.
"""

from fastapi import APIRouter, status

from src.api.deps import CaregiverStoreDep
from src.api.middleware.error_handler import NotFoundError
from src.schemas.caregiver import (
    CaregiverCreate,
    CaregiverProfile,
    CaregiverResponse,
    CaregiverUpdate,
    CompletenessReport,
)
from src.services import completeness_service

router = APIRouter(prefix="/caregivers", tags=["caregivers"])


def to_response(profile: CaregiverProfile) -> CaregiverResponse:
    """Attach the completion percentage and label to a profile snapshot."""
    percentage = completeness_service.completion_percentage(profile)
    return CaregiverResponse(
        **profile.model_dump(),
        completion_percentage=percentage,
        completion_status=completeness_service.completion_status(percentage),
    )


@router.post(
    "",
    response_model=CaregiverResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create caregiver profile",
    responses={409: {"description": "Caregiver id already in use"}},
)
async def create_caregiver(
    store: CaregiverStoreDep,
    data: CaregiverCreate | None = None,
) -> CaregiverResponse:
    """Create an empty caregiver profile, optionally with a chosen id."""
    profile = await store.create(data.id if data else None)
    return to_response(profile)


@router.get(
    "",
    response_model=list[CaregiverResponse],
    summary="List caregiver profiles",
)
async def list_caregivers(store: CaregiverStoreDep) -> list[CaregiverResponse]:
    """Return every caregiver profile."""
    return [to_response(profile) for profile in await store.list_all()]


@router.get(
    "/{caregiver_id}",
    response_model=CaregiverResponse,
    summary="Get caregiver profile",
    responses={404: {"description": "Caregiver not found"}},
)
async def get_caregiver(caregiver_id: str, store: CaregiverStoreDep) -> CaregiverResponse:
    """Fetch a caregiver profile by id.

    Raises:
        NotFoundError: 404 if the caregiver does not exist.
    """
    profile = await store.get_by_id(caregiver_id)
    if profile is None:
        raise NotFoundError(f"Caregiver {caregiver_id} not found")
    return to_response(profile)


@router.patch(
    "/{caregiver_id}",
    response_model=CaregiverResponse,
    summary="Merge a partial update into a caregiver profile",
    description=(
        "Only the fields present in the body are applied. Scalars are overwritten "
        "(null clears them), list fields are unioned and yearsOfExperience is "
        "shallow-merged."
    ),
    responses={404: {"description": "Caregiver not found"}},
)
async def update_caregiver(
    caregiver_id: str,
    data: CaregiverUpdate,
    store: CaregiverStoreDep,
) -> CaregiverResponse:
    """Apply a partial update and return the merged profile."""
    profile = await store.update(caregiver_id, data)
    return to_response(profile)


@router.delete(
    "/{caregiver_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete caregiver profile",
    responses={
        204: {"description": "Caregiver deleted"},
        404: {"description": "Caregiver not found"},
    },
)
async def delete_caregiver(caregiver_id: str, store: CaregiverStoreDep) -> None:
    """Delete a caregiver profile."""
    if not await store.delete(caregiver_id):
        raise NotFoundError(f"Caregiver {caregiver_id} not found")


@router.get(
    "/{caregiver_id}/completeness",
    response_model=CompletenessReport,
    summary="Get caregiver profile completeness",
    responses={404: {"description": "Caregiver not found"}},
)
async def get_caregiver_completeness(caregiver_id: str, store: CaregiverStoreDep) -> CompletenessReport:
    """Score a caregiver profile and report what is still missing."""
    profile = await store.get_by_id(caregiver_id)
    if profile is None:
        raise NotFoundError(f"Caregiver {caregiver_id} not found")
    return completeness_service.score(profile)
