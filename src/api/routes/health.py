"""Health check endpoints for monitoring and deployment verification."""

import asyncio
import time

from fastapi import APIRouter, Response, status

from src.api.deps import CaregiverStoreDep
from src.schemas.common import CheckResult, HealthResponse, HealthStatus, ReadinessResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness check",
    description="Basic health check to verify the service is running. Used for liveness probes.",
)
async def health_check() -> HealthResponse:
    """Return basic health status.

    This endpoint should always return 200 if the service is running.
    It does not check external dependencies.
    """
    return HealthResponse(status=HealthStatus.HEALTHY)


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Caregiver storage reachable"},
        503: {"description": "Caregiver storage unreachable"},
    },
    summary="Readiness check",
    description="Check that caregiver storage answers queries. Used for readiness probes.",
)
async def readiness_check(response: Response, store: CaregiverStoreDep) -> ReadinessResponse:
    """Check readiness of the caregiver store's backend.

    Issues a lookup through the store's repository and returns 503 if it
    fails.

    Args:
        response: FastAPI response object for setting status code.
        store: The caregiver store.

    Returns:
        ReadinessResponse: Status of the storage check.
    """
    start_time = time.perf_counter()
    error: str | None = None
    try:
        await asyncio.to_thread(store.repository.fetch, "__readiness_probe__")
    except Exception as e:
        error = str(e)
    latency_ms = (time.perf_counter() - start_time) * 1000

    check = CheckResult(
        name="caregiver_storage",
        healthy=error is None,
        latency_ms=round(latency_ms, 2),
        error=error,
    )

    if not check.healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status=HealthStatus.UNHEALTHY, checks=[check])

    return ReadinessResponse(status=HealthStatus.HEALTHY, checks=[check])
