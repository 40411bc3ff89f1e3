"""Health and error response bodies shared by every router."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe body. Says nothing about caregiver storage."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = Field(default="0.1.0", description="Caregiver Profile API version")


class CheckResult(BaseModel):
    """Outcome of probing one backing service."""

    name: str = Field(description="Probed service, e.g. caregiver_storage")
    healthy: bool
    latency_ms: float | None = Field(default=None, description="Probe round trip in milliseconds")
    error: str | None = Field(default=None, description="Failure message when the probe failed")


class ReadinessResponse(BaseModel):
    """Readiness probe body listing each backing-service check."""

    status: HealthStatus
    timestamp: datetime = Field(default_factory=_utcnow)
    checks: list[CheckResult] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """One entry of an error's ``details`` list.

    For unreadable stored caregivers ``loc`` names the offending column.
    """

    loc: list[str] | None = None
    msg: str
    type: str = "error"


class ErrorResponse(BaseModel):
    """JSON body of every error returned by the error handler middleware."""

    error: str = Field(description="Machine-readable category such as not_found or conflict")
    message: str
    details: list[ErrorDetail] | None = None
    request_id: str | None = Field(default=None, description="Echo of the X-Request-ID header")
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build the body for an error raised while handling a request.

        Detail dicts missing a ``msg`` fall back to their own repr.
        """
        return cls(
            error=error_type,
            message=message,
            details=[ErrorDetail(**{"msg": str(d), **d}) for d in details] if details else None,
            request_id=request_id,
        )
