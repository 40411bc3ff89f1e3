"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from src.schemas.common import ErrorResponse
from src.services.exceptions import (
    CaregiverAlreadyExistsError,
    CaregiverNotFoundError,
    CaregiverStoreError,
    ConcurrentModificationError,
    MalformedPersistedStateError,
    PersistenceUnavailableError,
)

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors.

    Use this class to raise application-specific errors that should
    be returned to the client with a specific status code and message.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code to return.
            error_type: Error category/type for client handling.
            details: Optional additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, message: str = "Resource not found", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="not_found",
            details=details,
        )


class ConflictError(APIError):
    """Request conflicts with the current state of a resource."""

    def __init__(self, message: str = "Conflict", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_type="conflict",
            details=details,
        )


def api_error_from_store_error(error: CaregiverStoreError) -> APIError:
    """Translate a caregiver store failure into the matching API error."""
    if isinstance(error, CaregiverNotFoundError):
        return NotFoundError(f"Caregiver {error.caregiver_id} not found")
    if isinstance(error, CaregiverAlreadyExistsError):
        return ConflictError(f"Caregiver {error.caregiver_id} already exists")
    if isinstance(error, ConcurrentModificationError):
        return ConflictError(f"Caregiver {error.caregiver_id} is being updated concurrently; retry the request")
    if isinstance(error, MalformedPersistedStateError):
        return APIError(
            message=f"Stored data for caregiver {error.caregiver_id} is unreadable",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_type="malformed_persisted_state",
            details=[{"loc": [error.column], "msg": error.reason, "type": "malformed_column"}],
        )
    if isinstance(error, PersistenceUnavailableError):
        return APIError(
            message="Caregiver storage is unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_type="persistence_unavailable",
        )
    return APIError(message=str(error))


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional error details.
        request_id: Optional request ID for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    error_response = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Middleware to catch and format all exceptions.

    Ensures consistent error response format across the application.
    Store failures are mapped onto API errors; anything unexpected is logged
    with its stack trace and returned as a generic 500.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        response = await call_next(request)
        return response

    except CaregiverStoreError as e:
        api_error = api_error_from_store_error(e)
        log = logger.error if api_error.status_code >= 500 else logger.warning
        log(
            "Caregiver store error: %s - %s",
            api_error.error_type,
            e,
            extra={"request_id": request_id, "status_code": api_error.status_code},
        )
        return create_error_response(
            error_type=api_error.error_type,
            message=api_error.message,
            status_code=api_error.status_code,
            details=api_error.details,
            request_id=request_id,
        )

    except APIError as e:
        logger.warning(
            "API error: %s - %s",
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except HTTPException as e:
        logger.warning(
            "HTTP exception: %s - %s",
            e.status_code,
            e.detail,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        logger.error(
            "Unhandled exception: %s\n%s",
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
