"""
Custom exception hierarchy for Skywatch.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

The scoring / dedup core absorbs recoverable conditions itself (defaults,
profile fallback, fail-open storage). Only configuration mistakes and
malformed API requests surface as exceptions.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class SkywatchException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ProfileConfigError(SkywatchException):
    """A condition profile failed validation when the catalogue was loaded."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PROFILE_CONFIG_ERROR"

    def __init__(self, profile: str, problem: str):
        super().__init__(
            message=f"Profile '{profile}' is misconfigured: {problem}",
            details={"profile": profile, "problem": problem},
        )


class ForecastTooLargeError(SkywatchException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "FORECAST_TOO_LARGE"

    def __init__(self, max_hours: int, received: int):
        super().__init__(
            message=f"Forecast exceeds maximum of {max_hours} hourly samples. Received {received}.",
            details={"max_hours": max_hours, "received": received},
        )


class UnorderedForecastError(SkywatchException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "FORECAST_NOT_ORDERED"

    def __init__(self, index: int):
        super().__init__(
            message=f"Sample times must be strictly increasing (problem at index {index}).",
            details={"index": index},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def skywatch_exception_handler(request: Request, exc: SkywatchException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
