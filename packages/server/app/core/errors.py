"""
Domain error taxonomy for the submission lifecycle.

Services raise these; a single exception handler turns them into
``{"error": message, "code": code, **extra}`` JSON responses so clients can
render a precise message (measured distance, allowed radius, current state).
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = structlog.get_logger()


class FieldCheckError(Exception):
    """Base class for all lifecycle errors."""

    status_code: int = 400
    code: str = "ERROR"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.extra}


class ValidationError(FieldCheckError):
    status_code = 400
    code = "VALIDATION_FAILED"


class NotFound(FieldCheckError):
    status_code = 404
    code = "NOT_FOUND"


class Forbidden(FieldCheckError):
    status_code = 403
    code = "FORBIDDEN"


class GeofenceViolation(FieldCheckError):
    status_code = 400
    code = "GEOFENCE_VIOLATION"

    def __init__(self, distance: float, allowed_radius: float) -> None:
        super().__init__(
            "Check-in location outside geofence",
            distance=distance,
            allowed_radius=allowed_radius,
        )
        self.distance = distance
        self.allowed_radius = allowed_radius


class InvalidState(FieldCheckError):
    status_code = 409
    code = "INVALID_STATE"


class ConflictError(FieldCheckError):
    status_code = 409
    code = "CONFLICT"


# ---------------------------------------------------------------------------
# FastAPI integration
# ---------------------------------------------------------------------------


async def _field_check_error_handler(request: Request, exc: FieldCheckError) -> JSONResponse:
    log.info(
        "request.rejected",
        code=exc.code,
        status=exc.status_code,
        error=exc.message,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "code": ValidationError.code, "details": details},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FieldCheckError, _field_check_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
