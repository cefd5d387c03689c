"""Mapping of exceptions to JSON error responses."""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.generation.errors import (
    AIGenerationError,
    ForbiddenError,
    GenerationLimitError,
    IncompleteProfileError,
    NotFoundError,
    PlanGenerationError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."

_NOT_FOUND_CODES = {"note": "NOTE_NOT_FOUND", "plan": "PLAN_NOT_FOUND"}


def _validation_details(exc: RequestValidationError) -> dict[str, str]:
    details: dict[str, str] = {}
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix FastAPI adds to locations
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
            loc = loc[1:]
        details[".".join(loc) or "request"] = error.get("msg", "Invalid value")
    return details


def map_error_to_response(exc: Exception) -> tuple[int, dict[str, Any]]:
    """Translate an exception into an HTTP status and JSON body.

    Args:
        exc: Exception raised while handling a request.

    Returns:
        Tuple of (status code, response body).
    """
    if isinstance(exc, RequestValidationError):
        return 400, {
            "error": "Validation failed",
            "code": "VALIDATION_ERROR",
            "details": _validation_details(exc),
        }

    if isinstance(exc, ValidationError):
        return 400, {
            "error": exc.message,
            "code": "VALIDATION_ERROR",
            "details": {exc.field: exc.reason},
        }

    if isinstance(exc, NotFoundError):
        return 404, {
            "error": exc.message,
            "code": _NOT_FOUND_CODES.get(exc.resource_type, "NOT_FOUND"),
            "details": {
                "resourceType": exc.resource_type,
                "resourceId": exc.resource_id,
            },
        }

    if isinstance(exc, ForbiddenError):
        return 403, {"error": exc.message, "code": "FORBIDDEN"}

    if isinstance(exc, UnauthorizedError):
        return 401, {"error": exc.message, "code": "UNAUTHORIZED"}

    if isinstance(exc, IncompleteProfileError):
        return 400, {
            "error": exc.message,
            "code": "INCOMPLETE_PROFILE",
            "required_fields": exc.missing_fields,
        }

    if isinstance(exc, GenerationLimitError):
        reset_at = exc.reset_at or datetime.now(UTC)
        return 429, {
            "error": exc.message,
            "code": "GENERATION_LIMIT_EXCEEDED",
            "limit": exc.limit,
            "reset_at": reset_at.isoformat(),
        }

    if isinstance(exc, AIGenerationError):
        return 500, {
            "error": exc.message,
            "code": "AI_GENERATION_FAILED",
            "message": exc.message,
        }

    if isinstance(exc, PlanGenerationError):
        return exc.status_code, {"error": exc.message, "code": "GENERATION_ERROR"}

    return 500, {
        "error": "Internal server error",
        "code": "INTERNAL_ERROR",
        "details": {"message": GENERIC_ERROR_MESSAGE},
    }


async def _handle_business_error(request: Request, exc: Exception) -> JSONResponse:
    status_code, body = map_error_to_response(exc)
    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}",
            exc_info=exc.__cause__ or exc,
        )
    return JSONResponse(status_code=status_code, content=body)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}", exc_info=exc
    )
    status_code, body = map_error_to_response(exc)
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an application."""
    app.add_exception_handler(RequestValidationError, _handle_business_error)
    app.add_exception_handler(PlanGenerationError, _handle_business_error)
    app.add_exception_handler(Exception, _handle_unexpected_error)
