# app/core/errors.py
"""
Error taxonomy and JSON error rendering.

Every error leaves the API as ``{"error": str, "details"?: any}``:

  - validation errors   -> 400 with per-field messages
  - not found           -> 404
  - conflicts           -> 409 (unique / foreign-key violations, still-referenced rows)
  - database / unknown  -> 500

Services raise ``HTTPException``; the handlers below only shape the body.
"""

import logging
from typing import Any, NoReturn

import httpx
from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from storage3.utils import StorageException

logger = logging.getLogger(__name__)

# Postgres SQLSTATE codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

# Failures that best-effort steps record instead of propagating
DB_ERRORS: tuple[type[Exception], ...] = (APIError, httpx.HTTPError)

# Object storage failures (uploads, removals)
STORAGE_ERRORS: tuple[type[Exception], ...] = (StorageException, httpx.HTTPError)


def describe_db_error(exc: Exception) -> str:
    """Short human-readable message for an APIError or transport error."""
    if isinstance(exc, APIError):
        return exc.message or exc.details or "Unknown database error"
    return str(exc) or exc.__class__.__name__


def is_unique_violation(exc: Exception, column: str | None = None) -> bool:
    """
    True if `exc` is a unique-constraint violation, optionally on `column`.

    PostgREST reports the offending key in `details`, e.g.
    ``Key (slug)=(red-hat) already exists.``
    """
    if not isinstance(exc, APIError) or exc.code != UNIQUE_VIOLATION:
        return False
    if column is None:
        return True
    haystack = f"{exc.details or ''} {exc.message or ''}"
    return f"({column})" in haystack or column in haystack


def raise_for_db_error(exc: Exception, action: str, entity: str) -> NoReturn:
    """
    Map a database failure to an HTTPException.

    Args:
        exc: the APIError / transport error raised by the client.
        action: verb used in the message ("create", "update", "delete").
        entity: entity label ("product", "category", ...).
    """
    if isinstance(exc, APIError) and exc.code == UNIQUE_VIOLATION:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{entity.capitalize()} {action} failed: "
            f"{exc.details or 'Duplicate value exists'}",
        ) from exc
    if isinstance(exc, APIError) and exc.code == FOREIGN_KEY_VIOLATION:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} {entity}: It is referenced by other records. "
            f"Details: {exc.details or exc.message}",
        ) from exc
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action} {entity}: {describe_db_error(exc)}",
    ) from exc


# ---------------------------------------------------------------------------
# Validation error flattening
# ---------------------------------------------------------------------------


def flatten_errors(errors: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Collapse pydantic error dicts into ``{"formErrors", "fieldErrors"}``.

    Field keys are dotted paths relative to the request body,
    e.g. ``variants.0.attributes.1.value``.
    """
    form_errors: list[str] = []
    field_errors: dict[str, list[str]] = {}

    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        message = err.get("msg", "Invalid value")
        if not loc:
            form_errors.append(message)
            continue
        key = ".".join(str(part) for part in loc)
        field_errors.setdefault(key, []).append(message)

    return {"formErrors": form_errors, "fieldErrors": field_errors}


# ---------------------------------------------------------------------------
# Exception handlers (registered in app.main)
# ---------------------------------------------------------------------------


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid JSON body"},
        )

    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request data", "details": flatten_errors(errors)},
    )


async def database_exception_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database request failed", "details": describe_db_error(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "An unexpected error occurred", "details": str(exc)},
    )
