# account_service/core/error_handlers.py
"""
Centralized error translation.

Every exception escaping a route ends up here, either through a registered
FastAPI exception handler or through the catch-all middleware. Storage and
validation exceptions are mapped onto the AppError taxonomy in one place, then
rendered according to the deployment mode:

- development: status, code, message, plus the error type and stack trace
- production: status, code and message for operational errors only; anything
  else becomes a generic 500 and is logged server-side
"""
import logging
import re
import traceback
from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from tortoise.exceptions import IntegrityError

from account_service.config import Settings
from account_service.core.collection import InvalidIdentifier
from account_service.core.errors import AppError, DuplicateField, InputValidationError, NotFound

logger = logging.getLogger("uvicorn.error")

GENERIC_MESSAGE = "Something went wrong! Please try again later."

_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")
_POSTGRES_KEY = re.compile(r"Key \((\w+)\)=\((.*)\) already exists")
_POSTGRES_CONSTRAINT = re.compile(r'unique constraint "[a-z0-9]+_(\w+)_key"')
_UNIQUE_VIOLATION = re.compile(r"unique|duplicate", re.IGNORECASE)


def _validation_message(errors: Iterable[dict[str, Any]]) -> str:
    """Join every field error into one message."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid input data. " + "; ".join(parts)


def _duplicate_field(exc: IntegrityError) -> DuplicateField | None:
    """Work out which unique column an IntegrityError is about, if any."""
    texts = [str(exc)]
    cause = exc.__cause__ or (exc.args[0] if exc.args else None)
    if cause is not None:
        texts.append(str(cause))
        detail = getattr(cause, "detail", None)
        if detail:
            texts.append(str(detail))

    for text in texts:
        match = _POSTGRES_KEY.search(text)
        if match:
            return DuplicateField(match.group(1), match.group(2))
    for text in texts:
        match = _SQLITE_UNIQUE.search(text) or _POSTGRES_CONSTRAINT.search(text)
        if match:
            return DuplicateField(match.group(1))
    # A unique violation whose column could not be parsed is still a client error
    if any(_UNIQUE_VIOLATION.search(text) for text in texts):
        return DuplicateField(None)
    return None


def translate_exception(exc: Exception, request: Request) -> AppError | None:
    """
    Map an exception onto the operational error taxonomy.

    Returns:
        The matching AppError, or None for unanticipated failures
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, (RequestValidationError, SchemaValidationError)):
        return InputValidationError(_validation_message(exc.errors()))
    if isinstance(exc, IntegrityError):
        return _duplicate_field(exc)
    if isinstance(exc, InvalidIdentifier):
        return NotFound(f"Invalid {exc.field}: {exc.value}")
    if isinstance(exc, StarletteHTTPException):
        if exc.status_code == 404:
            return NotFound(f"Can't find {request.url.path} on this server!")
        return AppError(str(exc.detail), status_code=exc.status_code, code="HTTP_ERROR")
    return None


def build_error_response(exc: Exception, request: Request, settings: Settings) -> JSONResponse:
    error = translate_exception(exc, request)
    if error is None or error.status_code >= 500:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)

    headers = getattr(exc, "headers", None)

    if settings.is_production:
        if error is not None:
            return JSONResponse(error.to_dict(), status_code=error.status_code, headers=headers)
        return JSONResponse(
            {"status": "error", "code": "INTERNAL_ERROR", "message": GENERIC_MESSAGE},
            status_code=500,
        )

    if error is not None:
        body = error.to_dict()
        status_code = error.status_code
    else:
        body = {"status": "error", "code": "INTERNAL_ERROR", "message": str(exc) or GENERIC_MESSAGE}
        status_code = 500
    body["error"] = {"type": type(exc).__name__, "detail": repr(exc)}
    body["stack"] = traceback.format_exception(exc)
    return JSONResponse(body, status_code=status_code, headers=headers)


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Route every failure into build_error_response.

    Known exception types are registered as FastAPI handlers; the middleware
    catches whatever else escapes the app.
    """

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return build_error_response(exc, request, settings)

    for exc_class in (
        AppError,
        RequestValidationError,
        SchemaValidationError,
        IntegrityError,
        InvalidIdentifier,
        StarletteHTTPException,
    ):
        app.add_exception_handler(exc_class, handle)

    @app.middleware("http")
    async def funnel_unexpected_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return build_error_response(exc, request, settings)
