"""Exception handlers mapping failures onto the JSON error envelope."""

from __future__ import annotations

import logging
import traceback
from typing import Any

import yaml
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import RateLimitedError, TaskTrackerError
from .helpers import _error

logger = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc) or "body"
        message = str(err.get("msg") or "Invalid value")
        # pydantic prefixes messages raised from validators.
        message = message.removeprefix("Value error, ")
        errors.setdefault(field, []).append(message)
    return errors


def install_error_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Register handlers for domain, validation, storage and unexpected errors."""

    @app.exception_handler(TaskTrackerError)
    async def _domain_error(request: Request, exc: TaskTrackerError) -> JSONResponse:
        extra: dict[str, Any] = {}
        headers: dict[str, str] = {}
        if isinstance(exc, RateLimitedError):
            extra["retryAfter"] = exc.retry_after
            headers["Retry-After"] = str(exc.retry_after)
        return JSONResponse(status_code=exc.status_code, content=_error(exc.message, **extra), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_error("Validation failed", errors=_field_errors(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content=_error(f"Route {request.url.path} not found"))
        return JSONResponse(status_code=exc.status_code, content=_error(str(exc.detail)), headers=exc.headers)

    @app.exception_handler(yaml.YAMLError)
    async def _storage_error(request: Request, exc: yaml.YAMLError) -> JSONResponse:
        logger.exception("State file could not be parsed")
        return JSONResponse(status_code=500, content=_error("Internal server error"))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        extra: dict[str, Any] = {}
        if debug:
            extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(status_code=500, content=_error("Internal server error", **extra))
