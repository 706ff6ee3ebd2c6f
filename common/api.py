"""
FastAPI glue shared by both services: maps the error taxonomy onto HTTP
status codes and the {data, meta} envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from common.envelope import error_envelope
from common.errors import ServiceError, ValidationError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(error_envelope(message), status_code=status_code)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def _service_error(request: Request, exc: ServiceError) -> JSONResponse:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return error_response(exc.status_code, exc.public_message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, ValidationError.public_message)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("%s %s failed unexpectedly", request.method, request.url.path, exc_info=exc)
        return error_response(500, "Internal server error")


def positive_int(raw: str | None, default: int, name: str) -> int:
    """Parse a page/limit query parameter; anything but an integer >= 1 is a 400."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a positive integer") from None
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value
