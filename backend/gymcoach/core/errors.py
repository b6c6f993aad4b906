"""Structured error responses: consistent JSON format for all errors.

Services raise the typed domain errors below; the handlers registered here
render them (and every other failure) in one envelope.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("gymcoach.errors")


class DomainError(Exception):
    """Base for failures a service reports to its caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, detail: str, *, code: str | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code


class ValidationFailed(DomainError, ValueError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class PersistenceError(DomainError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "persistence_error"


def _envelope(request: Request, status_code: int, detail, **extra) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        **extra,
        "request_id": request_id,
    }
    return JSONResponse(status_code=status_code, content=content)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if exc.status_code >= 500:
            logger.error("path=%s code=%s detail=%s", request.url.path, exc.code, exc.detail)
        else:
            logger.info("path=%s code=%s detail=%s", request.url.path, exc.code, exc.detail)
        return _envelope(request, exc.status_code, exc.detail, code=exc.code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(request, exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _envelope(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            code="validation_error",
            errors=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return _envelope(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            code="internal_error",
        )
