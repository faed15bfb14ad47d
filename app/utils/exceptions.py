"""
Error taxonomy and the FastAPI handlers that render it

Every error leaves the API as the same envelope:
    {"success": false, "message": "...", "error": "..."}
"""
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from pydantic import ValidationError
import logging

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for errors raised by the service layer"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class InvalidArgument(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationFailed(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_envelope(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": error}
    )


def _validation_message(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(item) for item in err.get("loc", ()) if item != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.error})")
    return error_envelope(exc.status_code, exc.message, exc.error)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_envelope(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_envelope(status.HTTP_400_BAD_REQUEST, _validation_message(exc.errors()))


async def pydantic_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return error_envelope(status.HTTP_400_BAD_REQUEST, _validation_message(exc.errors()))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return error_envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        str(exc)
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, pydantic_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
