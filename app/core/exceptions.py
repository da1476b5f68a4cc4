"""
Error handling

Services raise `AppException` subclasses; the handlers registered by
`register_exception_handlers` turn them, framework errors and unexpected
crashes into the error envelope from `app.core.response`.
"""
from typing import Any, Dict, List, Optional
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from loguru import logger

from .response import error_response


class AppException(Exception):
    """Business error with an HTTP status and optional payload"""

    code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None, data: Optional[dict] = None):
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.data = data
        super().__init__(self.message)


class BadRequestException(AppException):
    """State or business rule violation (closed job, running test, exhausted quota)"""
    code = 400
    default_message = "Invalid request"


class ForbiddenException(AppException):
    """Resource owned by another employer or user"""
    code = 403
    default_message = "Access denied"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)


class NotFoundException(AppException):
    code = 404
    default_message = "Resource not found"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)


class ConflictException(AppException):
    """Unique field already taken"""
    code = 409
    default_message = "Resource already exists"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message)


def _json_error(code: int, message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=code, content=error_response(message=message, code=code, data=data))


def _describe_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors to field/message/type entries"""
    described = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        described.append({
            "field": ".".join(location) or None,
            "message": error.get("msg", ""),
            "type": error.get("type"),
        })
    return described


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning("{} {} -> {}: {}", request.method, request.url.path, exc.code, exc.message)
    return _json_error(exc.code, exc.message, exc.data)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("{} {} -> {}: {}", request.method, request.url.path, exc.status_code, exc.detail)
    return _json_error(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = _describe_errors(exc.errors())
    logger.warning(
        "{} {} -> 422: {}",
        request.method,
        request.url.path,
        "; ".join(f"{e['field']}: {e['message']}" for e in errors),
    )
    return _json_error(422, "Request validation failed", {"errors": errors})


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # a unique index caught a race the service-level duplicate check missed
    logger.warning("{} {} -> 409: {}", request.method, request.url.path, exc.orig)
    return _json_error(409, "Resource already exists")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on {} {}", request.method, request.url.path)
    return _json_error(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
