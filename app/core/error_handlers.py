"""
Centralized exception handlers for the FastAPI app.

Register with register_error_handlers(app). Every error response has the
same shape: {"success": false, "code": <ErrorCode>, "message": <str>}.
In development (APP_ENV=development) the error repr and traceback are added.
"""
from __future__ import annotations
import traceback
from http import HTTPStatus
from typing import Any, Optional
import jwt
import psycopg2
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from core.config import settings
from core.errors import AppError, ErrorCode
from core.logger import get_logger

logger = get_logger("errors")

# SQLSTATE -> (status, code, message)
PG_ERROR_MAP: dict[str, tuple[int, ErrorCode, str]] = {
    "23505": (409, ErrorCode.CONFLICT, "Duplicate entry. This record already exists."),
    "23503": (400, ErrorCode.BAD_REQUEST, "Referenced record does not exist."),
    "23502": (400, ErrorCode.VALIDATION_ERROR, "Required field is missing."),
    "22P02": (400, ErrorCode.VALIDATION_ERROR, "Invalid data format."),
}

_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMITED,
}


def _error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    exc: Optional[BaseException] = None,
    meta: Optional[dict] = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "code": code.value, "message": message}
    if meta:
        content["meta"] = meta
    if exc is not None and settings.is_development:
        content["error"] = repr(exc)
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Application error on %s", request.url.path, exc_info=exc)
    return _error_response(exc.status_code, exc.code, exc.message, exc, exc.meta)


def _pg_error_handler(request: Request, exc: psycopg2.Error) -> JSONResponse:
    mapped = PG_ERROR_MAP.get(getattr(exc, "pgcode", None) or "")
    if mapped is None:
        logger.error("Database error on %s", request.url.path, exc_info=exc)
        return _error_response(500, ErrorCode.INTERNAL_ERROR, "Internal server error", exc)
    status_code, code, message = mapped
    logger.warning("Database constraint error on %s", request.url.path, extra={"meta": {"pgcode": exc.pgcode}})
    return _error_response(status_code, code, message, exc)


def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = ", ".join(e.get("msg", "Invalid value") for e in exc.errors()) or "Invalid request"
    return _error_response(400, ErrorCode.VALIDATION_ERROR, message, exc)


def _expired_token_handler(request: Request, exc: jwt.ExpiredSignatureError) -> JSONResponse:
    return _error_response(401, ErrorCode.UNAUTHORIZED, "Token expired", exc)


def _invalid_token_handler(request: Request, exc: jwt.InvalidTokenError) -> JSONResponse:
    return _error_response(401, ErrorCode.UNAUTHORIZED, "Invalid token", exc)


def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == HTTPStatus.NOT_FOUND.phrase:
        return not_found(request)

    code = _STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return _error_response(exc.status_code, code, str(exc.detail))


def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception on %s", request.url.path, exc_info=exc)
    message = str(exc) if settings.is_development and str(exc) else "Internal server error"
    return _error_response(500, ErrorCode.INTERNAL_ERROR, message, exc)


def not_found(request: Request) -> JSONResponse:
    """404 for requests that matched no route."""
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return _error_response(404, ErrorCode.NOT_FOUND, f"Route {path} not found")


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers on the FastAPI app.

    Call once after creating the app.
    """
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(psycopg2.Error, _pg_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(jwt.ExpiredSignatureError, _expired_token_handler)
    app.add_exception_handler(jwt.InvalidTokenError, _invalid_token_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
