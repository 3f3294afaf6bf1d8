"""Centralized mapping of exceptions to the error envelope."""

import logging
import re
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DataError, IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.core.config import settings
from storefront.core.errors import AppError, ConflictError, UploadError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."

# Postgres: 'Key (email)=(a@b.c) already exists.'  SQLite: 'UNIQUE constraint failed: users.email'
_PG_KEY_DETAIL = re.compile(r"Key \((?P<field>[^)]+)\)=")
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(?P<field>\w+)")


def _error_body(message: str, **extra: Any) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def integrity_error_response(exc: IntegrityError) -> tuple[int, dict[str, Any]]:
    """Unique violation -> 409 naming the field; foreign-key violation -> 400."""
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc)
    pgcode = getattr(orig, "pgcode", None)
    if pgcode == "23503" or "foreign key" in text.lower():
        return status.HTTP_400_BAD_REQUEST, _error_body(
            "Invalid reference. Related resource does not exist."
        )
    if pgcode == "23505" or "unique" in text.lower() or "duplicate" in text.lower():
        match = _PG_KEY_DETAIL.search(text) or _SQLITE_UNIQUE.search(text)
        field = _to_camel(match.group("field")) if match else "field"
        return status.HTTP_409_CONFLICT, _error_body(
            f"{field[:1].upper()}{field[1:]} already exists", field=field
        )
    return status.HTTP_400_BAD_REQUEST, _error_body("Database constraint violated")


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers so every error leaves the API in the same envelope."""

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        logger.info(
            "%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message
        )
        extra: dict[str, Any] = {}
        if isinstance(exc, ValidationError):
            extra["errors"] = [{"field": e.field, "message": e.message} for e in exc.errors]
        if isinstance(exc, ConflictError):
            extra["field"] = exc.field
        if isinstance(exc, UploadError):
            extra["code"] = exc.code
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, **extra),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
            errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Validation failed", errors=errors),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        status_code, body = integrity_error_response(exc)
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(DataError)
    async def handle_data_error(request: Request, exc: DataError) -> JSONResponse:
        # Value out of range or wrong type for its column.
        logger.warning("Data error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Invalid value for one or more fields"),
        )

    @app.exception_handler(OperationalError)
    async def handle_operational_error(request: Request, exc: OperationalError) -> JSONResponse:
        logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body("Service temporarily unavailable. Please try again later."),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if settings.APP_ENV == "prod":
            body = _error_body(GENERIC_ERROR_MESSAGE)
        else:
            body = _error_body(str(exc) or GENERIC_ERROR_MESSAGE, error=repr(exc))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
