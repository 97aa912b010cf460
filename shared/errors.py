# shared/errors.py
"""
Error taxonomy shared by every service.

Database failures are reduced to a short code (the Postgres SQLSTATE, or the
equivalent derived from a SQLite message) and translated into a message that
is safe to show to a dashboard user. Domain failures raise ServiceError.
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, NoResultFound, SQLAlchemyError

LOGGER = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An error occurred"

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
UNDEFINED_TABLE = "42P01"
INSUFFICIENT_PRIVILEGE = "42501"
NO_ROWS = "PGRST116"
RAISED_EXCEPTION = "P0001"

DB_ERROR_MESSAGES = {
    UNIQUE_VIOLATION: "This record already exists.",
    FOREIGN_KEY_VIOLATION: "This action cannot be completed because it references non-existent data.",
    UNDEFINED_TABLE: "Database table not found. Please contact support.",
    INSUFFICIENT_PRIVILEGE: "You do not have permission to perform this action.",
    NO_ROWS: "No data found.",
}

DB_ERROR_STATUS = {
    UNIQUE_VIOLATION: status.HTTP_409_CONFLICT,
    FOREIGN_KEY_VIOLATION: status.HTTP_409_CONFLICT,
    UNDEFINED_TABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    INSUFFICIENT_PRIVILEGE: status.HTTP_403_FORBIDDEN,
    NO_ROWS: status.HTTP_404_NOT_FOUND,
    RAISED_EXCEPTION: status.HTTP_400_BAD_REQUEST,
}

_SQLITE_MARKERS = (
    ("UNIQUE constraint failed", UNIQUE_VIOLATION),
    ("FOREIGN KEY constraint failed", FOREIGN_KEY_VIOLATION),
    ("no such table", UNDEFINED_TABLE),
)


class ServiceError(Exception):
    """A domain rule was broken; the message is shown to the caller as is."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def extract_error_code(error: BaseException) -> Optional[str]:
    if isinstance(error, NoResultFound):
        return NO_ROWS
    if isinstance(error, ServiceError):
        return RAISED_EXCEPTION
    if not isinstance(error, DBAPIError):
        return None

    orig = error.orig
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    cause = getattr(orig, "__cause__", None)
    code = getattr(cause, "sqlstate", None)
    if code:
        return str(code)

    text = str(orig)
    for marker, mapped in _SQLITE_MARKERS:
        if marker in text:
            return mapped
    return None


def describe_db_error(error: BaseException, default: str = DEFAULT_ERROR_MESSAGE) -> str:
    code = extract_error_code(error)
    if code in DB_ERROR_MESSAGES:
        return DB_ERROR_MESSAGES[code]
    if isinstance(error, ServiceError):
        return error.message
    # P0001 and unmapped codes carry the database's own message
    message = str(error.orig) if isinstance(error, DBAPIError) else str(error)
    return message or default


def error_status(error: BaseException) -> int:
    if isinstance(error, ServiceError):
        return error.status_code
    return DB_ERROR_STATUS.get(extract_error_code(error), status.HTTP_500_INTERNAL_SERVER_ERROR)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    LOGGER.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    code = extract_error_code(exc)
    LOGGER.error("Database error on %s %s (code=%s): %s", request.method, request.url.path, code, exc)
    return JSONResponse(status_code=error_status(exc), content={"detail": describe_db_error(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
