import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, ProgrammingError

from shared.errors import (
    DEFAULT_ERROR_MESSAGE,
    ServiceError,
    describe_db_error,
    error_status,
    extract_error_code,
)


class PgError(Exception):
    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


def _wrap(orig, cls=IntegrityError):
    return cls("INSERT INTO t VALUES (?)", {}, orig)


@pytest.mark.parametrize(
    "code, message, status",
    [
        ("23505", "This record already exists.", 409),
        ("23503", "This action cannot be completed because it references non-existent data.", 409),
        ("42P01", "Database table not found. Please contact support.", 500),
        ("42501", "You do not have permission to perform this action.", 403),
    ],
)
def test_postgres_codes_map_to_friendly_messages(code, message, status):
    error = _wrap(PgError("raw driver text", code))
    assert extract_error_code(error) == code
    assert describe_db_error(error) == message
    assert error_status(error) == status


def test_raised_exception_keeps_database_message():
    error = _wrap(PgError("Batch is full", "P0001"), ProgrammingError)
    assert describe_db_error(error) == "Batch is full"
    assert error_status(error) == 400


def test_sqlite_messages_are_classified():
    unique = _wrap(sqlite3.IntegrityError("UNIQUE constraint failed: profiles.email"))
    assert extract_error_code(unique) == "23505"
    assert describe_db_error(unique) == "This record already exists."

    missing = _wrap(sqlite3.IntegrityError("FOREIGN KEY constraint failed"))
    assert extract_error_code(missing) == "23503"


def test_no_rows():
    assert describe_db_error(NoResultFound()) == "No data found."
    assert error_status(NoResultFound()) == 404


def test_unmapped_database_error_returns_its_own_message():
    error = _wrap(PgError("deadlock detected", "40P01"))
    assert describe_db_error(error) == "deadlock detected"
    assert error_status(error) == 500


def test_service_error_and_plain_errors():
    assert describe_db_error(ServiceError("Nope", 422)) == "Nope"
    assert error_status(ServiceError("Nope", 422)) == 422
    assert describe_db_error(ValueError("bad value")) == "bad value"
    assert describe_db_error(ValueError()) == DEFAULT_ERROR_MESSAGE
