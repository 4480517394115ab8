"""
Table accessor exception classes.
"""
import re

import pymysql
import sqlalchemy as sa

RETRYABLE_PATTERNS = [
    # SSL/TLS errors
    r'ssl',
    r'tls',
    # Connection drops
    r'connection.*(closed|reset|refused|lost|terminated|broken)',
    r'server has gone away',
    r'lost connection',
    r'broken pipe',
    # Timeouts
    r'timeout',
    r'timed out',
    # Network issues
    r"can't connect",
    r'could not connect',
    r'no route to host',
    r'network.*(unreachable|error)',
    r'host.*(unreachable|down)',
    # Database unavailable
    r'too many connections',
]

_RETRYABLE_REGEX = re.compile('|'.join(RETRYABLE_PATTERNS), re.IGNORECASE)


def is_retryable_error(exc: BaseException) -> bool:
    """Check if an exception represents a transient error worth retrying.

    Returns True for dropped or refused connections, timeouts, network
    problems and a saturated server. Returns False for errors that will fail
    again: bad credentials, unknown database, syntax errors.

    :param exc: The exception to check.
    :returns: True if the error is likely transient and worth retrying.
    """
    error_msg = str(exc).lower()
    return bool(_RETRYABLE_REGEX.search(error_msg))


class DatabaseError(Exception):
    """Base class for all table accessor errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing the database connection.
    """


class SchemaError(DatabaseError):
    """Error introspecting a table's columns.
    """


class QueryError(DatabaseError):
    """Error in statement preparation or transaction state.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class MissingFieldError(ValidationError):
    """A row did not supply a value for every column the statement binds.
    """

    def __init__(self, table: str, missing: list[str]) -> None:
        self.table = table
        self.missing = list(missing)
        super().__init__(f"Missing value for {', '.join(self.missing)} in {table}")


class DriverError(DatabaseError):
    """Statement execution failed in the database driver.
    """

    def __init__(self, message: str, sql: str | None = None) -> None:
        self.sql = sql
        super().__init__(message)


DbConnectionError = (
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    pymysql.err.OperationalError,
    pymysql.err.InterfaceError,
    ConnectionFailure,
    )
