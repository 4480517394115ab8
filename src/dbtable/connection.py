"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for opening a database connection
2. The `Connection` class, the driver adapter the table layer talks to
3. Engine creation and management through a thread-safe registry
4. The `check_connection` retry decorator used while connecting

Connection mirrors a prepared-statement driver:

    stmt = cn.prepare('SELECT * FROM `posts` WHERE `ID` = :id')
    cn.bind_param(stmt, 'id', 3)
    cn.execute(stmt)
    rows = cn.fetch_all()

Results of the last execution are buffered on the connection, which is why a
Connection must not be shared between threads.
"""
import atexit
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import fields
from functools import wraps
from typing import Any, Self, TypeVar

import sqlalchemy as sa
from dbtable.exceptions import ConnectionFailure, DbConnectionError, DriverError
from dbtable.exceptions import QueryError, is_retryable_error
from dbtable.options import DatabaseOptions
from dbtable.statement import Statement
from dbtable.strategy import get_db_strategy, get_strategy
from dbtable.types import BindKind
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

__all__ = [
    'Connection',
    'connect',
    'check_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')
_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def _driver_message(err: BaseException) -> str:
    """Message of the underlying DBAPI error when SQLAlchemy wrapped one."""
    return str(getattr(err, 'orig', None) or err)


def check_connection(func: Callable[..., T] | None = None, *, max_retries: int = 3,
                     retry_delay: float = 1, retry_errors: type | tuple[type, ...] | None = None,
                     retry_backoff: float = 1.5,
                     sleep_func: Callable[[float], None] = time.sleep) -> Callable[..., T]:
    """Connection retry decorator with backoff.

    Retries the wrapped call while it raises a connection error whose message
    marks it as transient (see `is_retryable_error`). Other connection errors,
    such as rejected credentials, are raised on the first attempt.

    Supports both @check_connection and @check_connection() syntax.
    """
    def decorator(f: Callable[..., T]) -> Callable[..., T]:
        @wraps(f)
        def inner(*args: Any, **kwargs: Any) -> T:
            error_types = retry_errors if retry_errors is not None else DbConnectionError

            tries = 0
            delay = retry_delay
            while True:
                try:
                    return f(*args, **kwargs)
                except error_types as err:
                    tries += 1
                    if not is_retryable_error(err):
                        logger.error(f'Connection error is not retryable: {err}')
                        raise
                    if tries >= max_retries:
                        logger.error(f'Maximum retries ({max_retries}) exceeded: {err}')
                        raise
                    logger.warning(f'Connection error (attempt {tries}/{max_retries}): {err}')
                    sleep_func(delay)
                    delay *= retry_backoff

        return inner

    if func is None:
        return decorator
    return decorator(func)


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create a SQLAlchemy engine for the given options.

    Engines use NullPool: every Connection owns one physical connection for
    its lifetime and closes it on close().
    """
    key = str(options)

    with _engine_registry_lock:
        if key in _engine_registry:
            logger.debug(f'Using existing engine for {options.drivername}')
            return _engine_registry[key]

        strategy = get_strategy(options.drivername)
        url = strategy.build_connection_url(options)

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {options.drivername}')

        return engine


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)


class Connection:
    """Driver adapter over one SQLAlchemy connection.

    Provides statement preparation and typed parameter binding, execution with
    buffered results, row count and last insert id of the last execution, and
    explicit transactions. Outside a transaction every statement is committed
    as soon as it runs.
    """

    def __init__(self, sa_connection: sa.engine.Connection,
                 options: DatabaseOptions | None = None) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine
        self.options = options
        self.dialect = self.engine.dialect.name
        self.cache_key = self.engine.url.render_as_string(hide_password=True)
        self.in_transaction = False
        self.calls = 0
        self.time = 0.0
        self._rows: list[dict[str, Any]] = []
        self._rowcount = 0
        self._lastrowid: int | None = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Connection({self.cache_key})'

    @property
    def closed(self) -> bool:
        return self.sa_connection.closed

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def prepare(self, sql: str) -> Statement:
        """Prepare a statement with named `:param` placeholders."""
        return Statement(sql)

    def bind_param(self, stmt: Statement, name: str, value: Any,
                   kind: BindKind | None = None) -> None:
        """Bind a value to one of the statement's parameters.

        The kind is inferred from the value when not given.
        """
        stmt.bind(name, value, kind)

    def execute(self, stmt: Statement) -> int:
        """Execute a prepared statement and return the affected row count.

        Rows of a query are buffered for fetch_all/fetch_one. Raises
        MissingFieldError before sending anything if a parameter is unbound,
        and DriverError when the database rejects the statement.
        """
        clause = stmt.clause()
        start = time.time()
        try:
            result = self.sa_connection.execute(clause)
            if result.returns_rows:
                self._rows = [dict(row) for row in result.mappings()]
                self._rowcount = len(self._rows)
                self._lastrowid = None
            else:
                self._rows = []
                self._rowcount = result.rowcount
                self._lastrowid = result.lastrowid
        except sa.exc.SQLAlchemyError as err:
            self._rows, self._rowcount, self._lastrowid = [], 0, None
            if not self.in_transaction:
                self.sa_connection.rollback()
            logger.debug(f'Statement failed: {_driver_message(err)}')
            raise DriverError(_driver_message(err), stmt.sql) from err
        finally:
            self.addcall(time.time() - start)

        if not self.in_transaction:
            self.sa_connection.commit()
        logger.debug(f'Executed statement with {len(stmt.bound)} parameters, {self._rowcount} rows')
        return self._rowcount

    def fetch_all(self) -> list[dict[str, Any]]:
        """Rows returned by the last executed query."""
        return list(self._rows)

    def fetch_one(self) -> dict[str, Any] | None:
        """First row returned by the last executed query, or None."""
        return self._rows[0] if self._rows else None

    def row_count(self) -> int:
        """Rows affected (or returned) by the last execution."""
        return self._rowcount

    def last_insert_id(self) -> int | None:
        """Auto-increment id generated by the last executed insert."""
        return self._lastrowid

    def debug_dump_params(self, stmt: Statement) -> str:
        """Describe a prepared statement and its bindings."""
        return stmt.debug_dump_params()

    def execute_sql(self, sql: str, **params: Any) -> int:
        """Prepare, bind and execute a statement in one call.
        """
        stmt = self.prepare(sql)
        for name, value in params.items():
            self.bind_param(stmt, name, value)
        return self.execute(stmt)

    def select(self, sql: str, **params: Any) -> list[dict[str, Any]]:
        """Execute a query and return all rows as dictionaries.
        """
        self.execute_sql(sql, **params)
        return self.fetch_all()

    def select_row_or_none(self, sql: str, **params: Any) -> dict[str, Any] | None:
        """Execute a query and return its first row, or None if it returned none.
        """
        self.execute_sql(sql, **params)
        return self.fetch_one()

    def describe_table(self, table: str, bypass_cache: bool = False) -> tuple[str, ...]:
        """Column names of a table in definition order.
        """
        strategy = get_db_strategy(self)
        return strategy.get_columns(self, table, bypass_cache=bypass_cache)

    def begin_transaction(self) -> None:
        """Start an explicit transaction; statements are no longer auto-committed.
        """
        if self.in_transaction:
            raise QueryError('Nested transactions are not supported')
        if self.sa_connection.in_transaction():
            self.sa_connection.commit()
        self.sa_connection.begin()
        self.in_transaction = True
        logger.debug(f'Started transaction on {self!r}')

    def commit(self) -> None:
        """Commit the explicit transaction.
        """
        if not self.in_transaction:
            raise QueryError('No active transaction to commit')
        try:
            self.sa_connection.commit()
        finally:
            self.in_transaction = False
        logger.debug(f'Committed transaction on {self!r}')

    def rollback(self) -> None:
        """Roll back the explicit transaction.
        """
        if not self.in_transaction:
            raise QueryError('No active transaction to roll back')
        try:
            self.sa_connection.rollback()
        finally:
            self.in_transaction = False
        logger.debug(f'Rolled back transaction on {self!r}')

    def close(self) -> None:
        """Close the connection, rolling back an unfinished transaction.
        """
        if self.sa_connection.closed:
            return
        if self.in_transaction:
            self.rollback()
        self.sa_connection.close()
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s (avg: {self.time/max(1,self.calls):.3f}s per query)')


def _open_connection(engine: Engine, options: DatabaseOptions) -> sa.engine.Connection:
    """Open a SQLAlchemy connection, retrying transient failures.

    Raises ConnectionFailure when the database cannot be reached.
    """
    @check_connection(max_retries=options.connect_retries,
                      retry_delay=options.connect_retry_delay)
    def _connect() -> sa.engine.Connection:
        return engine.connect()

    try:
        return _connect()
    except DbConnectionError as err:
        url = engine.url.render_as_string(hide_password=True)
        raise ConnectionFailure(f'Cannot connect to {url}: {_driver_message(err)}') from err


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> Connection:
    """Connect to a database

    Args:
        options: Can be:
                - DatabaseOptions object
                - String path to configuration
                - Dictionary of options
                - Options specified as keyword arguments
        config: Configuration object (for loading from config files)
        **kw: Additional keyword arguments to override options

    Returns
        Connection to the database

    Raises
        ConnectionFailure: the database cannot be reached
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options_func = load_options(cls=DatabaseOptions)(lambda o, c: o)
        options = options_func(options, config, **kw)

    engine = get_engine_for_options(options)
    sa_connection = _open_connection(engine, options)

    return Connection(sa_connection, options)
