"""
Generic accessor for one database table.

A Table introspects its table's columns when it is created, builds the
statement templates once, and then offers fetch and CRUD operations on rows:

    cn = dbtable.connect(hostname='localhost', username='web', database='site')
    posts = Table(cn, 'posts')
    result = posts.insert({'Title': 'a', 'Body': 'b', 'Photo': 'x'})
    post = posts.fetch_by_id(result.lastrowid)
    post.Title  # 'a'

Fetches return Row objects (None when nothing matches) and raise DriverError
if the database fails. insert, update and delete return a Result instead of
raising for database failures; rows that are missing a column raise
MissingFieldError before anything is sent.

A Table is not safe for concurrent use: it shares its Connection, which
buffers the results of the last statement. Use one Table and Connection per
thread.
"""
import logging
from collections.abc import Iterable
from typing import Any, Self

from dbtable.binder import RowInput, bind_row
from dbtable.connection import Connection, connect
from dbtable.exceptions import DriverError, ValidationError
from dbtable.result import Result
from dbtable.row import Row, row_from_record
from dbtable.schema import describe
from dbtable.sql import KEY_PARAM, OFFSET_PARAM, build_templates, limit_clause
from dbtable.types import BindKind
from dbtable.transaction import Transaction

__all__ = ['Table', 'coerce_id']

logger = logging.getLogger(__name__)


def coerce_id(value: Any) -> int:
    """Coerce a row id (or offset) to int.

    Raises
        ValidationError: the value is not an integer or integer string
    """
    if isinstance(value, bool):
        raise ValidationError(f'Invalid id: {value!r}')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid id: {value!r}') from None


class Table:
    """Accessor for one table.

    Args:
        cn: Open database connection
        name: Table name
        primary_key: Primary key column (default `ID`)
        audit_column: Column stamped with today's date on insert and update
            (default `DataIns`); ignored when the table has no such column
        bypass_cache: Re-read the table's columns instead of reusing a cached list

    Raises
        SchemaError: the table cannot be introspected
    """

    def __init__(self, cn: Connection, name: str, primary_key: str = 'ID',
                 audit_column: str | None = 'DataIns', bypass_cache: bool = False) -> None:
        self.cn = cn
        self.name = name
        self.schema = describe(cn, name, primary_key=primary_key,
                               audit_column=audit_column, bypass_cache=bypass_cache)
        self.templates = build_templates(name, self.schema.columns, self.schema.primary_key)
        self._owns_connection = False
        logger.debug(f'Table {name} ready with columns {list(self.schema.columns)}')

    @classmethod
    def open(cls, name: str, options: Any = None, **kw: Any) -> Self:
        """Connect with the given options and open a Table that owns the connection.

        Keyword arguments naming Table parameters (primary_key, audit_column,
        bypass_cache) go to the Table; the rest are connection options.
        """
        table_kw = {k: kw.pop(k) for k in ('primary_key', 'audit_column', 'bypass_cache') if k in kw}
        cn = connect(options, **kw) if options is not None else connect(kw)
        try:
            table = cls(cn, name, **table_kw)
        except Exception:
            cn.close()
            raise
        table._owns_connection = True
        return table

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        return f'Table({self.name!r})'

    def close(self) -> None:
        """Close the connection if this Table opened it."""
        if self._owns_connection:
            self.cn.close()

    @property
    def columns(self) -> tuple[str, ...]:
        """Bindable columns, primary key excluded."""
        return self.schema.columns

    def _query(self, sql: str, **params: Any) -> list[Row]:
        stmt = self.cn.prepare(sql)
        for name, value in params.items():
            self.cn.bind_param(stmt, name, value, BindKind.INT)
        self.cn.execute(stmt)
        return [row_from_record(record) for record in self.cn.fetch_all()]

    def fetch_all(self) -> list[Row]:
        """Fetch every row of the table."""
        return self._query(self.templates.select_all)

    def fetch_some(self, num: int = 1) -> list[Row]:
        """Fetch the first `num` rows.

        LIMIT is written into the statement text from int(num), since not all
        drivers accept a bound LIMIT.
        """
        try:
            limit = limit_clause(num)
        except (TypeError, ValueError) as err:
            raise ValidationError(str(err)) from err
        return self._query(self.templates.select_all + limit)

    def fetch_by_id(self, row_id: Any) -> Row | None:
        """Fetch the row with the given id, or None if there is none."""
        rows = self._query(self.templates.select_by_id, **{KEY_PARAM: coerce_id(row_id)})
        return rows[0] if rows else None

    def fetch_by_row(self, row: Any = 0) -> Row | None:
        """Fetch the row at a zero-based position, or None past the end.

        No ORDER BY is applied; positions follow the database's natural order
        and may shift after writes.
        """
        offset = coerce_id(row)
        if offset < 0:
            raise ValidationError(f'Row offset must not be negative, got {offset}')
        rows = self._query(self.templates.select_by_offset, **{OFFSET_PARAM: offset})
        return rows[0] if rows else None

    def fetch_count(self) -> int:
        """Number of rows in the table."""
        stmt = self.cn.prepare(self.templates.count)
        self.cn.execute(stmt)
        record = self.cn.fetch_one()
        return int(next(iter(record.values())))

    def insert(self, row: RowInput) -> Result:
        """Insert a row given as a Row or a column -> value mapping.

        Returns
            Result with the generated id in `lastrowid`
        """
        stmt = self.cn.prepare(self.templates.insert)
        bind_row(self.cn, stmt, self.schema, row)
        try:
            rowcount = self.cn.execute(stmt)
        except DriverError as err:
            logger.debug(f'Insert into {self.name} failed: {err}')
            return Result.failure(err)
        return Result.success(rowcount, self.cn.last_insert_id())

    def update(self, row: RowInput, row_id: Any) -> Result:
        """Overwrite every column of the row with the given id."""
        key = coerce_id(row_id)
        stmt = self.cn.prepare(self.templates.update)
        bind_row(self.cn, stmt, self.schema, row)
        self.cn.bind_param(stmt, KEY_PARAM, key, BindKind.INT)
        try:
            rowcount = self.cn.execute(stmt)
        except DriverError as err:
            logger.debug(f'Update of {self.name} {key} failed: {err}')
            return Result.failure(err)
        return Result.success(rowcount)

    def _delete_one(self, key: int) -> int:
        stmt = self.cn.prepare(self.templates.delete)
        self.cn.bind_param(stmt, KEY_PARAM, key, BindKind.INT)
        return self.cn.execute(stmt)

    def delete(self, ids: Any) -> Result:
        """Delete one row by id, or several rows given an iterable of ids.

        Several ids are deleted all-or-nothing: every id is attempted inside a
        transaction, and if any delete fails the transaction is rolled back
        and the failure Result lists each failed id. When the caller already
        has a transaction open, failures are reported the same way but
        committing or rolling back is left to the caller.
        """
        match ids:
            case str() | bytes() | int():
                key = coerce_id(ids)
                try:
                    return Result.success(self._delete_one(key))
                except DriverError as err:
                    logger.debug(f'Delete from {self.name} {key} failed: {err}')
                    return Result.failure(err)
            case Iterable():
                return self._delete_many([coerce_id(i) for i in ids])
            case _:
                return self.delete(coerce_id(ids))

    def _delete_many(self, keys: list[int]) -> Result:
        if not keys:
            return Result.success(0)

        owns_transaction = not self.cn.in_transaction
        if owns_transaction:
            self.cn.begin_transaction()

        rowcount = 0
        failed: dict[int, DriverError] = {}
        try:
            for key in keys:
                try:
                    rowcount += self._delete_one(key)
                except DriverError as err:
                    failed[key] = err
        except BaseException:
            if owns_transaction:
                self.cn.rollback()
            raise

        if failed:
            if owns_transaction:
                self.cn.rollback()
            logger.warning(f'Batch delete from {self.name} failed for ids {list(failed)}')
            error = DriverError(f'{len(failed)} of {len(keys)} deletes from {self.name} failed')
            return Result.failure(error, failed=failed)

        if owns_transaction:
            self.cn.commit()
        return Result.success(rowcount)

    def last_insert_id(self) -> int | None:
        """Id generated by the last insert on this table's connection."""
        return self.cn.last_insert_id()

    def row_count(self) -> int:
        """Rows affected by the last statement on this table's connection."""
        return self.cn.row_count()

    def transaction(self) -> Transaction:
        """Transaction context on this table's connection."""
        return Transaction(self.cn)

    def begin_transaction(self) -> None:
        self.cn.begin_transaction()

    def commit(self) -> None:
        self.cn.commit()

    def rollback(self) -> None:
        self.cn.rollback()
