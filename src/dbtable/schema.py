"""
Column introspection for a table.

The database reports a table's columns in definition order. The primary key
is set aside (it is matched by `:id` in the templates, never bound from row
data) and the remaining columns become the table's bindable fields.
"""
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dbtable.exceptions import DriverError, SchemaError
from dbtable.sql import KEY_PARAM, param_name
from dbtable.strategy import get_db_strategy

if TYPE_CHECKING:
    from dbtable.connection import Connection

__all__ = ['TableSchema', 'describe']

logger = logging.getLogger(__name__)

_PARAM_NAME = re.compile(r'\w+')


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Introspected column set of one table.

    Attributes
        table: Table name
        columns: Bindable columns in database order, primary key excluded
        primary_key: Primary key column as the database spells it
        audit_column: Insert/modify date column as the database spells it, if any
    """
    table: str
    columns: tuple[str, ...]
    primary_key: str = 'ID'
    audit_column: str | None = None

    @property
    def params(self) -> tuple[str, ...]:
        """Parameter name of each column."""
        return tuple(param_name(col) for col in self.columns)

    def param_for(self, column: str) -> str:
        """Parameter name bound for one of the table's columns."""
        if column not in self.columns:
            raise SchemaError(f'{self.table} has no bindable column {column}')
        return param_name(column)

    @property
    def required_columns(self) -> tuple[str, ...]:
        """Columns a row must supply; the audit column is filled automatically."""
        return tuple(col for col in self.columns if col != self.audit_column)


def _find_column(columns: list[str], name: str) -> str | None:
    """Return the column whose name equals `name` ignoring case."""
    name = name.lower()
    return next((col for col in columns if col.lower() == name), None)


def describe(cn: 'Connection', table: str, primary_key: str = 'ID',
             audit_column: str | None = 'DataIns',
             bypass_cache: bool = False) -> TableSchema:
    """Introspect a table's columns.

    Args:
        cn: Database connection
        table: Table name
        primary_key: Primary key column name (matched case-insensitively)
        audit_column: Audit date column name, or None when the table has none
        bypass_cache: Re-read the columns instead of using the cached list

    Raises
        SchemaError: the table is unknown, lacks the primary key, has a column
            that cannot be a parameter name, or two columns share one
    """
    strategy = get_db_strategy(cn)
    try:
        reported = list(strategy.get_columns(cn, table, bypass_cache=bypass_cache))
    except DriverError as err:
        raise SchemaError(f'Cannot describe table {table}: {err}') from err

    if not reported:
        raise SchemaError(f'Table {table} does not exist or has no columns')

    key = _find_column(reported, primary_key)
    if key is None:
        raise SchemaError(f'Table {table} has no primary key column {primary_key}')

    columns = tuple(col for col in reported if col != key)
    if not columns:
        raise SchemaError(f'Table {table} has no columns besides {key}')

    seen: dict[str, str] = {}
    for col in columns:
        name = param_name(col)
        if not _PARAM_NAME.fullmatch(name):
            raise SchemaError(f'Column {col} of {table} cannot be bound as a named parameter')
        if name in seen or name == KEY_PARAM:
            other = seen.get(name, key)
            raise SchemaError(f'Columns {other} and {col} of {table} both bind as :{name}')
        seen[name] = col

    audit = _find_column(list(columns), audit_column) if audit_column else None

    logger.debug(f'Described {table}: {len(columns)} bindable columns, key {key}')
    return TableSchema(table=table, columns=columns, primary_key=key, audit_column=audit)
