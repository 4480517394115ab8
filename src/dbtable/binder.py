"""
Row binder: moves row values onto an insert or update statement.

A row arrives either as a plain mapping (column name -> value) or as a Row
record. Every bindable column must be present before anything is bound;
a missing column raises MissingFieldError and leaves the statement untouched.
Explicit None is a value and is bound as NULL.

The audit column (DataIns by convention) is not taken from the row: whenever
the statement declares its parameter it is bound to today's date.
"""
import datetime
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from dbtable.exceptions import MissingFieldError, ValidationError
from dbtable.row import Row
from dbtable.schema import TableSchema
from dbtable.statement import Statement
from dbtable.types import BindKind, infer_kind

if TYPE_CHECKING:
    from dbtable.connection import Connection

__all__ = ['RowInput', 'row_values', 'bind_row']

logger = logging.getLogger(__name__)

RowInput = Row | Mapping[str, Any]


def row_values(schema: TableSchema, row: RowInput) -> dict[str, Any]:
    """Collect the value of every required column from a row.

    Returns
        Dict of column name -> value in schema column order, audit column excluded

    Raises
        MissingFieldError: a required column has no entry in the row
        ValidationError: the row is neither a Row nor a mapping
    """
    match row:
        case Row() | Mapping():
            source = row
        case _:
            raise ValidationError(
                f'Cannot bind {type(row).__name__} to {schema.table}: expected Row or mapping')

    required = schema.required_columns
    if missing := [col for col in required if col not in source]:
        raise MissingFieldError(schema.table, missing)
    return {col: source[col] for col in required}


def bind_row(cn: 'Connection', stmt: Statement, schema: TableSchema, row: RowInput,
             today: datetime.date | None = None) -> Statement:
    """Bind a row's column values, and the audit date, to a statement.

    All values are resolved before the first bind, so a MissingFieldError
    leaves the statement without any row binding.
    """
    values = row_values(schema, row)
    for col, value in values.items():
        cn.bind_param(stmt, schema.param_for(col), value, infer_kind(value))

    if schema.audit_column is not None:
        audit_param = schema.param_for(schema.audit_column)
        if audit_param in stmt.params:
            today = today or datetime.date.today()
            cn.bind_param(stmt, audit_param, today.isoformat(), BindKind.STR)

    logger.debug(f'Bound {len(values)} columns for {schema.table}')
    return stmt
