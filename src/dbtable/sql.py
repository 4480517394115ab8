"""
Statement templates for a single table.

Templates are built once per Table handle from the introspected column list
and reused for every call. Table and column names are written into the SQL
text (placeholders only carry values), so they must come from the database
catalog, never from caller input. Values always travel as named parameters:

    INSERT INTO `posts` (`Title`, `Body`) VALUES (:title, :body)
    UPDATE `posts` SET `Title` = :title, `Body` = :body WHERE `ID` = :id
"""
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    'QueryTemplates',
    'build_templates',
    'limit_clause',
    'param_name',
    'quote_identifier',
    'KEY_PARAM',
    'OFFSET_PARAM',
]

KEY_PARAM = 'id'
OFFSET_PARAM = 'offset'


def quote_identifier(identifier: str) -> str:
    """Quote a MySQL identifier with backticks, doubling embedded backticks.
    """
    return '`' + identifier.replace('`', '``') + '`'


def param_name(column: str) -> str:
    """Parameter name for a column: the column name with a lower-case first letter.

    >>> param_name('DataIns')
    'dataIns'
    """
    return column[:1].lower() + column[1:]


@dataclass(frozen=True, slots=True)
class QueryTemplates:
    """The parameterized statements of one table."""
    select_all: str
    select_by_id: str
    select_by_offset: str
    count: str
    insert: str
    update: str
    delete: str


def build_templates(table: str, columns: Sequence[str],
                    primary_key: str = 'ID') -> QueryTemplates:
    """Build the statement templates for a table.

    Parameters
        table: Table name as reported by the database
        columns: Bindable columns in table order (primary key excluded)
        primary_key: Primary key column, matched by `:id`

    Returns
        QueryTemplates for the table
    """
    if not columns:
        raise ValueError(f'No bindable columns for {table}')

    quoted_table = quote_identifier(table)
    quoted_key = quote_identifier(primary_key)
    quoted_cols = [quote_identifier(col) for col in columns]
    placeholders = [f':{param_name(col)}' for col in columns]
    assignments = [f'{qc} = {ph}' for qc, ph in zip(quoted_cols, placeholders)]
    where_key = f'WHERE {quoted_key} = :{KEY_PARAM}'

    return QueryTemplates(
        select_all=f'SELECT * FROM {quoted_table}',
        select_by_id=f'SELECT * FROM {quoted_table} {where_key}',
        select_by_offset=f'SELECT * FROM {quoted_table} LIMIT :{OFFSET_PARAM}, 1',
        count=f'SELECT COUNT(*) FROM {quoted_table}',
        insert=f"INSERT INTO {quoted_table} ({', '.join(quoted_cols)}) VALUES ({', '.join(placeholders)})",
        update=f"UPDATE {quoted_table} SET {', '.join(assignments)} {where_key}",
        delete=f'DELETE FROM {quoted_table} {where_key}',
    )


def limit_clause(count: int, offset: int = 0) -> str:
    """Render a LIMIT clause from integers.

    LIMIT is concatenated into the SQL text rather than bound, so both values
    are coerced with int() first and anything else is rejected.

    Raises
        ValueError: count below 1, negative offset, or non-integer input
    """
    count, offset = int(count), int(offset)
    if count < 1:
        raise ValueError(f'LIMIT count must be at least 1, got {count}')
    if offset < 0:
        raise ValueError(f'LIMIT offset must not be negative, got {offset}')
    return f' LIMIT {offset}, {count}'
