"""
Prepared statement handle.

A Statement holds SQL text with named `:param` placeholders and the values
bound to them so far. It only becomes executable once every declared parameter
has a value, so a partially bound statement never reaches the database.
"""
import re
from typing import Any

import sqlalchemy as sa
from dbtable.exceptions import MissingFieldError, QueryError
from dbtable.types import BindKind, infer_kind

__all__ = ['Statement']

# Same rule SQLAlchemy's text() applies: a colon not preceded by a word char
# or another colon, and not followed by one (so `::` casts are left alone).
_NAMED_PARAM = re.compile(r'(?<![:\w\\]):(\w+)(?!:)')


class Statement:
    """SQL text plus its typed parameter bindings.
    """

    def __init__(self, sql: str) -> None:
        self.sql = sql
        self.params = tuple(dict.fromkeys(_NAMED_PARAM.findall(sql)))
        self.bound: dict[str, tuple[Any, BindKind]] = {}

    def __repr__(self) -> str:
        return f'Statement({self.sql!r})'

    def bind(self, name: str, value: Any, kind: BindKind | None = None) -> None:
        """Bind a value to a named parameter.

        The leading colon is optional. Binding a name the SQL does not declare
        raises QueryError.
        """
        name = name.lstrip(':')
        if name not in self.params:
            raise QueryError(f'Statement has no parameter :{name}: {self.sql}')
        if kind is None:
            kind = infer_kind(value)
        self.bound[name] = (value, kind)

    @property
    def unbound(self) -> list[str]:
        """Declared parameters that have no value yet."""
        return [p for p in self.params if p not in self.bound]

    def clause(self) -> sa.TextClause:
        """Build the executable SQLAlchemy clause.

        Raises MissingFieldError while any declared parameter is unbound.
        """
        if unbound := self.unbound:
            raise MissingFieldError('statement', unbound)
        clause = sa.text(self.sql)
        if not self.bound:
            return clause
        return clause.bindparams(*[
            sa.bindparam(name, value, type_=kind.sa_type)
            for name, (value, kind) in self.bound.items()
        ])

    def debug_dump_params(self) -> str:
        """Describe the statement and its bindings, one parameter per line."""
        lines = [f'SQL: [{len(self.sql)}] {self.sql}', f'Params: {len(self.params)}']
        for name in self.params:
            if name in self.bound:
                value, kind = self.bound[name]
                lines.append(f'  :{name} kind={kind.value} value={value!r}')
            else:
                lines.append(f'  :{name} unbound')
        return '\n'.join(lines)
