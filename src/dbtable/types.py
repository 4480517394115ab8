"""
Bind kinds for statement parameters.

Every value bound to a statement carries one of four kinds, inferred from the
value's runtime type. The kind selects the SQLAlchemy type used for the bind
parameter so that the driver receives NULL, booleans and integers as such
rather than as text.
"""
from enum import Enum
from numbers import Integral
from typing import Any

import sqlalchemy as sa

__all__ = ['BindKind', 'infer_kind']


class BindKind(Enum):
    """Parameter kinds understood by the driver adapter."""
    NULL = 'null'
    BOOL = 'bool'
    INT = 'int'
    STR = 'str'

    @property
    def sa_type(self) -> sa.types.TypeEngine:
        """SQLAlchemy type used when binding a value of this kind."""
        return _SA_TYPES[self]


_SA_TYPES = {
    BindKind.NULL: sa.types.NullType(),
    BindKind.BOOL: sa.Boolean(),
    BindKind.INT: sa.Integer(),
    BindKind.STR: sa.String(),
}


def infer_kind(value: Any) -> BindKind:
    """Infer the bind kind for a value.

    bool is tested before Integral since bool is an int subclass.
    """
    if value is None:
        return BindKind.NULL
    if isinstance(value, bool):
        return BindKind.BOOL
    if isinstance(value, Integral):
        return BindKind.INT
    return BindKind.STR
