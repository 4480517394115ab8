"""Row records returned by table fetches and accepted by insert/update."""
from collections.abc import Iterator, Mapping
from typing import Any

from libb import attrdict

__all__ = ['Row', 'row_from_record']


class Row:
    """One table record.

    Column values are reachable as attributes or by key:

        row = Row(Title='a', Body='b')
        row.Title == row['Title']

    A Row is not a Mapping; binders tell rows and plain
    dictionaries apart by type.
    """

    __slots__ = ('_fields',)

    def __init__(self, fields: Mapping[str, Any] | None = None, /, **kw: Any) -> None:
        object.__setattr__(self, '_fields', dict(fields or {}, **kw))

    def __getattr__(self, name: str) -> Any:
        if name.startswith('__') or name == '_fields':
            raise AttributeError(name)
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(f'Row has no column {name!r}') from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name == '_fields':
            object.__setattr__(self, name, value)
        else:
            self._fields[name] = value

    def __reduce__(self) -> tuple[type, tuple[dict[str, Any]]]:
        return (Row, (dict(self._fields),))

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._fields == other._fields
        return NotImplemented

    def __repr__(self) -> str:
        cols = ', '.join(f'{k}={v!r}' for k, v in self._fields.items())
        return f'Row({cols})'

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    def to_attrdict(self) -> attrdict:
        return attrdict(self._fields)


def row_from_record(record: Mapping[str, Any]) -> Row:
    """Map one fetched record (column name -> value) to a Row.
    """
    return Row(record)
