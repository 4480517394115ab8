"""
Outcome of a mutating table operation.

insert, update and delete never raise for driver failures; they return a
Result that is truthy on success and carries the DatabaseError otherwise.
"""
from dataclasses import dataclass, field
from typing import Self

from dbtable.exceptions import DatabaseError

__all__ = ['Result']


@dataclass(frozen=True)
class Result:
    """Success or failure of one insert, update or delete call.

    Attributes
        rowcount: Rows affected (0 on failure)
        lastrowid: Auto-increment id generated by an insert
        error: The error that made the call fail
        failed: For batch deletes, the error raised for each failed id
    """
    rowcount: int = 0
    lastrowid: int | None = None
    error: DatabaseError | None = None
    failed: dict[int, DatabaseError] = field(default_factory=dict)

    @classmethod
    def success(cls, rowcount: int = 0, lastrowid: int | None = None) -> Self:
        return cls(rowcount=rowcount, lastrowid=lastrowid)

    @classmethod
    def failure(cls, error: DatabaseError,
                failed: dict[int, DatabaseError] | None = None) -> Self:
        return cls(error=error, failed=dict(failed or {}))

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> Self:
        """Raise the carried error, or return self when the call succeeded."""
        if self.error is not None:
            raise self.error
        return self
