"""
Transaction scope for a connection.
"""
import logging
from typing import Any

from dbtable.connection import Connection

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager for running multiple statements in a transaction.

    Commits when the block exits normally and rolls back when it raises.
    Nested transactions on the same connection are not supported.

    Examples
        with Transaction(cn):
            posts.insert({...})
            posts.delete(7)
    """

    def __init__(self, cn: Connection) -> None:
        self.cn = cn

    def __enter__(self) -> 'Transaction':
        self.cn.begin_transaction()
        return self

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        if exc_type is not None:
            logger.warning(f'Rolling back the current transaction: {value}')
            self.cn.rollback()
        else:
            self.cn.commit()
