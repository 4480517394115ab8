"""
MySQL-specific strategy implementation.

Connects through SQLAlchemy with the PyMySQL driver and reads table columns
with DESCRIBE, whose `Field` column lists the columns in definition order.
"""
import logging
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbtable.sql import quote_identifier
from dbtable.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbtable.connection import Connection
    from dbtable.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('mysql')
class MySQLStrategy(DatabaseStrategy):
    """MySQL-specific operations.
    """

    def quote_identifier(self, identifier: str) -> str:
        return quote_identifier(identifier)

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for MySQL."""
        return sa.URL.create(
            drivername='mysql+pymysql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query={'charset': options.charset} if options.charset else {},
        )

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for MySQL."""
        connect_args: dict[str, Any] = {'program_name': options.appname}
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {'connect_args': connect_args}

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for MySQL connections."""
        return ['hostname', 'username', 'database']

    def describe_columns(self, cn: 'Connection', table: str) -> list[str]:
        """Get column names with DESCRIBE.
        """
        rows = cn.select(f'DESCRIBE {self.quote_identifier(table)}')
        logger.debug(f'DESCRIBE {table} returned {len(rows)} columns')
        return [row['Field'] for row in rows]
