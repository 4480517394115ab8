"""
Base strategy interface for dialect-specific operations.

A strategy knows how to reach one kind of database (connection URL, engine
and driver arguments, required options) and how to ask it for a table's
columns. The rest of the package talks to the database only through the
Connection adapter and these few strategy methods.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbtable.cache import cacheable_strategy

if TYPE_CHECKING:
    from dbtable.connection import Connection
    from dbtable.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    @cacheable_strategy('table_columns', ttl=300, maxsize=50)
    def get_columns(self, cn: 'Connection', table: str,
                    bypass_cache: bool = False) -> tuple[str, ...]:
        """Get all columns for a table in definition order.

        Args:
            cn: Database connection
            table: Table name to get columns for
            bypass_cache: If True, query the database and refresh the cache

        Returns
            Column names as the database reports them; empty if the table
            does not exist
        """
        return tuple(self.describe_columns(cn, table))

    @abstractmethod
    def describe_columns(self, cn: 'Connection', table: str) -> list[str]:
        """Query the database for a table's column names.

        Args:
            cn: Database connection
            table: Table name

        Returns
            Column names in definition order
        """

    @abstractmethod
    def quote_identifier(self, identifier: str) -> str:
        """Quote a table or column name for this dialect."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the database connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            SQLAlchemy URL
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            Dictionary of keyword arguments for create_engine
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.

        Returns
            List of field names that must have non-None/non-zero values
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Args:
            options: DatabaseOptions to validate

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field, None):
                raise ValueError(f'{field} is required for {cls.__name__}')
