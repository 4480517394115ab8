import pytest
import sqlalchemy as sa
from dbtable.cache import Cache
from dbtable.strategy import DatabaseStrategy, register_strategy


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """In-memory SQLite stand-in for MySQL used by the test suite.

    SQLite accepts backtick-quoted identifiers and `LIMIT offset, count`, so
    the MySQL statement templates run unchanged.
    """

    def quote_identifier(self, identifier):
        return '`' + identifier.replace('`', '``') + '`'

    def build_connection_url(self, options):
        return sa.URL.create('sqlite', database=options.database)

    def get_engine_kwargs(self, options):
        return {}

    @classmethod
    def get_required_options(cls):
        return ['database']

    def describe_columns(self, cn, table):
        rows = cn.select('SELECT name FROM pragma_table_info(:table) ORDER BY cid', table=table)
        return [row['name'] for row in rows]


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear all caches before and after each test to ensure test isolation."""
    Cache.get_instance().clear_all()
    yield
    Cache.get_instance().clear_all()
