"""
Driver adapter behaviour of Connection.
"""
import dbtable
import pytest
from dbtable import BindKind, DriverError, MissingFieldError, QueryError


def test_prepare_bind_execute_fetch(sqlite_conn):
    """The prepare/bind/execute/fetch cycle"""
    stmt = sqlite_conn.prepare('SELECT Title FROM posts WHERE ID = :id')
    sqlite_conn.bind_param(stmt, ':id', 2, BindKind.INT)

    assert sqlite_conn.execute(stmt) == 1
    assert sqlite_conn.fetch_all() == [{'Title': 'Second'}]
    assert sqlite_conn.fetch_one() == {'Title': 'Second'}


def test_fetch_one_empty(sqlite_conn):
    """fetch_one is None when the query returned nothing"""
    assert sqlite_conn.select_row_or_none('SELECT * FROM posts WHERE ID = :id', id=99) is None
    assert sqlite_conn.fetch_all() == []


def test_row_count_and_last_insert_id(sqlite_conn):
    """Row count and last insert id describe the last statement"""
    sqlite_conn.execute_sql("INSERT INTO posts (Title) VALUES ('x')")
    assert sqlite_conn.last_insert_id() == 4
    assert sqlite_conn.row_count() == 1

    assert sqlite_conn.execute_sql("UPDATE posts SET Body = 'y'") == 4
    assert sqlite_conn.row_count() == 4


def test_unbound_parameter_never_executes(sqlite_conn):
    """A statement with an unbound parameter is refused"""
    stmt = sqlite_conn.prepare('SELECT * FROM posts WHERE ID = :id AND Title = :title')
    sqlite_conn.bind_param(stmt, 'id', 1)
    calls = sqlite_conn.calls

    with pytest.raises(MissingFieldError) as exc_info:
        sqlite_conn.execute(stmt)

    assert exc_info.value.missing == ['title']
    assert sqlite_conn.calls == calls


def test_unknown_parameter_rejected(sqlite_conn):
    """Binding a name the statement does not declare raises"""
    stmt = sqlite_conn.prepare('SELECT * FROM posts WHERE ID = :id')
    with pytest.raises(QueryError):
        sqlite_conn.bind_param(stmt, 'title', 'x')


def test_driver_error_wraps_failure(sqlite_conn):
    """Driver failures surface as DriverError with the statement text"""
    with pytest.raises(DriverError) as exc_info:
        sqlite_conn.execute_sql('SELECT * FROM missing_table')

    assert 'missing_table' in str(exc_info.value)
    assert exc_info.value.sql == 'SELECT * FROM missing_table'

    assert sqlite_conn.select('SELECT COUNT(*) AS n FROM posts') == [{'n': 3}]


def test_describe_table(sqlite_conn):
    """describe_table reports every column including the key"""
    assert sqlite_conn.describe_table('posts') == ('ID', 'Title', 'Body', 'Photo', 'DataIns')
    assert sqlite_conn.describe_table('missing_table') == ()


def test_describe_table_is_cached(sqlite_conn):
    """Column lists are cached until bypassed"""
    assert len(sqlite_conn.describe_table('posts')) == 5
    sqlite_conn.execute_sql('ALTER TABLE posts ADD COLUMN Extra TEXT')

    assert len(sqlite_conn.describe_table('posts')) == 5
    assert len(sqlite_conn.describe_table('posts', bypass_cache=True)) == 6
    assert len(sqlite_conn.describe_table('posts')) == 6


def test_table_bypass_cache(sqlite_conn):
    """A Table can force a fresh column list"""
    dbtable.Table(sqlite_conn, 'posts')
    sqlite_conn.execute_sql('ALTER TABLE posts ADD COLUMN Extra TEXT')

    assert 'Extra' not in dbtable.Table(sqlite_conn, 'posts').columns
    assert 'Extra' in dbtable.Table(sqlite_conn, 'posts', bypass_cache=True).columns


def test_debug_dump_params(sqlite_conn):
    """debug_dump_params lists each parameter with its kind"""
    stmt = sqlite_conn.prepare('SELECT * FROM posts WHERE ID = :id AND Title = :title')
    sqlite_conn.bind_param(stmt, 'id', 1)

    dump = sqlite_conn.debug_dump_params(stmt)

    assert ':id kind=int value=1' in dump
    assert ':title unbound' in dump


def test_call_statistics(sqlite_conn):
    """Executed statements are counted"""
    calls = sqlite_conn.calls
    sqlite_conn.select('SELECT 1 AS one')
    assert sqlite_conn.calls == calls + 1


def test_table_open_owns_connection():
    """Table.open connects and closes its own connection"""
    with dbtable.Table.open('sqlite_master', drivername='sqlite', database=':memory:',
                            primary_key='name', audit_column=None) as table:
        cn = table.cn
        assert table.columns == ('type', 'tbl_name', 'rootpage', 'sql')
    assert cn.closed


if __name__ == '__main__':
    __import__('pytest').main([__file__])
