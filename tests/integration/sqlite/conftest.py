"""
Fixtures for SQLite-backed table tests.
"""
import dbtable
import pytest

CREATE_POSTS = """
CREATE TABLE posts (
    ID INTEGER PRIMARY KEY AUTOINCREMENT,
    Title TEXT NOT NULL,
    Body TEXT,
    Photo TEXT,
    DataIns TEXT
)
"""

CREATE_COUNTERS = """
CREATE TABLE counters (
    ID INTEGER PRIMARY KEY AUTOINCREMENT,
    Name TEXT NOT NULL UNIQUE,
    Hits INTEGER,
    Active BOOLEAN
)
"""

# Lets a test make one delete fail inside a batch
CREATE_LOCK_TRIGGER = """
CREATE TRIGGER posts_locked BEFORE DELETE ON posts
WHEN OLD.Title = 'locked'
BEGIN
    SELECT RAISE(ABORT, 'row is locked');
END
"""


@pytest.fixture
def sqlite_conn():
    """In-memory SQLite connection with a seeded posts table"""
    cn = dbtable.connect({
        'drivername': 'sqlite',
        'database': ':memory:'
    })

    cn.execute_sql(CREATE_POSTS)
    cn.execute_sql(CREATE_COUNTERS)
    cn.execute_sql(CREATE_LOCK_TRIGGER)

    insert_data = """
    INSERT INTO posts (Title, Body, Photo, DataIns) VALUES
    ('First', 'one', 'a.jpg', '2020-01-01'),
    ('Second', 'two', 'b.jpg', '2020-01-02'),
    ('Third', 'three', NULL, '2020-01-03')
    """
    cn.execute_sql(insert_data)

    yield cn
    cn.close()


@pytest.fixture
def posts(sqlite_conn):
    """Table handle on the seeded posts table"""
    return dbtable.Table(sqlite_conn, 'posts')


@pytest.fixture
def counters(sqlite_conn):
    """Table handle on the empty counters table (no audit column)"""
    return dbtable.Table(sqlite_conn, 'counters')
