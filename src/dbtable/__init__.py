"""
Generic table accessor for MySQL.

Open a connection, then a Table per table name; the Table reads the table's
columns and builds its statements from them:

    cn = dbtable.connect(hostname='localhost', username='web',
                         password='secret', database='site')
    posts = dbtable.Table(cn, 'posts')
    posts.insert({'Title': 'a', 'Body': 'b', 'Photo': 'x'})
    posts.fetch_count()
"""
__version__ = '0.1.0'

from dbtable.connection import Connection, connect
from dbtable.exceptions import ConnectionFailure, DatabaseError, DriverError
from dbtable.exceptions import MissingFieldError, QueryError, SchemaError
from dbtable.exceptions import ValidationError
from dbtable.options import DatabaseOptions
from dbtable.result import Result
from dbtable.row import Row, row_from_record
from dbtable.schema import TableSchema, describe
from dbtable.sql import QueryTemplates, build_templates
from dbtable.statement import Statement
from dbtable.table import Table
from dbtable.transaction import Transaction as transaction
from dbtable.types import BindKind

__all__ = [
    'connect',
    'Connection',
    'DatabaseOptions',
    'transaction',
    'Table',
    'Row',
    'row_from_record',
    'Result',
    'TableSchema',
    'describe',
    'QueryTemplates',
    'build_templates',
    'Statement',
    'BindKind',
    'DatabaseError',
    'ConnectionFailure',
    'SchemaError',
    'MissingFieldError',
    'DriverError',
    'QueryError',
    'ValidationError',
]
