"""
Unit tests for prepared statement binding.
"""
import pytest
import sqlalchemy as sa
from dbtable.exceptions import MissingFieldError, QueryError
from dbtable.statement import Statement
from dbtable.types import BindKind


def test_params_in_declaration_order():
    """Declared parameters are listed once, in order of appearance"""
    stmt = Statement('UPDATE `t` SET `A` = :a, `B` = :b WHERE `ID` = :id OR `A` = :a')
    assert stmt.params == ('a', 'b', 'id')


def test_params_ignore_casts_and_literals():
    """Double colons and times inside literals are not parameters"""
    stmt = Statement("SELECT x::int, '10:30' FROM `t` WHERE `ID` = :id")
    assert stmt.params == ('id',)


def test_bind_accepts_leading_colon():
    """Parameter names may be given with or without the colon"""
    stmt = Statement('SELECT * FROM `t` WHERE `ID` = :id')
    stmt.bind(':id', 5)
    assert stmt.bound == {'id': (5, BindKind.INT)}


def test_bind_explicit_kind():
    """An explicit kind overrides inference"""
    stmt = Statement('SELECT * FROM `t` WHERE `ID` = :id')
    stmt.bind('id', '5', BindKind.INT)
    assert stmt.bound['id'] == ('5', BindKind.INT)


def test_bind_unknown_parameter():
    """Binding a name the SQL does not declare is an error"""
    stmt = Statement('SELECT * FROM `t` WHERE `ID` = :id')
    with pytest.raises(QueryError, match=':title'):
        stmt.bind('title', 'x')


def test_rebind_replaces_value():
    """Binding the same parameter twice keeps the last value"""
    stmt = Statement('SELECT * FROM `t` WHERE `ID` = :id')
    stmt.bind('id', 1)
    stmt.bind('id', 2)
    assert stmt.bound['id'] == (2, BindKind.INT)


def test_clause_requires_all_params():
    """A partially bound statement cannot be executed"""
    stmt = Statement('INSERT INTO `t` (`A`, `B`) VALUES (:a, :b)')
    stmt.bind('a', 1)

    assert stmt.unbound == ['b']
    with pytest.raises(MissingFieldError) as exc_info:
        stmt.clause()
    assert exc_info.value.missing == ['b']


def test_clause_carries_types():
    """Each bound parameter gets the SQLAlchemy type of its kind"""
    stmt = Statement('INSERT INTO `t` (`A`, `B`, `C`) VALUES (:a, :b, :c)')
    stmt.bind('a', 1)
    stmt.bind('b', 'x')
    stmt.bind('c', True)

    clause = stmt.clause()

    assert isinstance(clause, sa.TextClause)
    params = clause._bindparams
    assert isinstance(params['a'].type, sa.Integer)
    assert isinstance(params['b'].type, sa.String)
    assert isinstance(params['c'].type, sa.Boolean)
    assert params['b'].value == 'x'


def test_clause_without_params():
    """Statements without placeholders are executable as is"""
    clause = Statement('SELECT COUNT(*) FROM `t`').clause()
    assert str(clause) == 'SELECT COUNT(*) FROM `t`'


def test_debug_dump_params():
    """The dump lists every declared parameter and its binding"""
    stmt = Statement('UPDATE `t` SET `A` = :a WHERE `ID` = :id')
    stmt.bind('a', None)

    dump = stmt.debug_dump_params().splitlines()

    assert dump[0] == f'SQL: [{len(stmt.sql)}] {stmt.sql}'
    assert dump[1] == 'Params: 2'
    assert dump[2] == '  :a kind=null value=None'
    assert dump[3] == '  :id unbound'


if __name__ == '__main__':
    __import__('pytest').main([__file__])
