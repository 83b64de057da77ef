"""
Statement composition: each query class turns a table name plus column, value and predicate lists
into a `pypika` query, which is rendered with the dialect's placeholders and an ordered parameter
list.
"""

import logging
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union

import pypika
import pypika.functions
from pypika.queries import QueryBuilder
from pypika.terms import Criterion, EmptyCriterion, LiteralValue, Term, ValueWrapper

from .api import Cursor
from .errors import DialectError

if TYPE_CHECKING:
    from .dialects import Dialect


LOG = logging.getLogger(__name__)


Predicate = Union[str, Mapping[str, Any], Term]


class Value(Term):
    """
    Query parameter, rendered as a placeholder with its value collected separately.
    """

    is_aggregate = None

    def __init__(self, value: Any):
        super().__init__()
        self.value = value

    def get_sql(self, parameter: Optional[Any] = None, **kwargs: Any) -> str:
        if parameter is None:
            # Not rendering for execution, so show the literal (e.g. when logging).
            return ValueWrapper(self.value).get_sql(**kwargs)
        sql = parameter.get_sql(**kwargs)
        parameter.update_parameters(param_key=parameter.get_param_key(placeholder=sql), value=self.value)
        return sql

    def __repr__(self):
        return "<{}: {!r}>".format(self.__class__.__name__, self.value)


class Fragment(Criterion):
    """
    Literal SQL predicate, with a `?` marker standing in for each argument.

    Markers are replaced with the dialect's placeholders when rendered, so the same fragment works
    across dialects.  The SQL text is used verbatim -- don't build it from untrusted input -- and is
    wrapped in brackets so it can be combined with other criteria.
    """

    def __init__(self, sql: str, *args: Any):
        super().__init__()
        markers = sql.count("?")
        if markers != len(args):
            msg = "Predicate {!r} has {} markers but {} arguments"
            raise ValueError(msg.format(sql, markers, len(args)))
        self.sql = sql
        self.args = args

    def fields_(self):
        return set()

    def get_sql(self, subcriterion: bool = False, **kwargs: Any) -> str:
        head, *parts = self.sql.split("?")
        sql = head + "".join(
            Value(arg).get_sql(**kwargs) + part for arg, part in zip(self.args, parts)
        )
        # pypika only brackets nested combined criteria, so keep any operators in the text grouped.
        return "({})".format(sql)

    def __repr__(self):
        return "<{}: {!r} {!r}>".format(self.__class__.__name__, self.sql, self.args)


def equals(pk_table: pypika.Table, column: str, value: Any) -> Criterion:
    """
    Make a `column = value` clause, or `column IS NULL` / `column IN (...)` where appropriate.
    """
    field = pk_table[column]
    if value is None:
        return field.isnull()
    elif isinstance(value, (list, tuple, set, frozenset)):
        if not value:
            raise ValueError("No values to match for column {}".format(column))
        return field.isin([Value(item) for item in value])
    else:
        return field == Value(value)


def key_criterion(pk_table: pypika.Table, ids: Mapping[str, Any]) -> Criterion:
    """
    Make an equality conjunction across all of the given columns, in order.  A missing key value
    matches rows where the column is `NULL`.
    """
    return Criterion.all(equals(pk_table, column, value) for column, value in ids.items())


def where_clause(pk_table: pypika.Table, pred: Predicate, *args: Any) -> Term:
    """
    Convert a caller-supplied predicate into a `WHERE` clause.

    Accepts a SQL fragment with `?` markers and matching arguments, a mapping of columns to
    required values, or a ready-made `pypika` criterion.
    """
    if isinstance(pred, str):
        return Fragment(pred, *args)
    elif args:
        raise ValueError("Arguments are only accepted for SQL fragment predicates")
    elif isinstance(pred, Term):
        return pred
    elif isinstance(pred, Mapping):
        return Criterion.all(equals(pk_table, column, value) for column, value in pred.items())
    else:
        raise TypeError("Unsupported predicate {!r}".format(pred))


class _Query:

    pk_query: QueryBuilder

    def __init__(self, dialect: Type["Dialect"], table: str, paramstyle: Optional[str] = None):
        self.dialect = dialect
        self.table = table
        self.pk_table = pypika.Table(table)
        self.paramstyle = paramstyle

    def compile(self) -> Tuple[str, List[Any]]:
        """
        Render the query as SQL text, along with its parameters in placeholder order.
        """
        parameter = self.dialect.parameter(self.paramstyle)
        sql = self.pk_query.get_sql(parameter=parameter)
        return (sql, list(parameter.get_parameters()))

    def execute(self, cursor: Cursor) -> Cursor:
        """
        Perform the query against the database associated with the provided cursor.

        Errors raised by the driver are passed through untouched.
        """
        sql, params = self.compile()
        LOG.debug("%s %r", sql, params)
        cursor.execute(sql, params)
        return cursor

    def __repr__(self):
        return "<{}: {}>".format(self.__class__.__name__, self.pk_query)


class SelectQuery(_Query):
    """
    Representation of a `SELECT` SQL query over a list of columns.
    """

    def __init__(
        self, dialect: Type["Dialect"], table: str, columns: Sequence[str],
        where: Optional[Term] = None, limit: Optional[int] = None, offset: Optional[int] = None,
        paramstyle: Optional[str] = None,
    ):
        super().__init__(dialect, table, paramstyle)
        if not columns:
            raise ValueError("No columns to select from {}".format(table))
        self.columns = list(columns)
        self.pk_query = self._pk_query(where, limit, offset)

    def _pk_query(self, where: Optional[Term], limit: Optional[int], offset: Optional[int]):
        query: QueryBuilder = (
            self.dialect.query_builder
            .from_(self.pk_table)
            .select(*(self.pk_table[column] for column in self.columns))
        )
        if where is not None:
            query = query.where(where)
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return query


class ExistsQuery(_Query):
    """
    Representation of a `SELECT COUNT(*) > 0` SQL query, testing for matching rows.
    """

    def __init__(
        self, dialect: Type["Dialect"], table: str, where: Term, paramstyle: Optional[str] = None,
    ):
        super().__init__(dialect, table, paramstyle)
        self.pk_query = (
            self.dialect.query_builder
            .from_(self.pk_table)
            .select(pypika.functions.Count("*") > LiteralValue("0"))
            .where(where)
        )


class InsertQuery(_Query):
    """
    Representation of an `INSERT` SQL query for a single row, optionally returning columns of the
    new row where the dialect supports it.
    """

    def __init__(
        self, dialect: Type["Dialect"], table: str, columns: Sequence[str], values: Sequence[Any],
        returning: Iterable[str] = (), paramstyle: Optional[str] = None,
    ):
        super().__init__(dialect, table, paramstyle)
        self.columns = list(columns)
        self.values = list(values)
        self.returning = list(returning)
        self.pk_query = self._pk_query()

    def _pk_query(self):
        query = (
            self.dialect.query_builder
            .into(self.pk_table)
            .columns(*self.columns)
            .insert(tuple(Value(value) for value in self.values))
        )
        if self.returning:
            # Builders resolve unknown attributes as fields, so look on the class instead.
            if not callable(getattr(type(query), "returning", None)):
                raise DialectError("Dialect {} doesn't support RETURNING".format(self.dialect.name))
            query = query.returning(*(self.pk_table[column] for column in self.returning))
        return query


class UpdateQuery(_Query):
    """
    Representation of an `UPDATE` SQL query setting each given column.
    """

    def __init__(
        self, dialect: Type["Dialect"], table: str, updates: Mapping[str, Any], where: Term,
        paramstyle: Optional[str] = None,
    ):
        super().__init__(dialect, table, paramstyle)
        if not updates:
            raise ValueError("No columns to update on {}".format(table))
        self.updates = dict(updates)
        self.pk_query = self._pk_query(where)

    def _pk_query(self, where: Term):
        query: QueryBuilder = self.dialect.query_builder.update(self.pk_table)
        for column, value in self.updates.items():
            query = query.set(self.pk_table[column], Value(value))
        return query.where(where)


class DeleteQuery(_Query):
    """
    Representation of a `DELETE` SQL query.
    """

    def __init__(
        self, dialect: Type["Dialect"], table: str, where: Term, paramstyle: Optional[str] = None,
    ):
        super().__init__(dialect, table, paramstyle)
        if isinstance(where, EmptyCriterion):
            raise RuntimeError("Refusing to delete from {} without a condition".format(table))
        self.pk_query = (
            self.dialect.query_builder
            .from_(self.pk_table)
            .delete()
            .where(where)
        )
