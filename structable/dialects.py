"""
Different database servers use different placeholders for query parameters, or different ways to
hand back generated keys after an insert.  Each `Dialect` encapsulates this metadata for one
database type; it can also be subclassed to add support for alternative databases where the base
class is insufficient.
"""

import logging
from typing import Any, Callable, Dict, Optional, Type, Union

import pypika
import pypika.dialects
from pypika.queries import QueryBuilder
from pypika.terms import FormatParameter, ListParameter, NumericParameter, QmarkParameter

from .strategies import InsertStrategy, LastInsertIdStrategy, ReturningStrategy


LOG = logging.getLogger(__name__)


class DollarParameter(ListParameter):
    """Numbered style, e.g. ...WHERE name=$1"""

    def get_sql(self, **kwargs: Any) -> str:
        return "${placeholder}".format(placeholder=self.placeholder)


PARAMSTYLES: Dict[str, Callable[[], ListParameter]] = {
    "qmark": QmarkParameter,
    "format": FormatParameter,
    "numeric": NumericParameter,
    "dollar": DollarParameter,
}
"""Supported DB-API parameter styles, with the `pypika` parameter type that renders them."""


class _DefaultValuesQueryBuilder(QueryBuilder):

    def _values_sql(self, **kwargs: Any) -> str:
        # Omitting fields may leave a row with no inputs at all, which can be written using
        # DEFAULT VALUES instead of the values array, but only for one row.
        if len(self._values) == 1 and not self._values[0]:
            return " DEFAULT VALUES"
        elif any(not values for values in self._values):
            raise ValueError("Can't represent multiple rows with no columns")
        else:
            return super()._values_sql(**kwargs)


class _PlainQuery(pypika.Query):

    @classmethod
    def _builder(cls, **kwargs: Any) -> QueryBuilder:
        return _PlainQueryBuilder(**kwargs)


class _PlainQueryBuilder(QueryBuilder):

    # Table and column names are passed through verbatim.
    QUOTE_CHAR = None
    QUERY_CLS = _PlainQuery


class _MySQLQuery(pypika.MySQLQuery):

    @classmethod
    def _builder(cls, **kwargs: Any) -> pypika.dialects.MySQLQueryBuilder:
        return _MySQLQueryBuilder(**kwargs)


class _MySQLQueryBuilder(pypika.dialects.MySQLQueryBuilder):

    QUOTE_CHAR = None
    QUERY_CLS = _MySQLQuery


class _SQLiteQuery(pypika.dialects.SQLLiteQuery):

    @classmethod
    def _builder(cls, **kwargs: Any) -> pypika.dialects.SQLLiteQueryBuilder:
        return _SQLiteQueryBuilder(**kwargs)


class _SQLiteQueryBuilder(_DefaultValuesQueryBuilder, pypika.dialects.SQLLiteQueryBuilder):

    QUOTE_CHAR = None
    QUERY_CLS = _SQLiteQuery


class _PostgreSQLQuery(pypika.dialects.PostgreSQLQuery):

    @classmethod
    def _builder(cls, **kwargs: Any) -> pypika.dialects.PostgreSQLQueryBuilder:
        return _PostgreSQLQueryBuilder(**kwargs)


class _PostgreSQLQueryBuilder(_DefaultValuesQueryBuilder, pypika.dialects.PostgreSQLQueryBuilder):

    QUOTE_CHAR = None
    QUERY_CLS = _PostgreSQLQuery


class Dialect:
    """
    Metadata for a database dialect.  The default behaves like MySQL.
    """

    name = "default"
    """Flavor name, as passed by callers to select a dialect."""

    query_builder: Type[pypika.Query] = _PlainQuery
    """Specialisation of `pypika.Query`, if one exists for the database type."""

    paramstyle = "qmark"
    """Placeholder style for query parameters, one of the keys of `PARAMSTYLES`."""

    insert_strategy: Type[InsertStrategy] = LastInsertIdStrategy
    """How an auto-generated key is read back after an `INSERT`."""

    @classmethod
    def parameter(cls, paramstyle: Optional[str] = None) -> ListParameter:
        """
        Create a parameter collector for one query, using the dialect's placeholder style unless
        overridden (e.g. to match a driver's own `paramstyle`).
        """
        style = paramstyle or cls.paramstyle
        try:
            factory = PARAMSTYLES[style]
        except KeyError:
            raise ValueError("Unknown paramstyle {!r}".format(style)) from None
        return factory()

    @staticmethod
    def by_name(name: Union[str, Type["Dialect"]]) -> Type["Dialect"]:
        """
        Look up a dialect by its flavor name, falling back to the default dialect.
        """
        if isinstance(name, type) and issubclass(name, Dialect):
            return name
        try:
            return DIALECTS[name.lower()]
        except KeyError:
            LOG.warning("Unknown dialect %r, using default", name)
            return Dialect


class MySQLDialect(Dialect):
    """
    Metadata for MySQL database connections.

    Python MySQL drivers use the `format` paramstyle, which can be set when creating a recorder.
    """

    name = "mysql"

    query_builder = _MySQLQuery


class PostgreSQLDialect(Dialect):
    """
    Metadata for PostgreSQL database connections.

    Inserts use a `RETURNING` clause to refresh every field of the record, including any values
    filled in by column defaults.
    """

    name = "postgres"

    query_builder = _PostgreSQLQuery

    paramstyle = "dollar"

    insert_strategy = ReturningStrategy


class SQLiteDialect(Dialect):
    """
    Metadata for SQLite database connections.
    """

    name = "sqlite"

    query_builder = _SQLiteQuery


DIALECTS: Dict[str, Type[Dialect]] = {
    "default": Dialect,
    "mysql": MySQLDialect,
    "postgres": PostgreSQLDialect,
    "postgresql": PostgreSQLDialect,
    "sqlite": SQLiteDialect,
    "sqlite3": SQLiteDialect,
}
"""Known flavor names."""
