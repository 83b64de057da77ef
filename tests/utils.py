from inspect import isfunction
import json
import os
import sqlite3
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple, Type
from unittest import TestCase

try:
    import pymysql
except ImportError:
    pymysql = None

try:
    import psycopg
except ImportError:
    psycopg = None

from structable.dialects import Dialect, MySQLDialect, PostgreSQLDialect, SQLiteDialect
from structable.recorder import Recorder


Row = Tuple[Any, ...]


class StubCursor:
    """
    Cursor for `StubConnection`, serving the connection's queued results one `execute()` at a time.
    """

    def __init__(self, conn: "StubConnection"):
        self.conn = conn
        self.rows: List[Row] = []
        self.lastrowid: Optional[int] = None
        self.closed = False

    def execute(self, sql: str, params: Sequence[Any] = ()):
        self.conn.executed.append((sql, list(params)))
        self.rows = list(self.conn.results.pop(0)) if self.conn.results else []
        self.lastrowid = self.conn.lastrowid

    def fetchone(self) -> Optional[Row]:
        return self.rows.pop(0) if self.rows else None

    def fetchall(self) -> List[Row]:
        rows, self.rows = self.rows, []
        return rows

    def close(self):
        self.closed = True


class StubConnection:
    """
    DB-API connection that records each statement, and hands back preset result rows.
    """

    def __init__(self, *results: Sequence[Row], lastrowid: Optional[int] = None):
        self.results = list(results)
        self.lastrowid = lastrowid
        self.executed: List[Tuple[str, List[Any]]] = []
        self.cursors: List[StubCursor] = []

    def cursor(self) -> StubCursor:
        cursor = StubCursor(self)
        self.cursors.append(cursor)
        return cursor

    def close(self):
        pass

    @property
    def last(self) -> Tuple[str, List[Any]]:
        return self.executed[-1]


class Backend(NamedTuple):
    conn: Any
    dialect: Type[Dialect]
    paramstyle: Optional[str] = None

    def recorder(self) -> Recorder:
        return Recorder(self.conn, self.dialect, self.paramstyle)

    def run(self, *statements: str):
        cursor = self.conn.cursor()
        try:
            for statement in statements:
                cursor.execute(statement)
        finally:
            cursor.close()


Schema = Dict[str, Sequence[str]]
BackendTestMethod = Callable[[TestCase, Backend], None]
TestMethod = Callable[[TestCase], None]


def dialect_methods(
    fn: BackendTestMethod, backends: Dict[str, Backend], schema: Schema, tables: Sequence[str],
) -> Tuple[TestMethod, ...]:
    def run_test(self: TestCase, key: str, factory: Callable[[], Backend]) -> None:
        try:
            backend = backends[key]
        except KeyError:
            backend = backends.setdefault(key, factory())
        backend.run(*schema[backend.dialect.name])
        try:
            fn(self, backend)
        finally:
            backend.run(*("DROP TABLE {}".format(table) for table in tables))
    def sqlite(self: TestCase):
        run_test(self, "sqlite", lambda: Backend(sqlite3.connect(":memory:", isolation_level=None), SQLiteDialect))
    def postgresql(self: TestCase):
        if not psycopg:
            self.skipTest("No PostgreSQL driver installed (psycopg)")
        pgsql_conn = os.getenv("STRUCTABLE_PGSQL_CONN")
        if not pgsql_conn:
            self.skipTest("No PostgreSQL connection configured (STRUCTABLE_PGSQL_CONN)")
        run_test(self, "postgresql", lambda: Backend(
            psycopg.connect(autocommit=True, **json.loads(pgsql_conn)), PostgreSQLDialect, "format",
        ))
    def mysql(self: TestCase):
        if not pymysql:
            self.skipTest("No MySQL driver installed (pymysql)")
        mysql_conn = os.getenv("STRUCTABLE_MYSQL_CONN")
        if not mysql_conn:
            self.skipTest("No MySQL connection configured (STRUCTABLE_MYSQL_CONN)")
        run_test(self, "mysql", lambda: Backend(
            pymysql.connect(autocommit=True, **json.loads(mysql_conn)), MySQLDialect, "format",
        ))
    return sqlite, postgresql, mysql


def with_dialects(schema: Schema, *tables: str):
    """
    Run each test method once per database, passing a `Backend` with the schema set up.

    The schema maps dialect names to `CREATE TABLE` statements; the given tables are dropped after
    each test.
    """
    def outer(cls: Type[TestCase]):
        functions: Dict[str, Tuple[TestMethod, ...]] = {}
        backends: Dict[str, Backend] = {}
        tear_down: Optional[Callable[[], None]] = getattr(cls, "tearDownClass")
        def tearDownClass(cls):
            if tear_down:
                tear_down()
            for backend in backends.values():
                backend.conn.close()
        cls.tearDownClass = classmethod(tearDownClass)
        for name, member in vars(cls).items():
            if isfunction(member) and name.startswith("test"):
                functions[name] = dialect_methods(member, backends, schema, tables)
        for name, methods in tuple(functions.items()):
            for method in methods:
                setattr(cls, "{}__{}".format(name, method.__name__), method)
            delattr(cls, name)
        return cls
    return outer
