"""
Recorders bind a record to a table, and manage the persistence of that record.
"""

from copy import copy
import logging
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import pypika

from .api import Connection, Cursor
from .dialects import Dialect
from .hooks import AfterInserter, AfterLoader, AfterUpdater, BeforeDeleter, BeforeInserter, BeforeUpdater, dispatch
from .models import FieldDescriptor, FieldReference, fill, scan
from .queries import (
    DeleteQuery, ExistsQuery, Predicate, SelectQuery, UpdateQuery, _Query, key_criterion, where_clause,
)


LOG = logging.getLogger(__name__)


class Recorder:
    """
    Wrapper around a DB-API `Connection`, responsible for storing a single bound record.

    A fresh recorder only knows its connection and dialect; `bind()` attaches it to a table and a
    record, producing a new bound recorder.  The bound record is referenced, not copied: loads write
    into its attributes, and inserts and updates read from them.

    Operations run synchronously on a new cursor each time.  A bound recorder must not be shared
    between threads without a lock, as operations modify the record in place.
    """

    def __init__(
        self, db: Connection, dialect: Union[str, Type[Dialect]] = Dialect, paramstyle: Optional[str] = None,
    ):
        self._db = db
        self.dialect = Dialect.by_name(dialect)
        self.paramstyle = paramstyle
        self.inserter = self.dialect.insert_strategy()
        self._table: Optional[str] = None
        self._record: Any = None
        self.fields: Tuple[FieldDescriptor, ...] = ()
        self.keys: Tuple[FieldDescriptor, ...] = ()

    def __repr__(self):
        if self._table is None:
            target = "unbound"
        else:
            target = "{} ({})".format(self._table, self._record.__class__.__name__)
        return "<{}: {} {}>".format(self.__class__.__name__, target, self.dialect.__name__)

    def bind(self, table_name: str, record: Any) -> "Recorder":
        """
        Attach a copy of this recorder to a table and a record, and return it.

        The table name is used verbatim -- don't take it from untrusted input.  The record's class
        is inspected for column tags on first use.
        """
        bound = copy(self)
        bound._table = table_name
        bound._record = record
        bound.fields = scan(record)
        bound.keys = tuple(field for field in bound.fields if field.primary)
        LOG.debug("Bound %s to %s: %d fields, %d keys", record.__class__.__name__, table_name,
                  len(bound.fields), len(bound.keys))
        return bound

    @property
    def record(self) -> Any:
        """
        The bound record.
        """
        self._check_bound()
        return self._record

    @property
    def table_name(self) -> str:
        self._check_bound()
        assert self._table is not None
        return self._table

    @property
    def builder(self) -> Type[pypika.Query]:
        """
        Statement builder for the recorder's dialect.
        """
        return self.dialect.query_builder

    @property
    def db(self) -> Connection:
        return self._db

    @property
    def driver(self) -> str:
        """
        Flavor name of the recorder's dialect.
        """
        return self.dialect.name

    def _check_bound(self):
        if self._table is None:
            raise RuntimeError("Recorder isn't bound to a record")

    def key(self) -> List[str]:
        """
        Column names that make up the primary key.
        """
        return [field.column for field in self.keys]

    def columns(self, include_keys: bool) -> List[str]:
        """
        Column names of the bound record, optionally leaving out primary key columns.
        """
        return [field.column for field in self.fields if include_keys or not field.primary]

    def field_references(self, include_keys: bool) -> List[FieldReference]:
        """
        Accessors for the mapped fields of the bound record, in the same order as `columns()`.
        """
        record = self.record
        return [FieldReference(record, field) for field in self.fields if include_keys or not field.primary]

    def auto_references(self) -> List[FieldReference]:
        """
        Accessors for the fields whose values are generated by the database.
        """
        record = self.record
        return [FieldReference(record, field) for field in self.fields if field.auto]

    def column_values(
        self, include_keys: bool, include_auto: bool = True, omit_unset: bool = True,
    ) -> Tuple[List[str], List[Any]]:
        """
        Column names alongside the current values of the bound record, for writing.

        Unset optional fields are left out entirely when `omit_unset` is set.
        """
        columns: List[str] = []
        values: List[Any] = []
        for ref in self.field_references(include_keys):
            if not include_auto and ref.field.auto:
                continue
            elif omit_unset and ref.unset:
                continue
            columns.append(ref.field.column)
            values.append(ref.get())
        return (columns, values)

    def where_ids(self) -> Dict[str, Any]:
        """
        Mapping of primary key columns to the current key values of the bound record.
        """
        record = self.record
        return {field.column: getattr(record, field.name, None) for field in self.keys}

    def _key_where(self):
        if not self.keys:
            raise RuntimeError("Table {} has no primary key".format(self.table_name))
        return key_criterion(pypika.Table(self.table_name), self.where_ids())

    def _execute(self, query: _Query) -> None:
        cursor = self.db.cursor()
        try:
            query.execute(cursor)
        finally:
            cursor.close()

    def _fetch_one(self, query: _Query) -> Optional[Tuple[Any, ...]]:
        cursor: Cursor = self.db.cursor()
        try:
            query.execute(cursor)
            return cursor.fetchone()
        finally:
            cursor.close()

    def _load(self, query: SelectQuery, refs: List[FieldReference]) -> None:
        row = self._fetch_one(query)
        if row is None:
            raise LookupError("Expected one record but none found")
        fill(refs, row)
        dispatch(self.record, AfterLoader)

    def load(self) -> None:
        """
        Perform a `SELECT` query by primary key, and write the other columns into the bound record.

        Raises `LookupError` if no row matches.
        """
        query = SelectQuery(
            self.dialect, self.table_name, self.columns(False), self._key_where(),
            paramstyle=self.paramstyle,
        )
        self._load(query, self.field_references(False))

    def load_where(self, pred: Predicate, *args: Any) -> None:
        """
        Perform a `SELECT` query with a custom condition, and write every column (including keys)
        of the first matching row into the bound record.

        ```python
        recorder.load_where("number_of_legs = ?", 3)
        recorder.load_where({"material": "Steel"})
        ```
        """
        where = where_clause(pypika.Table(self.table_name), pred, *args)
        query = SelectQuery(
            self.dialect, self.table_name, self.columns(True), where, paramstyle=self.paramstyle,
        )
        self._load(query, self.field_references(True))

    def insert(self) -> None:
        """
        Perform an `INSERT` query to add the bound record as a new row.

        Auto-generated fields are never written, and unset optional fields are left to the column
        default.  How generated values are read back depends on the dialect.
        """
        record = self.record
        dispatch(record, BeforeInserter)
        self.inserter.insert(self)
        dispatch(record, AfterInserter)

    def update(self) -> None:
        """
        Perform an `UPDATE` query that writes every non-key field of the bound record to the row
        with matching primary key values.  Optional fields that are unset are written as `NULL`.

        A missing row is not an error, and no row is created.
        """
        record = self.record
        dispatch(record, BeforeUpdater)
        columns, values = self.column_values(include_keys=False, include_auto=False, omit_unset=False)
        query = UpdateQuery(
            self.dialect, self.table_name, dict(zip(columns, values)), self._key_where(),
            paramstyle=self.paramstyle,
        )
        self._execute(query)
        dispatch(record, AfterUpdater)

    def delete(self) -> None:
        """
        Perform a `DELETE` query for the row with matching primary key values.

        The fields of the bound record are left as they are.
        """
        dispatch(self.record, BeforeDeleter)
        query = DeleteQuery(self.dialect, self.table_name, self._key_where(), paramstyle=self.paramstyle)
        self._execute(query)

    def _exists(self, where) -> bool:
        query = ExistsQuery(self.dialect, self.table_name, where, paramstyle=self.paramstyle)
        row = self._fetch_one(query)
        return bool(row and row[0])

    def exists(self) -> bool:
        """
        Test if a row exists with primary key values matching the bound record.
        """
        return self._exists(self._key_where())

    def exists_where(self, pred: Predicate, *args: Any) -> bool:
        """
        Test if at least one row matches a custom condition.
        """
        return self._exists(where_clause(pypika.Table(self.table_name), pred, *args))
