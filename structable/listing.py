"""
Queries returning any number of records of the same class as a bound recorder's record.
"""

from typing import Callable, List

from pypika.queries import QueryBuilder

from .api import Describer
from .errors import ScanError
from .hooks import AfterLoader, dispatch
from .models import fill
from .queries import SelectQuery
from .recorder import Recorder


WhereFunc = Callable[[Describer, QueryBuilder], QueryBuilder]
"""
Modifier for the base `SELECT <columns> FROM <table>` query of `list_where()`.

It may add conditions, ordering or pagination.  Changing the column list will break scanning of the
results.  Raising aborts the listing before anything is executed.
"""


def list_records(recorder: Recorder, limit: int, offset: int = 0) -> List[Recorder]:
    """
    Fetch a page of rows from the recorder's table.
    """
    def paginate(desc: Describer, query: QueryBuilder) -> QueryBuilder:
        return query.limit(limit).offset(offset)
    return list_where(recorder, paginate)


def list_where(recorder: Recorder, fn: WhereFunc) -> List[Recorder]:
    """
    Fetch rows from the recorder's table, using a function to modify the base query.

    Each row is written into a new instance of the bound record's class (created without calling
    its `__init__`), bound to a copy of the recorder.  The recorders are returned in
    the order the database produced the rows.

    Every column is selected, keys included, so the listed records can be updated or deleted
    straight away.

    If a row can't be written into its record, a `ScanError` is raised holding the recorders
    completed so far.
    """
    query = SelectQuery(
        recorder.dialect, recorder.table_name, recorder.columns(True), paramstyle=recorder.paramstyle,
    )
    query.pk_query = fn(recorder, query.pk_query)
    record_type = type(recorder.record)
    found: List[Recorder] = []
    cursor = recorder.db.cursor()
    try:
        query.execute(cursor)
        while True:
            row = cursor.fetchone()
            if row is None:
                break
            record = record_type.__new__(record_type)
            bound = recorder.bind(recorder.table_name, record)
            try:
                fill(bound.field_references(True), row)
            except (ValueError, AttributeError) as ex:
                raise ScanError(len(found), found) from ex
            dispatch(record, AfterLoader)
            found.append(bound)
    finally:
        cursor.close()
    return found
