"""
Ways of writing a bound record as a new row, and reading back the values the database generated
for it.  Each dialect picks one strategy.
"""

from typing import TYPE_CHECKING

from .errors import DialectError
from .models import fill
from .queries import InsertQuery

if TYPE_CHECKING:
    from .recorder import Recorder


class InsertStrategy:
    """
    Base class for insert behaviour.
    """

    def insert(self, recorder: "Recorder") -> None:
        """
        Perform an `INSERT` of the recorder's bound record, updating it with any generated values.
        """
        raise NotImplementedError

    def __repr__(self):
        return "<{}>".format(self.__class__.__name__)


class LastInsertIdStrategy(InsertStrategy):
    """
    Execute the insert, then copy the driver's last row ID into the single auto-generated field.
    """

    def insert(self, recorder: "Recorder") -> None:
        autos = recorder.auto_references()
        if len(autos) > 1:
            names = ", ".join(ref.field.name for ref in autos)
            raise DialectError("Can't assign last insert ID to multiple fields ({})".format(names))
        columns, values = recorder.column_values(include_keys=True, include_auto=False)
        query = InsertQuery(
            recorder.dialect, recorder.table_name, columns, values, paramstyle=recorder.paramstyle,
        )
        cursor = recorder.db.cursor()
        try:
            query.execute(cursor)
            last = getattr(cursor, "lastrowid", None)
        finally:
            cursor.close()
        if not autos:
            return
        if last in (None, -1):
            raise DialectError("Could not get last insert ID. Did you set the db flavor?")
        autos[0].set(last)


class ReturningStrategy(InsertStrategy):
    """
    Execute the insert with a `RETURNING` clause, and refresh every field of the record from the
    returned row -- this also picks up values filled in by column defaults.
    """

    def insert(self, recorder: "Recorder") -> None:
        columns, values = recorder.column_values(include_keys=True, include_auto=False)
        query = InsertQuery(
            recorder.dialect, recorder.table_name, columns, values,
            returning=recorder.columns(True), paramstyle=recorder.paramstyle,
        )
        cursor = recorder.db.cursor()
        try:
            query.execute(cursor)
            row = cursor.fetchone()
        finally:
            cursor.close()
        if row is None:
            raise LookupError("Expected one record but none found")
        fill(recorder.field_references(True), row)
