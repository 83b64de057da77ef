"""
Exceptions raised by the mapper itself.  Errors from the database driver are never wrapped, and
propagate unchanged from the DB-API cursor.
"""

from typing import Any, List


class StructableError(Exception):
    """
    Base class for errors raised by this package.
    """


class DialectError(StructableError):
    """
    The database driver couldn't provide something the selected dialect relies on, which usually
    means the dialect doesn't match the driver.
    """


class FieldAssignmentError(StructableError, AttributeError):
    """
    A value read from the database couldn't be written into a field of the bound record.
    """

    def __init__(self, name: str, value: Any):
        super().__init__("Could not set {} to returned value {!r}".format(name, value))
        self.name = name
        self.value = value


class ScanError(StructableError):
    """
    A row of a list query couldn't be scanned into a new record.

    Records scanned before the failing row are kept in `records`.
    """

    def __init__(self, pos: int, records: List[Any]):
        super().__init__("Failed to scan row {}".format(pos))
        self.pos = pos
        self.records = records
