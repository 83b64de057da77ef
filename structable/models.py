"""
Infrastructure for describing which attributes of a Python class map to which database columns.

A record is any class whose attributes carry a column tag, either as an `Annotated` extra:

```python
class Stool:
    id: Annotated[int, Column("id,PRIMARY_KEY,AUTO_INCREMENT")]
    legs: Annotated[int, Column("number_of_legs")]
    color: Annotated[Optional[str], Column("color")]
    ignored: str  # not stored
```

or as dataclass field metadata, under the `stbl` key:

```python
@dataclass
class Fence:
    id: int = field(default=0, metadata={"stbl": "id,PRIMARY_KEY,SERIAL"})
```

Attributes without a tag are invisible to the mapper.
"""

import dataclasses
from functools import lru_cache
import logging
import sys
from typing import Any, ClassVar, Dict, List, NamedTuple, Optional, Sequence, Tuple, Type, Union

from typing_extensions import Annotated, get_args, get_origin, get_type_hints

from .errors import FieldAssignmentError


if sys.version_info >= (3, 10):
    from types import UnionType
    _UNION_TYPES: Tuple[Any, ...] = (Union, UnionType)
else:
    _UNION_TYPES = (Union,)


LOG = logging.getLogger(__name__)


TAG = "stbl"
"""Metadata key used to tag dataclass fields."""

PRIMARY_KEY = frozenset(("PRIMARY_KEY", "PRIMARY KEY"))
AUTO_INCREMENT = frozenset(("AUTO_INCREMENT", "SERIAL", "AUTO INCREMENT"))


class Column:
    """
    Column tag for a record attribute, of the form `column_name[,PRIMARY_KEY][,AUTO_INCREMENT]`.

    The column name is passed verbatim to the database, so must never come from untrusted input.
    """

    def __init__(self, tag: str):
        self.tag = tag

    def __repr__(self):
        return "<{}: {!r}>".format(self.__class__.__name__, self.tag)


class FieldDescriptor(NamedTuple):
    """
    Static description of one mapped attribute.
    """

    name: str
    """Attribute name on the record."""
    column: str
    """Database column name."""
    primary: bool = False
    """Part of the primary key."""
    auto: bool = False
    """Generated by the database, never written by the mapper."""
    nullable: bool = False
    """Declared as `Optional`, so omitted from inserts whilst unset."""


def parse_tag(name: str, tag: str) -> List[str]:
    """
    Split a column tag into its parts, falling back to the attribute name if no column is given.
    """
    parts = tag.split(",")
    if not parts[0]:
        parts[0] = name
    return parts


def describe(name: str, tag: str, nullable: bool = False) -> FieldDescriptor:
    """
    Build the descriptor for a single attribute from its tag.  Unknown keywords are ignored.
    """
    column, *flags = parse_tag(name, tag)
    primary = auto = False
    for flag in flags:
        flag = flag.strip()
        if flag in PRIMARY_KEY:
            primary = True
        elif flag in AUTO_INCREMENT:
            auto = True
    return FieldDescriptor(name, column, primary, auto, nullable)


def _unwrap(hint: Any) -> Tuple[Optional[Column], bool]:
    column: Optional[Column] = None
    nullable = False
    if get_origin(hint) is Annotated:
        hint, *extras = get_args(hint)
        column = next((extra for extra in extras if isinstance(extra, Column)), None)
    if get_origin(hint) in _UNION_TYPES:
        args = get_args(hint)
        nullable = type(None) in args
        for arg in args:
            if column is None and get_origin(arg) is Annotated:
                column, _ = _unwrap(arg)
    return column, nullable


@lru_cache(maxsize=None)
def scan_fields(record_type: Type[Any]) -> Tuple[FieldDescriptor, ...]:
    """
    Collect descriptors for each tagged attribute of a record class, in declaration order.

    Results are cached per class, so each class is only inspected once.
    """
    metadata: Dict[str, str] = {}
    if dataclasses.is_dataclass(record_type):
        for item in dataclasses.fields(record_type):
            if TAG in item.metadata:
                metadata[item.name] = item.metadata[TAG]
    fields: List[FieldDescriptor] = []
    columns: Dict[str, str] = {}
    for name, hint in get_type_hints(record_type, include_extras=True).items():
        if get_origin(hint) is ClassVar:
            continue
        column, nullable = _unwrap(hint)
        if column:
            tag = column.tag
        elif name in metadata:
            tag = metadata[name]
        else:
            continue
        field = describe(name, tag, nullable)
        if field.column in columns:
            LOG.warning("Column %r of %s mapped twice (%s, %s)", field.column,
                        record_type.__name__, columns[field.column], name)
        columns[field.column] = name
        fields.append(field)
    return tuple(fields)


def scan(record: Any) -> Tuple[FieldDescriptor, ...]:
    """
    Collect descriptors for the class of the given record.
    """
    return scan_fields(type(record))


class FieldReference:
    """
    Accessor for one mapped attribute of one record instance.
    """

    __slots__ = ("record", "field")

    def __init__(self, record: Any, field: FieldDescriptor):
        self.record = record
        self.field = field

    @property
    def unset(self) -> bool:
        """
        Whether this is an optional attribute that currently holds no value.
        """
        return self.field.nullable and self.get() is None

    def get(self) -> Any:
        return getattr(self.record, self.field.name, None)

    def set(self, value: Any) -> None:
        try:
            setattr(self.record, self.field.name, value)
        except AttributeError as ex:
            raise FieldAssignmentError(self.field.name, value) from ex

    def __repr__(self):
        return "<{}: {}.{} ({})>".format(
            self.__class__.__name__, self.record.__class__.__name__, self.field.name, self.field.column,
        )


def fill(refs: Sequence[FieldReference], row: Sequence[Any]) -> None:
    """
    Write each value of a result row into the matching field reference.
    """
    if len(row) != len(refs):
        raise ValueError("Expected {} columns but row has {}".format(len(refs), len(row)))
    for ref, value in zip(refs, row):
        ref.set(value)
