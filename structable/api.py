"""
Partial typing protocols for DB-API 2.0, and for objects that can describe their table.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

import pypika
from typing_extensions import Protocol


class Cursor(Protocol):
    def close(self) -> None: ...
    def execute(self, operation: Any, parameters: Iterable[Any] = ...) -> Any: ...
    def fetchone(self) -> Optional[Tuple[Any, ...]]: ...
    def fetchall(self) -> Sequence[Tuple[Any, ...]]: ...
    lastrowid: Optional[int]


class Connection(Protocol):
    def cursor(self) -> Cursor: ...


class Describer(Protocol):
    """
    Something that can describe the table structure of its bound record.
    """

    @property
    def table_name(self) -> str: ...
    @property
    def builder(self) -> Type[pypika.Query]: ...
    @property
    def db(self) -> Connection: ...
    @property
    def driver(self) -> str: ...
    @property
    def record(self) -> Any: ...
    def columns(self, include_keys: bool) -> List[str]: ...
    def field_references(self, include_keys: bool) -> List[Any]: ...
    def where_ids(self) -> Dict[str, Any]: ...
    def key(self) -> List[str]: ...
