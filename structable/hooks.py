"""
Optional lifecycle callbacks that a record class may implement.

A hook signals failure by raising, which aborts the operation and propagates the exception to the
caller as-is.  "Before" hooks run ahead of the statement, so a failure means nothing is written;
"after" hooks run once the statement has completed, and a failure there does not undo it.

```python
class User:
    name: Annotated[str, Column("name")]

    def before_insert(self):
        if not self.name:
            raise ValueError("Name is mandatory")
```
"""

from typing import Any, Type

from typing_extensions import Protocol, runtime_checkable


@runtime_checkable
class AfterLoader(Protocol):
    """Called after `load()` and `load_where()`."""
    def after_load(self) -> None: ...


@runtime_checkable
class BeforeInserter(Protocol):
    """Called before `insert()`."""
    def before_insert(self) -> None: ...


@runtime_checkable
class AfterInserter(Protocol):
    """Called after `insert()`."""
    def after_insert(self) -> None: ...


@runtime_checkable
class BeforeUpdater(Protocol):
    """Called before `update()`."""
    def before_update(self) -> None: ...


@runtime_checkable
class AfterUpdater(Protocol):
    """Called after `update()`."""
    def after_update(self) -> None: ...


@runtime_checkable
class BeforeDeleter(Protocol):
    """Called before `delete()`."""
    def before_delete(self) -> None: ...


_METHODS = {
    AfterLoader: "after_load",
    BeforeInserter: "before_insert",
    AfterInserter: "after_insert",
    BeforeUpdater: "before_update",
    AfterUpdater: "after_update",
    BeforeDeleter: "before_delete",
}


def dispatch(record: Any, hook: Type[Any]) -> None:
    """
    Call the given hook on a record, if its class implements it.
    """
    if isinstance(record, hook):
        getattr(record, _METHODS[hook])()
