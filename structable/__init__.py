"""
.. include:: ../README.md

## Basic usage

Declare your records as regular Python classes, tagging the attributes that map to columns:

```python
from typing import Optional

from typing_extensions import Annotated

from structable.models import Column

class Stool:
    id: Annotated[int, Column("id,PRIMARY_KEY,AUTO_INCREMENT")]
    legs: Annotated[int, Column("number_of_legs")]
    material: Annotated[str, Column("material")]
    color: Annotated[Optional[str], Column("color")]
```

Bind a record to a table using a recorder, then manage it in place:

```python
import sqlite3

from structable.recorder import Recorder

def main():
    conn = sqlite3.connect(":memory:")
    stool = Stool()
    stool.legs, stool.material, stool.color = 3, "Wood", None

    recorder = Recorder(conn, "sqlite").bind("stools", stool)
    recorder.insert()  # stool.id == 1
    stool.color = "Red"
    recorder.update()
    recorder.exists()  # True
    recorder.delete()
```

Fetch any number of records of the same class:

```python
from pypika import Table

from structable.listing import list_records, list_where

for found in list_records(recorder, limit=10, offset=0):
    print(found.record.legs)

def sorted_legs(desc, query):
    return query.where(Table(desc.table_name).number_of_legs > 3).orderby("id")

list_where(recorder, sorted_legs)
```

## Predicates

Custom conditions are SQL fragments using `?` markers, mappings of columns to values, or `pypika`
criteria:

```python
>>> recorder.exists_where("number_of_legs > ? AND material = ?", 3, "Steel")
False
>>> recorder.load_where({"material": ("Wood", "Steel"), "color": None})
```
"""
