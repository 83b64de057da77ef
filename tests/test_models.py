from dataclasses import dataclass, field
import sys
from typing import ClassVar, Optional
from unittest import TestCase, skipIf

from typing_extensions import Annotated

from structable.errors import FieldAssignmentError
from structable.models import Column, FieldDescriptor, FieldReference, describe, fill, parse_tag, scan, scan_fields


class Stool:
    id: Annotated[int, Column("id,PRIMARY_KEY,AUTO_INCREMENT")]
    id_two: Annotated[int, Column("id_two,    PRIMARY_KEY      ")]
    legs: Annotated[int, Column("number_of_legs")]
    material: Annotated[str, Column("material")]
    color: Annotated[Optional[str], Column("color")]
    ignored: str
    shared: ClassVar[Annotated[int, Column("shared")]] = 0


@dataclass
class Fence:
    id: int = field(default=0, metadata={"stbl": "id,PRIMARY_KEY,SERIAL"})
    height: float = field(default=0.0, metadata={"stbl": "height"})
    paint: Optional[str] = field(default=None, metadata={"stbl": "paint"})
    owner: str = ""


@dataclass(frozen=True)
class Post:
    id: Annotated[int, Column("id,PRIMARY KEY,AUTO INCREMENT")] = 0


class TestTag(TestCase):

    def test_parse(self):
        self.assertEqual(parse_tag("id", "id,PRIMARY_KEY"), ["id", "PRIMARY_KEY"])

    def test_parse_empty(self):
        self.assertEqual(parse_tag("name", ""), ["name"])
        self.assertEqual(parse_tag("name", ",PRIMARY_KEY"), ["name", "PRIMARY_KEY"])

    def test_describe_aliases(self):
        for tag in ("id,PRIMARY_KEY,AUTO_INCREMENT", "id,PRIMARY KEY,SERIAL", "id, AUTO INCREMENT , PRIMARY_KEY"):
            with self.subTest(tag=tag):
                self.assertEqual(describe("id", tag), FieldDescriptor("id", "id", True, True))

    def test_describe_unknown(self):
        self.assertEqual(describe("name", "name,UNIQUE,primary_key"), FieldDescriptor("name", "name"))


class TestScan(TestCase):

    def test_annotated(self):
        self.assertEqual(scan_fields(Stool), (
            FieldDescriptor("id", "id", primary=True, auto=True),
            FieldDescriptor("id_two", "id_two", primary=True),
            FieldDescriptor("legs", "number_of_legs"),
            FieldDescriptor("material", "material"),
            FieldDescriptor("color", "color", nullable=True),
        ))

    def test_dataclass_metadata(self):
        self.assertEqual(scan(Fence()), (
            FieldDescriptor("id", "id", primary=True, auto=True),
            FieldDescriptor("height", "height"),
            FieldDescriptor("paint", "paint", nullable=True),
        ))

    def test_optional_annotated(self):
        class Model:
            value: Optional[Annotated[str, Column("value")]]
        self.assertEqual(scan_fields(Model), (FieldDescriptor("value", "value", nullable=True),))

    @skipIf(sys.version_info < (3, 10), "Union operator requires Python 3.10")
    def test_union_operator(self):
        class Model:
            value: Annotated["int | None", Column("value")]
        self.assertEqual(scan_fields(Model), (FieldDescriptor("value", "value", nullable=True),))

    def test_cached(self):
        self.assertIs(scan(Stool()), scan(Stool()))

    def test_duplicate_column(self):
        class Model:
            one: Annotated[int, Column("value")]
            two: Annotated[int, Column("value")]
        with self.assertLogs("structable.models", "WARNING"):
            fields = scan_fields(Model)
        self.assertEqual(len(fields), 2)


class TestReference(TestCase):

    def test_get_set(self):
        stool = Stool()
        ref = FieldReference(stool, scan(stool)[2])
        self.assertIsNone(ref.get())
        ref.set(3)
        self.assertEqual(stool.legs, 3)
        self.assertEqual(ref.get(), 3)

    def test_unset(self):
        fence = Fence()
        paint = FieldReference(fence, scan(fence)[2])
        height = FieldReference(fence, scan(fence)[1])
        self.assertTrue(paint.unset)
        self.assertFalse(height.unset)
        fence.paint = "White"
        self.assertFalse(paint.unset)

    def test_set_frozen(self):
        post = Post()
        ref = FieldReference(post, scan(post)[0])
        with self.assertRaises(FieldAssignmentError):
            ref.set(1)
        with self.assertRaises(AttributeError):
            ref.set(1)

    def test_fill(self):
        fence = Fence()
        fill([FieldReference(fence, desc) for desc in scan(fence)], (4, 1.5, "Green"))
        self.assertEqual(fence, Fence(4, 1.5, "Green"))

    def test_fill_mismatch(self):
        fence = Fence()
        with self.assertRaises(ValueError):
            fill([FieldReference(fence, desc) for desc in scan(fence)], (4, 1.5))
