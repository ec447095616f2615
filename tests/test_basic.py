"""Basic tests for the Struct base class."""

from dataclasses import dataclass
from typing import Annotated, List, Optional

import pytest

from structmap import DefinitionError, Key, Struct, decode_dto, describe, immutable


class TestBasicFunctionality:
    """Test basic struct creation and field access."""

    def test_simple_struct(self):
        """Test creating a simple struct."""

        class Point(Struct):
            x: int
            y: int = 0

        p1 = Point(10, 20)
        p2 = Point(x=5, y=15)
        p3 = Point(30)  # Using default for y

        assert p1.x == 10
        assert p1.y == 20
        assert p2.x == 5
        assert p2.y == 15
        assert p3.x == 30
        assert p3.y == 0

    def test_field_mutation(self):
        """Test field mutation on mutable structs."""

        class Point(Struct):
            x: int
            y: int

        point = Point(10, 20)
        point.x = 100
        assert point.x == 100

    def test_type_checking(self):
        """Test that declared types are enforced on construction and assignment."""

        class Person(Struct):
            name: str
            nickname: Optional[str] = None

        with pytest.raises(TypeError, match="expects"):
            Person(42)

        person = Person("Alice")
        with pytest.raises(TypeError, match="expects"):
            person.nickname = 3
        person.nickname = "Al"
        assert person.nickname == "Al"

    def test_callable_default(self):
        """Test that callable defaults are invoked per instance."""

        class Basket(Struct):
            items: List[str] = list

        a = Basket()
        b = Basket()
        a.items.append("apple")
        assert b.items == []

    def test_immutability(self):
        """Test immutable structs."""

        class ImmutablePoint(Struct, immutable):
            x: int
            y: int

        point = ImmutablePoint(10, 20)
        assert point._frozen is True

        with pytest.raises(AttributeError):
            point.x = 100

        point_set = {point}
        assert len(point_set) == 1

    def test_mutable_unhashable(self):
        """Test that mutable structs cannot be hashed."""

        class Point(Struct):
            x: int

        with pytest.raises(TypeError, match="unhashable"):
            hash(Point(1))

    def test_equality_and_repr(self):
        """Test equality and string representation."""

        class Point(Struct):
            x: int
            y: int

        assert Point(1, 2) == Point(1, 2)
        assert Point(1, 2) != Point(2, 1)
        assert repr(Point(1, 2)) == "Point(x=1, y=2)"

    def test_inheritance(self):
        """Test that subclasses extend inherited fields."""

        class Base(Struct):
            id: int

        class Child(Base):
            name: str = ""

        child = Child(1, "a")
        assert child.id == 1
        assert Child._fields == ["id", "name"]
        assert describe(Child).field_names == ("id", "name")

    def test_metadata(self):
        """Test field metadata with Annotated types."""

        class Product(Struct):
            name: Annotated[str, {"min_length": 1}, "Product name"]
            sku: Annotated[str, Key("product_sku")]

        assert Product.get_field_metadata("name") == ({"min_length": 1}, "Product name")
        assert Product.get_field_metadata("sku") == (Key("product_sku"),)
        assert Product._types["sku"] is str

    def test_error_handling(self):
        """Test various error conditions."""

        class TestStruct(Struct):
            field1: str
            field2: int

        with pytest.raises(TypeError, match="Invalid field"):
            TestStruct(field1="test", invalid_field="value")

        with pytest.raises(TypeError, match="Missing required field"):
            TestStruct(field1="test")

        with pytest.raises(TypeError, match="Too many arguments"):
            TestStruct("a", 1, 2)

        with pytest.raises(TypeError, match="Duplicate value"):
            TestStruct("a", field1="b")

        obj = TestStruct("test", 42)
        with pytest.raises(AttributeError, match="has no field"):
            obj.nonexistent = "value"


class TestDescriptors:
    """Test descriptors built from class declarations."""

    def test_struct_descriptor_built_at_declaration(self):
        """Test that Struct subclasses carry their descriptor from creation."""

        class Model(Struct):
            receiverID: Annotated[int, Key("receiver_id")]
            note: str = ""

        descriptor = Model.__dict__["__struct_descriptor__"]
        assert describe(Model) is descriptor
        assert descriptor.type_name == "Model"

        receiver = descriptor.field("receiverID")
        assert receiver.declared_type is int
        assert receiver.external_key == "receiver_id"
        assert not receiver.has_default

        note = descriptor.field("note")
        assert note.external_key == "note"
        assert note.default == ""
        assert descriptor.field_for_key("receiver_id") is receiver

    def test_dataclass_descriptor(self):
        """Test describing a dataclass keeps order and defaults."""

        @dataclass
        class Row:
            id: int
            tags: List[str] = None
            label: Annotated[str, Key("display_label")] = "x"

        descriptor = describe(Row)
        assert descriptor.field_names == ("id", "tags", "label")
        assert descriptor.field("label").external_key == "display_label"
        assert descriptor.field("tags").has_default
        assert describe(Row) is descriptor

    def test_plain_class_descriptor(self):
        """Test describing a plain annotated class skips private and ClassVar names."""
        from typing import ClassVar

        class Plain:
            kind: ClassVar[str] = "plain"
            _cache: dict
            id: int
            name: str = "n/a"

        descriptor = describe(Plain)
        assert descriptor.field_names == ("id", "name")
        assert descriptor.field("name").default == "n/a"

    def test_describe_rejects_instances(self):
        """Test that describe() only accepts classes."""
        with pytest.raises(TypeError):
            describe(object())

    def test_frozen_field_name_is_reserved(self):
        """Test that a field cannot shadow the freeze flag."""
        with pytest.raises(DefinitionError, match="'frozen' is reserved"):

            class Flag(Struct):
                frozen: bool

        @decode_dto
        class Flag(Struct):
            is_frozen: Annotated[bool, Key("frozen")]

        assert Flag.decode({"frozen": True}).unwrap() == Flag(True)
