"""
Tests for the schema definition models.
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from shapeql.definitions import (
    ArgumentDefinition,
    FieldDefinition,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    TypeDefinition,
    TypeRef,
    UnionTypeDefinition,
    is_polymorphic,
    possible_types,
)


class TestTypeRef:
    """Tests for TypeRef."""

    def test_named(self):
        ref = TypeRef.named("Book")

        assert ref.named_type == "Book"
        assert not ref.is_list
        assert str(ref) == "Book"

    def test_nested_list(self):
        ref = TypeRef.list_of(TypeRef.list_of("Book"), non_null=True)

        assert ref.is_list
        assert ref.named_type == "Book"
        assert str(ref) == "[[Book]]!"

    def test_requires_exactly_one_of_name_or_item(self):
        with pytest.raises(ValidationError):
            TypeRef()
        with pytest.raises(ValidationError):
            TypeRef(name="Book", of_type=TypeRef.named("Book"))

    def test_frozen(self):
        ref = TypeRef.named("Book")
        with pytest.raises(ValidationError):
            ref.name = "Author"


class TestTypeDefinitions:
    """Tests for object, interface and union definitions."""

    def test_duplicate_field_names_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate field 'title'"):
            ObjectTypeDefinition(
                name="Book",
                fields=[
                    FieldDefinition(name="title", type=TypeRef.named("String")),
                    FieldDefinition(name="title", type=TypeRef.named("String")),
                ],
            )

    def test_get_field(self):
        book = ObjectTypeDefinition(
            name="Book",
            fields=[FieldDefinition(name="title", type=TypeRef.named("String"), directives=["upper"])],
        )

        assert book.get_field("title").directives == ["upper"]
        assert book.get_field("author") is None
        assert book.field_names == ["title"]

    def test_bare_argument_type_has_no_default(self):
        field = FieldDefinition(
            name="echo",
            type=TypeRef.named("String"),
            args={
                "word": TypeRef.named("String"),
                "times": ArgumentDefinition.with_default(TypeRef.named("Int"), 1),
            },
        )

        assert field.args["word"] == ArgumentDefinition(type=TypeRef.named("String"))
        assert field.args["times"].has_default
        assert field.args["times"].default_value == 1

    def test_discriminated_by_kind(self):
        adapter = TypeAdapter(TypeDefinition)

        parsed = adapter.validate_python({"kind": "union", "name": "Result", "types": ["Book"]})

        assert isinstance(parsed, UnionTypeDefinition)
        assert parsed.types == ["Book"]

    def test_is_polymorphic(self):
        assert is_polymorphic(InterfaceTypeDefinition(name="Box"))
        assert is_polymorphic(UnionTypeDefinition(name="Result", types=["Book"]))
        assert not is_polymorphic(ObjectTypeDefinition(name="Book"))


class TestPossibleTypes:
    """Tests for possible_types."""

    def test_interfaces_and_unions(self):
        definitions = [
            InterfaceTypeDefinition(name="Box"),
            ObjectTypeDefinition(name="RedBox", interfaces=["Box"]),
            ObjectTypeDefinition(name="BlueBox", interfaces=["Box"]),
            ObjectTypeDefinition(name="Book"),
            ObjectTypeDefinition(name="Author"),
            UnionTypeDefinition(name="Result", types=["Book", "Author"]),
        ]

        result = possible_types(definitions)

        assert result == {
            "Box": frozenset({"RedBox", "BlueBox"}),
            "Result": frozenset({"Book", "Author"}),
        }

    def test_interface_without_implementors(self):
        assert possible_types([InterfaceTypeDefinition(name="Box")]) == {"Box": frozenset()}
