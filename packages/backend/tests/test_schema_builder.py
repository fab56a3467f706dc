"""
Tests for the schema build phase.
"""

import pytest
from graphql import (
    DirectiveLocation,
    GraphQLInterfaceType,
    GraphQLObjectType,
    GraphQLUnionType,
    Undefined,
)

from shapeql.definitions import FieldDefinition, ObjectTypeDefinition, TypeRef
from shapeql.directives import DirectiveDefinition, DirectiveRegistry
from shapeql.errors import SchemaConsistencyError, UnresolvedTypeError
from shapeql.resolution import field_equals, typename_tag
from shapeql.schema import SchemaBuilder

BOX_SDL = """
interface Box { size: Int color: String }
type RedBox implements Box { size: Int color: String }
type BlueBox implements Box { size: Int color: String }
type Query { boxs: [Box] label: String @upper }
"""


def _box_builder() -> SchemaBuilder:
    builder = SchemaBuilder()
    builder.add_sdl(BOX_SDL)
    builder.add_discriminant("Box", field_equals("color", "red", "RedBox"))
    builder.add_discriminant("Box", field_equals("color", "blue", "BlueBox"))
    return builder


class TestSchemaBuilder:
    """Tests for SchemaBuilder.build."""

    def test_builds_graphql_schema(self):
        schema = _box_builder().build()
        gql = schema.graphql_schema

        assert isinstance(gql.get_type("Box"), GraphQLInterfaceType)
        assert isinstance(gql.get_type("RedBox"), GraphQLObjectType)
        assert gql.get_directive("upper") is not None
        assert {t.name for t in gql.get_possible_types(gql.get_type("Box"))} == {"RedBox", "BlueBox"}

    def test_declared_locations_narrow_emitted_directive(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { name: String } directive @upper on FIELD_DEFINITION")

        upper = builder.build().graphql_schema.get_directive("upper")

        assert list(upper.locations) == [DirectiveLocation.FIELD_DEFINITION]

    def test_registry_locations_without_declaration(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { name: String }")

        upper = builder.build().graphql_schema.get_directive("upper")

        assert set(upper.locations) == {DirectiveLocation.FIELD_DEFINITION, DirectiveLocation.FIELD}

    def test_argument_defaults_are_emitted(self):
        builder = SchemaBuilder()
        builder.add_sdl('type Query { echo(word: String = "hi", loud: Boolean): String }')

        args = builder.build().graphql_schema.query_type.fields["echo"].args

        assert args["word"].default_value == "hi"
        assert args["loud"].default_value is Undefined

    def test_build_is_cached(self):
        builder = _box_builder()
        assert builder.build() is builder.build()

    def test_build_freezes_registries(self):
        builder = _box_builder()
        builder.build()

        assert builder.directives.frozen
        assert builder.type_resolver.frozen

    def test_effective_resolver_applies_field_directives(self):
        builder = _box_builder()
        builder.add_resolver("Query", "label", lambda parent, args, context: "shelf")
        schema = builder.build()

        resolver = schema.effective_resolver("Query", "label")

        assert resolver(None, _Info(context={})) == "SHELF"

    def test_effective_resolver_unknown_field(self):
        schema = _box_builder().build()

        with pytest.raises(KeyError, match="Query.missing"):
            schema.effective_resolver("Query", "missing")

    def test_resolve_type_uses_declared_members(self):
        schema = _box_builder().build()

        assert schema.resolve_type("Box", {"color": "blue"}) == "BlueBox"
        with pytest.raises(UnresolvedTypeError):
            schema.resolve_type("Box", {"color": "green"})

    def test_union_resolve_type_hook(self):
        builder = SchemaBuilder()
        builder.add_sdl(
            """
            type Book { title: String }
            type Author { name: String }
            union Result = Book | Author
            type Query { search: [Result] }
            """
        )
        builder.add_discriminant("Result", typename_tag())
        gql = builder.build().graphql_schema

        result_type = gql.get_type("Result")
        assert isinstance(result_type, GraphQLUnionType)
        assert result_type.resolve_type({"__typename": "Author"}, None, result_type) == "Author"

    def test_custom_directive(self):
        registry = DirectiveRegistry.with_builtins()
        builder = SchemaBuilder(directives=registry)
        builder.add_directive(DirectiveDefinition(name="trim", transform=str.strip))
        builder.add_type(
            ObjectTypeDefinition(
                name="Query",
                fields=[
                    FieldDefinition(
                        name="label", type=TypeRef.named("String"), directives=["trim", "upper"]
                    )
                ],
            )
        )
        builder.add_resolver("Query", "label", lambda parent, args, context: "  shelf  ")

        resolver = builder.build().effective_resolver("Query", "label")

        assert resolver(None, _Info(context=None)) == "SHELF"


class TestSchemaConsistency:
    """Tests for build-time consistency failures."""

    def _problems(self, builder: SchemaBuilder) -> list[str]:
        with pytest.raises(SchemaConsistencyError) as exc_info:
            builder.build()
        return exc_info.value.problems

    def test_unknown_field_directive(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { title: String @shout }")

        problems = self._problems(builder)

        assert problems == ["Field 'Query.title': Unknown directive '@shout'"]

    def test_declared_directive_without_implementation(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { title: String } directive @shout on FIELD_DEFINITION")

        assert "Directive '@shout' is declared but has no implementation" in self._problems(builder)

    def test_declared_directive_location_not_supported(self):
        registry = DirectiveRegistry()
        registry.register(DirectiveDefinition(name="trim", transform=str.strip))
        builder = SchemaBuilder(directives=registry)
        builder.add_sdl("type Query { title: String } directive @trim on FIELD")

        assert any("declared on FIELD" in problem for problem in self._problems(builder))

    def test_field_directive_not_declared_on_field_definition(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { title: String @upper } directive @upper on FIELD")

        assert self._problems(builder) == [
            "Field 'Query.title': Directive '@upper' is not declared on FIELD_DEFINITION"
        ]

    def test_undeclared_field_type(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { shelf: Shelf }")

        assert "Field 'Query.shelf' references undeclared type 'Shelf'" in self._problems(builder)

    def test_missing_query_root(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Book { title: String }")

        assert "Query root type 'Query' is not defined" in self._problems(builder)

    def test_polymorphic_type_without_discriminants(self):
        builder = SchemaBuilder()
        builder.add_sdl(BOX_SDL)

        assert "Polymorphic type 'Box' has no discriminants" in self._problems(builder)

    def test_discriminant_for_undeclared_type(self):
        builder = _box_builder()
        builder.add_discriminant("Shape", typename_tag())

        assert any("'Shape', which is not an interface or union" in p for p in self._problems(builder))

    def test_discriminant_target_outside_member_set(self):
        builder = _box_builder()
        builder.add_discriminant("Box", field_equals("color", "green", "GreenBox"))

        assert any("targets 'GreenBox'" in problem for problem in self._problems(builder))

    def test_discriminant_target_check_can_be_disabled(self, monkeypatch):
        monkeypatch.setattr("shapeql.schema.settings.check_discriminant_targets", False)
        builder = _box_builder()
        builder.add_discriminant("Box", field_equals("color", "green", "GreenBox"))

        assert builder.build() is not None

    def test_union_member_not_object(self):
        builder = _box_builder()
        builder.add_sdl("union Anything = Box | Missing")
        builder.add_discriminant("Anything", typename_tag())

        problems = self._problems(builder)

        assert "Union 'Anything' member 'Box' is not an object type" in problems
        assert "Union 'Anything' member 'Missing' is not an object type" in problems

    def test_implementor_missing_interface_fields(self):
        builder = SchemaBuilder()
        builder.add_sdl(
            """
            interface Box { size: Int color: String }
            type RedBox implements Box { size: Int }
            type Query { boxs: [Box] }
            """
        )
        builder.add_discriminant("Box", field_equals("color", "red", "RedBox"))

        assert any("missing fields ['color']" in problem for problem in self._problems(builder))

    def test_resolver_for_unknown_field(self):
        builder = _box_builder()
        builder.add_resolver("Query", "missing", lambda parent, args, context: None)

        assert "Resolver registered for unknown field 'Query.missing'" in self._problems(builder)

    def test_duplicate_type(self):
        builder = _box_builder()
        builder.add_sdl("type RedBox { size: Int }")

        assert "Type 'RedBox' is defined more than once" in self._problems(builder)

    def test_non_scalar_argument(self):
        builder = _box_builder()
        builder.add_sdl("type Shelf { boxes(filter: RedBox): [Box] }")

        assert any("must be a scalar" in problem for problem in self._problems(builder))

    def test_reports_every_problem(self):
        builder = SchemaBuilder()
        builder.add_sdl("type Query { a: Missing b: String @shout }")

        assert len(self._problems(builder)) == 2


class _Info:
    """Minimal stand-in for graphql-core's resolve info."""

    def __init__(self, context):
        self.context = context
