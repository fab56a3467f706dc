"""
Schema build phase.

``SchemaBuilder`` collects type definitions, resolvers, directives and
discriminants, checks that they reference each other consistently, and
produces an ``ExecutableSchema``: a graphql-core schema whose field resolvers
are directive-wrapped effective resolvers and whose interfaces and unions
resolve through the ``TypeResolver``.
"""

import functools
from collections.abc import Callable, Mapping
from typing import Any

from graphql import (
    DirectiveLocation as GraphQLDirectiveLocation,
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLDirective,
    GraphQLField,
    GraphQLFloat,
    GraphQLID,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
    GraphQLUnionType,
    Undefined,
    default_field_resolver,
    specified_directives,
)
from graphql import validate_schema as gql_validate_schema

from .config import settings
from .definitions import (
    SCALAR_TYPES,
    FieldDefinition,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    TypeDefinition,
    TypeRef,
    UnionTypeDefinition,
    is_polymorphic,
    possible_types,
)
from .directives import (
    DirectiveDefinition,
    DirectiveLocation,
    DirectiveRegistry,
    build_effective_resolver,
)
from .errors import SchemaConsistencyError
from .logging import get_logger
from .resolution import Discriminant, TypeResolver
from .sdl import load_sdl

logger = get_logger(__name__)

ResolverFunction = Callable[[Any, dict[str, Any], Any], Any]

_SCALARS = {
    "String": GraphQLString,
    "Int": GraphQLInt,
    "Float": GraphQLFloat,
    "Boolean": GraphQLBoolean,
    "ID": GraphQLID,
}


def adapt_resolver(resolver: ResolverFunction) -> Callable[..., Any]:
    """Expose a ``(parent, args, context)`` resolver through graphql-core's ``(root, info, **args)``."""

    @functools.wraps(resolver)
    def resolve(root: Any, info: Any, **args: Any) -> Any:
        return resolver(root, args, info.context)

    return resolve


class ExecutableSchema:
    """A built schema plus the read-only registries its resolvers use."""

    def __init__(
        self,
        graphql_schema: GraphQLSchema,
        definitions: Mapping[str, TypeDefinition],
        directives: DirectiveRegistry,
        type_resolver: TypeResolver,
        resolvers: Mapping[tuple[str, str], Callable[..., Any]],
    ):
        self.graphql_schema = graphql_schema
        self.definitions = dict(definitions)
        self.directives = directives
        self.type_resolver = type_resolver
        self._resolvers = dict(resolvers)

    def effective_resolver(self, type_name: str, field_name: str) -> Callable[..., Any]:
        """The resolver the host invokes for ``type_name.field_name``."""
        try:
            return self._resolvers[(type_name, field_name)]
        except KeyError:
            raise KeyError(f"No field '{type_name}.{field_name}' in schema") from None

    def resolve_type(self, type_name: str, value: Any) -> str:
        return self.type_resolver.resolve(type_name, value)


class SchemaBuilder:
    """
    Collects everything registered at schema-build time.

    Usage::

        builder = SchemaBuilder()
        builder.add_sdl(TYPE_DEFS)
        builder.add_resolvers({"Query": {"books": list_books}})
        builder.add_discriminant("Box", field_equals("color", "red", "RedBox"))
        schema = builder.build()
    """

    def __init__(
        self,
        directives: DirectiveRegistry | None = None,
        type_resolver: TypeResolver | None = None,
        query_type: str = "Query",
        mutation_type: str | None = "Mutation",
    ):
        self.directives = directives if directives is not None else DirectiveRegistry.with_builtins()
        self.type_resolver = type_resolver if type_resolver is not None else TypeResolver()
        self.query_type = query_type
        self.mutation_type = mutation_type
        self._types: dict[str, TypeDefinition] = {}
        self._resolvers: dict[tuple[str, str], ResolverFunction] = {}
        self._declared_directives: dict[str, list[str]] = {}
        self._problems: list[str] = []
        self._schema: ExecutableSchema | None = None

    # Registration

    def add_type(self, definition: TypeDefinition) -> None:
        if definition.name in self._types:
            self._problems.append(f"Type '{definition.name}' is defined more than once")
            return
        if definition.name in SCALAR_TYPES:
            self._problems.append(f"Type '{definition.name}' shadows a built-in scalar")
            return
        self._types[definition.name] = definition

    def add_sdl(self, source: str) -> None:
        document = load_sdl(source)
        for definition in document.types:
            self.add_type(definition)
        self._declared_directives.update(document.directives)

    def add_resolver(self, type_name: str, field_name: str, resolver: ResolverFunction) -> None:
        self._resolvers[(type_name, field_name)] = resolver

    def add_resolvers(self, resolvers: Mapping[str, Mapping[str, ResolverFunction]]) -> None:
        """Register a ``{type: {field: resolver}}`` map."""
        for type_name, fields in resolvers.items():
            for field_name, resolver in fields.items():
                self.add_resolver(type_name, field_name, resolver)

    def add_directive(self, directive: DirectiveDefinition) -> None:
        self.directives.register(directive)

    def add_discriminant(
        self,
        type_name: str,
        discriminant: Discriminant | Callable[[Any], str | None],
        target: str | None = None,
    ) -> None:
        self.type_resolver.register(type_name, discriminant, target)

    # Build

    def build(self) -> ExecutableSchema:
        """
        Validate and build the schema. Subsequent calls return the same schema.

        Raises:
            SchemaConsistencyError: With every consistency problem found
        """
        if self._schema is not None:
            return self._schema

        for type_name, members in possible_types(self._types.values()).items():
            self.type_resolver.declare(type_name, members)

        problems = self._problems + self._check_consistency()
        if problems:
            logger.error("Schema build failed", problems=problems)
            raise SchemaConsistencyError(problems)

        schema = self._to_graphql()
        errors = gql_validate_schema(schema.graphql_schema)
        if errors:
            messages = [str(error) for error in errors]
            logger.error("Schema build failed", problems=messages)
            raise SchemaConsistencyError(messages)

        self.directives.freeze()
        self.type_resolver.freeze()
        self._schema = schema

        logger.info(
            "Schema built",
            types=len(self._types),
            directives=self.directives.list_names(),
            polymorphic_types=self.type_resolver.registered_types(),
        )
        return schema

    def _check_consistency(self) -> list[str]:
        problems: list[str] = []

        for root_name in (self.query_type, self.mutation_type):
            if root_name is None:
                continue
            if root_name == self.query_type and root_name not in self._types:
                problems.append(f"Query root type '{root_name}' is not defined")
            elif root_name in self._types and not isinstance(
                self._types[root_name], ObjectTypeDefinition
            ):
                problems.append(f"Root type '{root_name}' must be an object type")

        for definition in self._types.values():
            if isinstance(definition, UnionTypeDefinition):
                problems.extend(self._check_union(definition))
            else:
                if isinstance(definition, ObjectTypeDefinition):
                    problems.extend(self._check_implements(definition))
                for field in definition.fields:
                    problems.extend(self._check_field(definition.name, field))

        for type_name, field_name in self._resolvers:
            definition = self._types.get(type_name)
            if not isinstance(definition, ObjectTypeDefinition):
                problems.append(f"Resolver registered for unknown object type '{type_name}'")
            elif definition.get_field(field_name) is None:
                problems.append(f"Resolver registered for unknown field '{type_name}.{field_name}'")

        for name, locations in self._declared_directives.items():
            directive = self.directives.get(name)
            if directive is None:
                problems.append(f"Directive '@{name}' is declared but has no implementation")
                continue
            allowed = {location.value for location in directive.locations}
            for location in locations:
                if location not in allowed:
                    problems.append(f"Directive '@{name}' is declared on {location}, which it does not support")

        for type_name, definition in self._types.items():
            if is_polymorphic(definition) and not self.type_resolver.rules(type_name):
                problems.append(f"Polymorphic type '{type_name}' has no discriminants")

        problems.extend(self.type_resolver.check_targets(settings.check_discriminant_targets))

        return problems

    def _check_union(self, definition: UnionTypeDefinition) -> list[str]:
        problems = []
        if not definition.types:
            problems.append(f"Union '{definition.name}' has no member types")
        for member in definition.types:
            if not isinstance(self._types.get(member), ObjectTypeDefinition):
                problems.append(f"Union '{definition.name}' member '{member}' is not an object type")
        return problems

    def _check_implements(self, definition: ObjectTypeDefinition) -> list[str]:
        problems = []
        for interface_name in definition.interfaces:
            interface = self._types.get(interface_name)
            if not isinstance(interface, InterfaceTypeDefinition):
                problems.append(
                    f"Type '{definition.name}' implements '{interface_name}', which is not an interface"
                )
                continue
            missing = set(interface.field_names) - set(definition.field_names)
            if missing:
                problems.append(
                    f"Type '{definition.name}' is missing fields {sorted(missing)} of interface '{interface_name}'"
                )
        return problems

    def _check_field(self, owner: str, field: FieldDefinition) -> list[str]:
        problems = []
        named = field.type.named_type
        if named not in SCALAR_TYPES and named not in self._types:
            problems.append(f"Field '{owner}.{field.name}' references undeclared type '{named}'")
        for arg_name, argument in field.args.items():
            if argument.type.named_type not in SCALAR_TYPES:
                problems.append(
                    f"Argument '{owner}.{field.name}({arg_name})' must be a scalar, got '{argument.type}'"
                )
        for directive_name in field.directives:
            try:
                self.directives.require(directive_name, DirectiveLocation.FIELD_DEFINITION)
            except SchemaConsistencyError as e:
                problems.extend(f"Field '{owner}.{field.name}': {problem}" for problem in e.problems)
                continue
            declared = self._declared_directives.get(directive_name)
            if declared is not None and DirectiveLocation.FIELD_DEFINITION.value not in declared:
                problems.append(
                    f"Field '{owner}.{field.name}': Directive '@{directive_name}' is not declared "
                    f"on FIELD_DEFINITION"
                )
        return problems

    # Conversion to graphql-core

    def _to_graphql(self) -> ExecutableSchema:
        named: dict[str, GraphQLNamedType] = dict(_SCALARS)
        effective: dict[tuple[str, str], Callable[..., Any]] = {}

        def output_type(ref: TypeRef) -> Any:
            gql_type = GraphQLList(output_type(ref.of_type)) if ref.of_type else named[ref.name]
            return GraphQLNonNull(gql_type) if ref.non_null else gql_type

        def arguments(field: FieldDefinition) -> dict[str, GraphQLArgument]:
            return {
                name: GraphQLArgument(
                    output_type(argument.type),
                    default_value=argument.default_value if argument.has_default else Undefined,
                )
                for name, argument in field.args.items()
            }

        def object_fields(definition: ObjectTypeDefinition) -> dict[str, GraphQLField]:
            fields = {}
            for field in definition.fields:
                resolver = effective[(definition.name, field.name)]
                fields[field.name] = GraphQLField(
                    output_type(field.type),
                    args=arguments(field),
                    resolve=resolver,
                    description=field.description,
                )
            return fields

        def interface_fields(definition: InterfaceTypeDefinition) -> dict[str, GraphQLField]:
            return {
                field.name: GraphQLField(
                    output_type(field.type), args=arguments(field), description=field.description
                )
                for field in definition.fields
            }

        for definition in self._types.values():
            if isinstance(definition, ObjectTypeDefinition):
                for field in definition.fields:
                    custom = self._resolvers.get((definition.name, field.name))
                    base = adapt_resolver(custom) if custom is not None else default_field_resolver
                    effective[(definition.name, field.name)] = build_effective_resolver(
                        base, field.directives, self.directives
                    )

        for definition in self._types.values():
            if isinstance(definition, ObjectTypeDefinition):
                named[definition.name] = GraphQLObjectType(
                    definition.name,
                    fields=functools.partial(object_fields, definition),
                    interfaces=functools.partial(
                        lambda names: [named[name] for name in names], definition.interfaces
                    ),
                    description=definition.description,
                )
            elif isinstance(definition, InterfaceTypeDefinition):
                named[definition.name] = GraphQLInterfaceType(
                    definition.name,
                    fields=functools.partial(interface_fields, definition),
                    resolve_type=self.type_resolver.graphql_resolve_type(definition.name),
                    description=definition.description,
                )
            else:
                named[definition.name] = GraphQLUnionType(
                    definition.name,
                    types=functools.partial(
                        lambda names: [named[name] for name in names], definition.types
                    ),
                    resolve_type=self.type_resolver.graphql_resolve_type(definition.name),
                    description=definition.description,
                )

        # SDL declarations narrow where a directive may be written in queries
        directives = []
        for directive in self.directives.list_all():
            locations = self._declared_directives.get(
                directive.name, [location.value for location in directive.locations]
            )
            directives.append(
                GraphQLDirective(
                    directive.name,
                    locations=[GraphQLDirectiveLocation[location] for location in locations],
                    description=directive.description,
                )
            )

        mutation = named.get(self.mutation_type) if self.mutation_type else None
        graphql_schema = GraphQLSchema(
            query=named[self.query_type],
            mutation=mutation,
            types=[gql_type for name, gql_type in named.items() if name not in _SCALARS],
            directives=[*specified_directives, *directives],
        )

        return ExecutableSchema(
            graphql_schema=graphql_schema,
            definitions=self._types,
            directives=self.directives,
            type_resolver=self.type_resolver,
            resolvers=effective,
        )
