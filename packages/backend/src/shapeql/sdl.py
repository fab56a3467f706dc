"""
Load type definitions from GraphQL SDL.

Parsing is delegated to graphql-core; this module only walks the parsed
document and converts object, interface, union and directive definitions into
the shapeql definitions model.
"""

from graphql import GraphQLSyntaxError, parse, value_from_ast_untyped
from graphql.language import (
    DirectiveDefinitionNode,
    FieldDefinitionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    ListTypeNode,
    NamedTypeNode,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    TypeNode,
    UnionTypeDefinitionNode,
)
from pydantic import BaseModel, Field

from .definitions import (
    ArgumentDefinition,
    FieldDefinition,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    TypeDefinition,
    TypeRef,
    UnionTypeDefinition,
)
from .errors import SchemaConsistencyError
from .logging import get_logger

logger = get_logger(__name__)


class SDLDocument(BaseModel):
    """Type definitions and directive declarations read from one SDL source."""

    types: list[TypeDefinition] = Field(default_factory=list)
    directives: dict[str, list[str]] = Field(
        default_factory=dict, description="Declared directive name -> location names"
    )


def _type_ref(node: TypeNode) -> TypeRef:
    if isinstance(node, NonNullTypeNode):
        return _type_ref(node.type).model_copy(update={"non_null": True})
    if isinstance(node, ListTypeNode):
        return TypeRef.list_of(_type_ref(node.type))
    assert isinstance(node, NamedTypeNode)
    return TypeRef.named(node.name.value)


def _description(node) -> str | None:
    return node.description.value if node.description else None


def _argument(node: InputValueDefinitionNode) -> ArgumentDefinition:
    if node.default_value is None:
        return ArgumentDefinition(type=_type_ref(node.type))
    return ArgumentDefinition.with_default(
        _type_ref(node.type), value_from_ast_untyped(node.default_value)
    )


def _field(node: FieldDefinitionNode) -> FieldDefinition:
    return FieldDefinition(
        name=node.name.value,
        type=_type_ref(node.type),
        args={arg.name.value: _argument(arg) for arg in node.arguments or ()},
        directives=[directive.name.value for directive in node.directives or ()],
        description=_description(node),
    )


def load_sdl(source: str) -> SDLDocument:
    """
    Convert an SDL string into type definitions.

    Raises:
        SchemaConsistencyError: On syntax errors or unsupported definition kinds
    """
    try:
        document = parse(source)
    except GraphQLSyntaxError as e:
        raise SchemaConsistencyError([f"SDL syntax error: {e.message}"]) from e

    result = SDLDocument()
    unsupported = []

    for node in document.definitions:
        if isinstance(node, ObjectTypeDefinitionNode):
            result.types.append(
                ObjectTypeDefinition(
                    name=node.name.value,
                    fields=[_field(field) for field in node.fields or ()],
                    interfaces=[interface.name.value for interface in node.interfaces or ()],
                    description=_description(node),
                )
            )
        elif isinstance(node, InterfaceTypeDefinitionNode):
            result.types.append(
                InterfaceTypeDefinition(
                    name=node.name.value,
                    fields=[_field(field) for field in node.fields or ()],
                    description=_description(node),
                )
            )
        elif isinstance(node, UnionTypeDefinitionNode):
            result.types.append(
                UnionTypeDefinition(
                    name=node.name.value,
                    types=[member.name.value for member in node.types or ()],
                    description=_description(node),
                )
            )
        elif isinstance(node, DirectiveDefinitionNode):
            result.directives[node.name.value] = [location.value for location in node.locations]
        else:
            name = getattr(getattr(node, "name", None), "value", None)
            unsupported.append(f"Unsupported SDL definition {node.kind}" + (f" '{name}'" if name else ""))

    if unsupported:
        raise SchemaConsistencyError(unsupported)

    logger.debug(
        "Loaded SDL",
        types=len(result.types),
        directives=list(result.directives),
    )
    return result
