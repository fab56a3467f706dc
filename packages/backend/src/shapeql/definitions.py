"""
Schema definition data model.

These Pydantic models describe a schema declaratively: named object types,
interfaces and unions, their fields, field arguments and the directives
attached to each field. They carry no behaviour; resolvers, directives and
discriminants are attached by the schema builder.
"""

from collections.abc import Iterable
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SCALAR_TYPES = frozenset({"String", "Int", "Float", "Boolean", "ID"})


class TypeRef(BaseModel):
    """Reference to a declared type, optionally wrapped in list and non-null markers."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(None, description="Named type, when this is not a list wrapper")
    of_type: "TypeRef | None" = Field(None, description="Item type, when this is a list wrapper")
    non_null: bool = False

    @model_validator(mode="after")
    def _check_shape(self) -> "TypeRef":
        if (self.name is None) == (self.of_type is None):
            raise ValueError("TypeRef needs exactly one of 'name' or 'of_type'")
        return self

    @classmethod
    def named(cls, name: str, non_null: bool = False) -> "TypeRef":
        return cls(name=name, non_null=non_null)

    @classmethod
    def list_of(cls, item: "TypeRef | str", non_null: bool = False) -> "TypeRef":
        if isinstance(item, str):
            item = cls.named(item)
        return cls(of_type=item, non_null=non_null)

    @property
    def is_list(self) -> bool:
        return self.of_type is not None

    @property
    def named_type(self) -> str:
        """Name of the innermost named type."""
        ref = self
        while ref.of_type is not None:
            ref = ref.of_type
        assert ref.name is not None
        return ref.name

    def __str__(self) -> str:
        inner = f"[{self.of_type}]" if self.of_type is not None else str(self.name)
        return f"{inner}!" if self.non_null else inner


class ArgumentDefinition(BaseModel):
    """Type of a field argument and the value used when a query omits it."""

    model_config = ConfigDict(frozen=True)

    type: TypeRef
    default_value: Any = None
    has_default: bool = Field(False, description="Whether default_value was declared")

    @classmethod
    def with_default(cls, type: TypeRef, default_value: Any) -> "ArgumentDefinition":
        return cls(type=type, default_value=default_value, has_default=True)


class FieldDefinition(BaseModel):
    """A named field of an object or interface type."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    args: dict[str, ArgumentDefinition] = Field(default_factory=dict)
    directives: list[str] = Field(
        default_factory=list, description="Directive names in declaration order"
    )
    description: str | None = None

    @field_validator("args", mode="before")
    @classmethod
    def _wrap_bare_types(cls, args: Any) -> Any:
        # A bare TypeRef declares an argument without a default
        if isinstance(args, dict):
            return {
                name: ArgumentDefinition(type=value) if isinstance(value, TypeRef) else value
                for name, value in args.items()
            }
        return args


class _FieldedType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    fields: list[FieldDefinition] = Field(default_factory=list)
    description: str | None = None

    @field_validator("fields")
    @classmethod
    def _unique_field_names(cls, fields: list[FieldDefinition]) -> list[FieldDefinition]:
        seen: set[str] = set()
        for field in fields:
            if field.name in seen:
                raise ValueError(f"Duplicate field '{field.name}'")
            seen.add(field.name)
        return fields

    def get_field(self, name: str) -> FieldDefinition | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self.fields]


class ObjectTypeDefinition(_FieldedType):
    """Concrete object type, optionally implementing interfaces."""

    kind: Literal["object"] = "object"
    interfaces: list[str] = Field(default_factory=list)


class InterfaceTypeDefinition(_FieldedType):
    """Abstract type whose implementors share its fields."""

    kind: Literal["interface"] = "interface"


class UnionTypeDefinition(BaseModel):
    """Abstract type whose values are one of a fixed set of object types."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["union"] = "union"
    name: str
    types: list[str] = Field(default_factory=list, description="Member object type names")
    description: str | None = None


TypeDefinition = Annotated[
    Union[ObjectTypeDefinition, InterfaceTypeDefinition, UnionTypeDefinition],
    Field(discriminator="kind"),
]


def is_polymorphic(definition: object) -> bool:
    """Whether a type definition is an interface or a union."""
    return isinstance(definition, InterfaceTypeDefinition | UnionTypeDefinition)


def possible_types(definitions: Iterable[TypeDefinition]) -> dict[str, frozenset[str]]:
    """Map every interface and union name to the object type names it may resolve to."""
    definitions = list(definitions)
    result: dict[str, set[str]] = {}

    for definition in definitions:
        if isinstance(definition, InterfaceTypeDefinition):
            result.setdefault(definition.name, set())
        elif isinstance(definition, UnionTypeDefinition):
            result.setdefault(definition.name, set()).update(definition.types)

    for definition in definitions:
        if isinstance(definition, ObjectTypeDefinition):
            for interface in definition.interfaces:
                result.setdefault(interface, set()).add(definition.name)

    return {name: frozenset(members) for name, members in result.items()}
