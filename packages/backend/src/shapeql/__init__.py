"""
shapeql
Abstract type resolution and field directive chains for schema-driven query execution
"""

__version__ = "0.1.0"

from .config import settings
from .directives import (
    DirectiveDefinition,
    DirectiveLocation,
    DirectiveRegistry,
    build_effective_resolver,
    directive_registry,
)
from .errors import (
    DirectiveApplicationError,
    SchemaConsistencyError,
    ShapeQLError,
    UnresolvedTypeError,
)
from .executor import ExecutionOutcome, Executor
from .resolution import Discriminant, TypeResolver, field_equals, has_field, typename_tag, when
from .schema import ExecutableSchema, SchemaBuilder

__all__ = [
    "settings",
    "__version__",
    "DirectiveApplicationError",
    "DirectiveDefinition",
    "DirectiveLocation",
    "DirectiveRegistry",
    "Discriminant",
    "ExecutableSchema",
    "ExecutionOutcome",
    "Executor",
    "SchemaBuilder",
    "SchemaConsistencyError",
    "ShapeQLError",
    "TypeResolver",
    "UnresolvedTypeError",
    "build_effective_resolver",
    "directive_registry",
    "field_equals",
    "has_field",
    "typename_tag",
    "when",
]
