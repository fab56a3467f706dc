"""
Strawberry integration.

Code-first strawberry schemas attach directive chains to individual fields
through ``DirectiveChainExtension``::

    @strawberry.type
    class Book:
        @strawberry.field(extensions=[DirectiveChainExtension("upper")])
        def title(self) -> str: ...
"""

import inspect
from typing import Any

import strawberry
from strawberry.extensions import FieldExtension

from .directives import DirectiveLocation, DirectiveRegistry, apply_directives, directive_registry


class DirectiveChainExtension(FieldExtension):
    """Apply registered directives to a strawberry field's resolved value, in order."""

    def __init__(self, *directive_names: str, registry: DirectiveRegistry | None = None):
        registry = registry if registry is not None else directive_registry
        self.directive_names = directive_names
        self.directives = tuple(
            registry.require(name, DirectiveLocation.FIELD_DEFINITION) for name in directive_names
        )

    def resolve(self, next_: Any, source: Any, info: strawberry.Info, **kwargs: Any) -> Any:
        return apply_directives(next_(source, info, **kwargs), self.directives)

    async def resolve_async(
        self, next_: Any, source: Any, info: strawberry.Info, **kwargs: Any
    ) -> Any:
        result = apply_directives(await next_(source, info, **kwargs), self.directives)
        if inspect.isawaitable(result):
            result = await result
        return result
