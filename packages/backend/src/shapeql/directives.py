"""
Field directives and the directive chain.

A directive is a named ``(value) -> value`` transformation. The chain wraps a
field's base resolver so that every declared directive runs against the
resolved value, in declaration order: for ``[A, B]`` the effective resolver
returns ``B(A(base(...)))``. Stages may be synchronous or return awaitables;
a chain only becomes asynchronous once some stage actually produces an
awaitable, so synchronous resolvers stay synchronous.
"""

import functools
import inspect
from collections.abc import Callable, Iterable, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .errors import DirectiveApplicationError, SchemaConsistencyError
from .logging import get_logger

logger = get_logger(__name__)


class DirectiveLocation(str, Enum):
    """Where a directive may be attached."""

    FIELD_DEFINITION = "FIELD_DEFINITION"
    FIELD = "FIELD"


class DirectiveDefinition(BaseModel):
    """A named value transformation and the locations it is valid in."""

    model_config = ConfigDict(frozen=True)

    name: str
    transform: Callable[[Any], Any]
    locations: frozenset[DirectiveLocation] = Field(
        default=frozenset({DirectiveLocation.FIELD_DEFINITION})
    )
    description: str | None = None


def uppercase(value: Any) -> Any:
    """Uppercase text values; anything else passes through untouched.

    Non-text input is deliberately not an error, so ``@upper`` can be attached
    to fields of any type.
    """
    if isinstance(value, str):
        return value.upper()
    return value


UPPER = DirectiveDefinition(
    name="upper",
    transform=uppercase,
    locations=frozenset({DirectiveLocation.FIELD_DEFINITION, DirectiveLocation.FIELD}),
    description="Uppercase string results.",
)

BUILTIN_DIRECTIVES = (UPPER,)


class DirectiveRegistry:
    """
    Registry of directive definitions.

    Populated during schema build and frozen by the builder afterwards, so
    concurrent requests can read it without locking.
    """

    def __init__(self, directives: Iterable[DirectiveDefinition] = ()):
        self._directives: dict[str, DirectiveDefinition] = {}
        self._frozen = False
        for directive in directives:
            self.register(directive)

    @classmethod
    def with_builtins(cls) -> "DirectiveRegistry":
        return cls(BUILTIN_DIRECTIVES)

    def register(self, directive: DirectiveDefinition) -> None:
        """
        Register a directive definition.

        Raises:
            ValueError: If the name is taken
            RuntimeError: If the registry has been frozen
        """
        if self._frozen:
            raise RuntimeError("Directive registry is frozen; register directives before build")
        if directive.name in self._directives:
            raise ValueError(f"Directive '@{directive.name}' is already registered")

        logger.debug("Registering directive", name=directive.name)
        self._directives[directive.name] = directive

    def get(self, name: str) -> DirectiveDefinition | None:
        return self._directives.get(name)

    def require(
        self, name: str, location: DirectiveLocation = DirectiveLocation.FIELD_DEFINITION
    ) -> DirectiveDefinition:
        """
        Look up a directive that must exist and be valid at ``location``.

        Raises:
            SchemaConsistencyError: If the directive is unknown or misplaced
        """
        directive = self._directives.get(name)
        if directive is None:
            raise SchemaConsistencyError([f"Unknown directive '@{name}'"])
        if location not in directive.locations:
            raise SchemaConsistencyError(
                [f"Directive '@{name}' may not be used on {location.value}"]
            )
        return directive

    def list_all(self) -> list[DirectiveDefinition]:
        return list(self._directives.values())

    def list_names(self) -> list[str]:
        return list(self._directives.keys())

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._directives)

    def __contains__(self, name: str) -> bool:
        return name in self._directives


# Global registry instance
directive_registry = DirectiveRegistry.with_builtins()


def _run_stage(directive: DirectiveDefinition, value: Any) -> Any:
    try:
        result = directive.transform(value)
    except Exception as e:
        logger.warning("Directive transform failed", directive=directive.name, error=str(e))
        raise DirectiveApplicationError(directive.name, e) from e

    if inspect.isawaitable(result):
        return _await_stage(directive, result)
    return result


async def _await_stage(directive: DirectiveDefinition, pending: Any) -> Any:
    try:
        return await pending
    except Exception as e:
        logger.warning("Directive transform failed", directive=directive.name, error=str(e))
        raise DirectiveApplicationError(directive.name, e) from e


async def _finish_async(pending: Any, directives: Sequence[DirectiveDefinition]) -> Any:
    value = await pending
    for directive in directives:
        value = _run_stage(directive, value)
        if inspect.isawaitable(value):
            value = await value
    return value


def apply_directives(value: Any, directives: Sequence[DirectiveDefinition]) -> Any:
    """
    Run ``directives`` over ``value`` in order.

    Returns a plain value while every stage is synchronous, and an awaitable
    that finishes the remaining stages as soon as one is not.

    Raises:
        DirectiveApplicationError: If a transformation raises
    """
    for index, directive in enumerate(directives):
        if inspect.isawaitable(value):
            return _finish_async(value, directives[index:])
        value = _run_stage(directive, value)
    return value


def build_effective_resolver(
    base_resolver: Callable[..., Any],
    directive_names: Sequence[str],
    registry: DirectiveRegistry | None = None,
) -> Callable[..., Any]:
    """
    Compose the named directives around ``base_resolver``.

    Args:
        base_resolver: Field resolver; may return a value or an awaitable
        directive_names: Directive names in schema declaration order
        registry: Registry to look directives up in (global registry by default)

    Returns:
        A resolver with the same call signature. With no directives this is
        ``base_resolver`` itself.

    Raises:
        SchemaConsistencyError: If a name is not a registered field-definition directive
    """
    if not directive_names:
        return base_resolver

    registry = registry if registry is not None else directive_registry
    directives = tuple(
        registry.require(name, DirectiveLocation.FIELD_DEFINITION) for name in directive_names
    )

    @functools.wraps(base_resolver)
    def effective_resolver(*args: Any, **kwargs: Any) -> Any:
        return apply_directives(base_resolver(*args, **kwargs), directives)

    effective_resolver.directive_names = tuple(directive_names)  # type: ignore[attr-defined]
    return effective_resolver
