"""
Abstract type resolution.

Every interface and union gets an ordered list of discriminants. A
discriminant looks at a runtime value and returns the name of the concrete
object type it recognises, or ``None``. Discriminants are evaluated in the
order they were registered and the first non-empty answer wins. Values whose
shape satisfies several discriminants therefore always resolve to the
earliest one.
"""

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from .errors import UnresolvedTypeError
from .logging import get_logger

logger = get_logger(__name__)

TYPENAME_KEY = "__typename"

_MISSING = object()


class Discriminant(BaseModel):
    """A ``(value) -> type name | None`` function with an optional declared target."""

    model_config = ConfigDict(frozen=True)

    fn: Callable[[Any], str | None]
    target: str | None = None
    description: str | None = None

    def __call__(self, value: Any) -> str | None:
        return self.fn(value)


def read_key(value: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a mapping or an attribute of an object."""
    if isinstance(value, Mapping):
        return value.get(key, default)
    return getattr(value, key, default)


def when(predicate: Callable[[Any], bool], target: str) -> Discriminant:
    """Resolve to ``target`` whenever ``predicate(value)`` is true."""
    return Discriminant(fn=lambda value: target if predicate(value) else None, target=target)


def field_equals(key: str, expected: Any, target: str) -> Discriminant:
    """Resolve to ``target`` when ``value.key == expected``."""
    return Discriminant(
        fn=lambda value: target if read_key(value, key, _MISSING) == expected else None,
        target=target,
        description=f"{key} == {expected!r}",
    )


def has_field(key: str, target: str) -> Discriminant:
    """Resolve to ``target`` when ``value.key`` is present and truthy."""
    return Discriminant(
        fn=lambda value: target if read_key(value, key) else None,
        target=target,
        description=f"has {key}",
    )


def typename_tag(key: str = TYPENAME_KEY) -> Discriminant:
    """Resolve to whatever explicit type tag the value carries under ``key``."""

    def _tag(value: Any) -> str | None:
        tag = read_key(value, key)
        return tag if isinstance(tag, str) and tag else None

    return Discriminant(fn=_tag, description=f"explicit {key} tag")


class TypeResolver:
    """
    Per-type ordered discriminants plus the member set of every polymorphic type.

    Rules are registered during schema build; after ``freeze()`` the resolver
    is read-only and safe to share across concurrent requests.
    """

    def __init__(self, possible_types: Mapping[str, Iterable[str]] | None = None):
        self._rules: dict[str, list[Discriminant]] = {}
        self._members: dict[str, frozenset[str]] = {}
        self._frozen = False
        for type_name, members in (possible_types or {}).items():
            self.declare(type_name, members)

    def declare(self, type_name: str, members: Iterable[str]) -> None:
        """Record the object types ``type_name`` may resolve to."""
        self._ensure_mutable()
        self._members[type_name] = frozenset(members)

    def register(
        self,
        type_name: str,
        discriminant: Discriminant | Callable[[Any], str | None],
        target: str | None = None,
    ) -> None:
        """
        Append a discriminant to the rule list of ``type_name``.

        Args:
            type_name: Interface or union name
            discriminant: A Discriminant, or a bare ``(value) -> name | None`` function
            target: Declared result type of a bare function, used for build-time checks
        """
        self._ensure_mutable()
        if not isinstance(discriminant, Discriminant):
            discriminant = Discriminant(fn=discriminant, target=target)
        self._rules.setdefault(type_name, []).append(discriminant)

    def rules(self, type_name: str) -> tuple[Discriminant, ...]:
        return tuple(self._rules.get(type_name, ()))

    def members(self, type_name: str) -> frozenset[str] | None:
        return self._members.get(type_name)

    def registered_types(self) -> list[str]:
        return list(self._rules.keys())

    def resolve(self, type_name: str, value: Any) -> str:
        """
        Return the concrete object type name for ``value`` under ``type_name``.

        Raises:
            UnresolvedTypeError: If ``type_name`` has no declared members, no
                discriminant matches, or the match is not one of the members
        """
        rules = self._rules.get(type_name)
        if not rules:
            raise UnresolvedTypeError(type_name, value, "no discriminants registered")
        members = self._members.get(type_name)
        if members is None:
            raise UnresolvedTypeError(type_name, value, "no possible types declared")

        for discriminant in rules:
            resolved = discriminant(value)
            if not resolved:
                continue

            if resolved not in members:
                logger.warning(
                    "Discriminant returned a non-member type",
                    type_name=type_name,
                    resolved=resolved,
                )
                raise UnresolvedTypeError(
                    type_name, value, f"'{resolved}' is not a possible type of '{type_name}'"
                )

            logger.debug("Resolved abstract type", type_name=type_name, resolved=resolved)
            return resolved

        logger.warning("No discriminant matched value", type_name=type_name)
        raise UnresolvedTypeError(type_name, value)

    def graphql_resolve_type(self, type_name: str) -> Callable[..., str]:
        """Adapt the rule list of ``type_name`` to graphql-core's ``resolve_type`` hook."""

        def resolve_type(value: Any, info: Any, abstract_type: Any) -> str:
            _ = info, abstract_type
            return self.resolve(type_name, value)

        resolve_type.__name__ = f"resolve_{type_name}_type"
        return resolve_type

    def check_targets(self, include_targets: bool = True) -> list[str]:
        """List rules registered for undeclared types and, optionally, rules with non-member targets."""
        problems = []
        for type_name, rules in self._rules.items():
            members = self._members.get(type_name)
            if members is None:
                problems.append(
                    f"Discriminants registered for '{type_name}', which is not an interface or union"
                )
                continue
            if not include_targets:
                continue
            for discriminant in rules:
                if discriminant.target is not None and discriminant.target not in members:
                    problems.append(
                        f"Discriminant for '{type_name}' targets '{discriminant.target}', "
                        f"which is not one of {sorted(members)}"
                    )
        return problems

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise RuntimeError("Type resolver is frozen; register discriminants before build")
