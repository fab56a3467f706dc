"""
Error taxonomy for schema build and field resolution.

Build-time errors (``SchemaConsistencyError``) are fatal and must stop the
host before it serves a request. Request-time errors (``UnresolvedTypeError``,
``DirectiveApplicationError``) are raised inside a single field's resolution;
the host engine turns them into a null field value plus an error entry, so
sibling fields still resolve.
"""

import reprlib
from typing import Any

from .config import settings


class ShapeQLError(Exception):
    """Base class for all shapeql errors."""

    code = "SHAPEQL_ERROR"


class UnresolvedTypeError(ShapeQLError):
    """No discriminant matched a value returned for a polymorphic field."""

    code = "UNRESOLVED_TYPE"

    def __init__(self, type_name: str, value: Any, reason: str | None = None):
        self.type_name = type_name
        self.value_repr = _truncated_repr(value)
        self.reason = reason
        message = f"Could not resolve a concrete type for '{type_name}' from value {self.value_repr}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DirectiveApplicationError(ShapeQLError):
    """A directive transformation raised while processing a field value."""

    code = "DIRECTIVE_FAILED"

    def __init__(self, directive: str, cause: BaseException):
        self.directive = directive
        self.cause = cause
        super().__init__(f"Directive '@{directive}' failed: {cause}")


class SchemaConsistencyError(ShapeQLError):
    """The schema references undeclared types, directives or discriminant targets."""

    code = "SCHEMA_INCONSISTENT"

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("Schema consistency check failed: " + "; ".join(self.problems))


def _truncated_repr(value: Any) -> str:
    limit = settings.value_repr_limit
    # Bounded repr: large containers are never rendered in full
    bounded = reprlib.Repr()
    bounded.maxstring = bounded.maxother = max(limit, 3)
    text = bounded.repr(value)
    if len(text) > limit:
        return text[: max(limit - 3, 0)] + "..."
    return text
