"""
Request execution over a built schema.

The host engine (graphql-core) parses, validates and schedules the query; the
executor adds what shapeql owns on top of it: selection-level directives,
per-request logging context and structured, field-localized error entries.
"""

from collections.abc import Callable
from typing import Any

from graphql import ExecutionResult, GraphQLError, graphql, graphql_sync
from pydantic import BaseModel, Field

from .config import settings
from .directives import DirectiveLocation, DirectiveRegistry, apply_directives
from .errors import ShapeQLError
from .logging import clear_request_context, get_logger, set_request_context
from .schema import ExecutableSchema

logger = get_logger(__name__)


class ExecutionOutcome(BaseModel):
    """Result tree plus one structured entry per failed field."""

    data: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SelectionDirectiveMiddleware:
    """
    Host middleware applying ``@directive`` markers written on query selections.

    Runs after the field's declared directives, in the order the markers
    appear in the query. Directives the registry does not know (``@skip``,
    ``@include``) are left to the host.
    """

    def __init__(self, directives: DirectiveRegistry):
        self.directives = directives

    def resolve(self, next_: Callable[..., Any], root: Any, info: Any, **args: Any) -> Any:
        result = next_(root, info, **args)

        # Merged selections of one response key each apply their directives once
        names = list(
            dict.fromkeys(
                directive.name.value
                for node in info.field_nodes
                for directive in node.directives or ()
                if directive.name.value in self.directives
            )
        )
        if not names:
            return result

        stages = tuple(self.directives.require(name, DirectiveLocation.FIELD) for name in names)
        return apply_directives(result, stages)


class Executor:
    """Executes queries against an ``ExecutableSchema``."""

    def __init__(self, schema: ExecutableSchema, mask_internal_errors: bool | None = None):
        self.schema = schema
        self.middleware = SelectionDirectiveMiddleware(schema.directives)
        self.mask_internal_errors = (
            settings.mask_internal_errors if mask_internal_errors is None else mask_internal_errors
        )

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        context: Any = None,
        operation_name: str | None = None,
        request_id: str | None = None,
    ) -> ExecutionOutcome:
        """Execute one query; async resolvers and directives are awaited."""
        set_request_context(request_id, operation_name)
        try:
            result = await graphql(
                self.schema.graphql_schema,
                query,
                context_value=context if context is not None else {},
                variable_values=variables,
                operation_name=operation_name,
                middleware=[self.middleware],
            )
            return self._outcome(result)
        finally:
            clear_request_context()

    def execute_sync(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        context: Any = None,
        operation_name: str | None = None,
        request_id: str | None = None,
    ) -> ExecutionOutcome:
        """Execute one query whose resolvers are all synchronous."""
        set_request_context(request_id, operation_name)
        try:
            result = graphql_sync(
                self.schema.graphql_schema,
                query,
                context_value=context if context is not None else {},
                variable_values=variables,
                operation_name=operation_name,
                middleware=[self.middleware],
            )
            return self._outcome(result)
        finally:
            clear_request_context()

    def format_error(self, error: GraphQLError) -> dict[str, Any]:
        """Render a host error as ``{message, locations, path, extensions: {code}}``."""
        formatted = dict(error.formatted)
        original = error.original_error

        if isinstance(original, ShapeQLError):
            code = original.code
        elif original is None:
            code = "GRAPHQL_ERROR"
        else:
            code = "INTERNAL_ERROR"
            if self.mask_internal_errors:
                formatted["message"] = "Internal server error"

        extensions = dict(formatted.get("extensions") or {})
        extensions["code"] = code
        formatted["extensions"] = extensions
        return formatted

    def _outcome(self, result: ExecutionResult) -> ExecutionOutcome:
        errors = [self.format_error(error) for error in result.errors or ()]

        if errors:
            logger.warning(
                "Query completed with errors",
                error_count=len(errors),
                codes=sorted({error["extensions"]["code"] for error in errors}),
            )
        else:
            logger.debug("Query completed")

        return ExecutionOutcome(data=result.data, errors=errors)
