"""
Translation of failures into client-facing GraphQL errors.

This is the only place domain exceptions become error payloads. Resolvers and
services raise; ``ErrorMapper`` rewrites every error of a finished operation:

- ResourceNotFoundError -> NOT_FOUND with the resource type and id
- ValidationError (and ConflictError) -> BAD_REQUEST with the field problems
- GraphQL document errors (parse/validation) -> BAD_REQUEST, message kept
- anything else -> INTERNAL with a generic message
"""

from collections.abc import Iterator
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

from ..exceptions import ResourceNotFoundError, ValidationError

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorCategory(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL = "INTERNAL"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _domain_error(error: GraphQLError) -> Exception | None:
    """The exception a resolver raised, or None for document errors."""
    original = error.original_error
    if original is None or isinstance(original, GraphQLError):
        return None
    return original


def categorize(error: GraphQLError) -> ErrorCategory:
    original = _domain_error(error)
    if original is None or isinstance(original, ValidationError):
        return ErrorCategory.BAD_REQUEST
    if isinstance(original, ResourceNotFoundError):
        return ErrorCategory.NOT_FOUND
    return ErrorCategory.INTERNAL


def is_client_error(error: GraphQLError) -> bool:
    """True for errors caused by the request rather than by the server."""
    return categorize(error) is not ErrorCategory.INTERNAL


def _payload(error: GraphQLError) -> tuple[str, dict[str, Any]]:
    original = _domain_error(error)
    category = categorize(error)
    extensions: dict[str, Any] = {"category": category.value, "timestamp": _timestamp()}

    if isinstance(original, ResourceNotFoundError):
        extensions["resourceType"] = original.resource_type
        extensions["resourceId"] = original.resource_id
        return str(original), extensions

    if isinstance(original, ValidationError):
        extensions["errors"] = list(original.errors)
        extensions["invalidFields"] = dict(original.invalid_fields)
        return f"Validation failed: {original}", extensions

    if original is None:
        return error.message, extensions

    extensions["exceptionType"] = type(original).__name__
    return INTERNAL_ERROR_MESSAGE, extensions


def map_error(error: GraphQLError) -> GraphQLError:
    """Return the client-facing version of ``error``.

    Location, path and the original exception are preserved so the error is
    still reported at the right place and can be logged with its traceback.
    Errors that were already mapped are returned unchanged.
    """
    if error.extensions and "category" in error.extensions:
        return error

    message, extensions = _payload(error)
    return GraphQLError(
        message,
        nodes=error.nodes,
        source=error.source,
        positions=error.positions,
        path=error.path,
        original_error=error.original_error,
        extensions=extensions,
    )


class ErrorMapper(SchemaExtension):
    """Rewrite the errors of every operation into the structured error format."""

    def on_operation(self) -> Iterator[None]:
        yield

        execution_context = self.execution_context
        result = execution_context.result
        if result is not None and getattr(result, "errors", None):
            result.errors = [map_error(error) for error in result.errors]

        pre_execution_errors = getattr(execution_context, "pre_execution_errors", None)
        if pre_execution_errors:
            execution_context.pre_execution_errors = [
                map_error(error) for error in pre_execution_errors
            ]
