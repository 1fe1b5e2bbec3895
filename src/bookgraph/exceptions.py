"""
Domain failures raised by the service layer.

Services raise these; resolvers let them propagate, and the GraphQL error
mapper (``bookgraph.graphql.errors``) is the single place that turns them into
client-facing error payloads.
"""

from __future__ import annotations

from typing import Any


class BookgraphError(Exception):
    """Base exception for domain failures."""

    pass


class ResourceNotFoundError(BookgraphError):
    """A looked-up entity does not exist."""

    def __init__(self, resource_type: str, resource_id: Any, message: str | None = None):
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        super().__init__(message or f"{resource_type} not found with id: {resource_id}")


class ValidationError(BookgraphError):
    """Input rejected before reaching the store.

    Args:
        errors: Human readable messages, one per problem
        invalid_fields: Field name -> short reason
        message: Summary message (defaults to "Validation failed")
    """

    def __init__(
        self,
        errors: list[str],
        invalid_fields: dict[str, str] | None = None,
        message: str | None = None,
    ):
        self.errors = list(errors)
        self.invalid_fields = dict(invalid_fields or {})
        super().__init__(message or "; ".join(self.errors) or "Validation failed")


class ConflictError(ValidationError):
    """A unique constraint (author email, book ISBN) would be violated."""

    def __init__(self, field: str, value: Any, entity: str):
        super().__init__(
            [f"{entity} with {field} {value} already exists"],
            {field: "must be unique"},
        )
        self.field = field
        self.value = value
        self.entity = entity


def parse_id(value: Any, field: str = "id") -> int:
    """Parse a GraphQL ID argument into a positive integer primary key.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        parsed = 0
    if parsed <= 0:
        raise ValidationError(
            [f"Invalid {field}: {value!r}"],
            {field: "must be a positive integer"},
        )
    return parsed
