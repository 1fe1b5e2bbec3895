"""
Main GraphQL schema definition using Strawberry
"""

from typing import Any

import strawberry
from fastapi import Request
from graphql import GraphQLError
from graphql import validate_schema as gql_validate_schema
from strawberry.fastapi import GraphQLRouter
from strawberry.types import ExecutionContext

from ..config import settings
from ..logging import get_logger
from .context import build_context
from .errors import ErrorMapper, is_client_error
from .registry import registry
from .types.author import Author
from .types.book import Book

logger = get_logger(__name__)


class BookgraphSchema(strawberry.Schema):
    """Schema that logs request errors as info and server errors with tracebacks."""

    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        operation_name = execution_context.operation_name if execution_context else None
        for error in errors:
            original = error.original_error
            if is_client_error(error):
                logger.info(
                    "GraphQL request error",
                    message=error.message,
                    path=error.path,
                    operation=operation_name,
                )
            else:
                logger.error(
                    "GraphQL internal error",
                    message=str(original),
                    exception_type=type(original).__name__,
                    path=error.path,
                    operation=operation_name,
                    exc_info=(type(original), original, original.__traceback__),
                )


# Root operation types are assembled from the registered resolvers
Query = registry.build_root("Query", "Root GraphQL query type.")
Mutation = registry.build_root("Mutation", "Root GraphQL mutation type.")

schema = BookgraphSchema(
    query=Query,
    mutation=Mutation,
    types=[Author, Book],
    extensions=[ErrorMapper],
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Checks the resolver registration table against the schema, then runs the
    graphql-core schema validation and an introspection query, so the server
    fails fast instead of erroring at request time.

    Raises:
        ResolverRegistryError: If registrations and schema disagree
        Exception: If the schema is invalid or has unresolved types
    """
    try:
        registry.validate(schema)

        graphql_schema = schema._schema

        errors = gql_validate_schema(graphql_schema)
        if errors:
            error_messages = [str(e) for e in errors]
            raise Exception(f"GraphQL schema validation failed: {'; '.join(error_messages)}")

        from graphql import get_introspection_query, graphql_sync

        result = graphql_sync(graphql_schema, get_introspection_query())
        if result.errors:
            error_messages = [str(e) for e in result.errors]
            raise Exception(f"GraphQL introspection failed: {'; '.join(error_messages)}")

        logger.info("GraphQL schema validation successful")

    except Exception as e:
        logger.error("GraphQL schema validation failed", error=str(e))
        raise


def create_graphql_router() -> GraphQLRouter[dict[str, Any], None]:
    """Create a GraphQL router for FastAPI."""

    async def get_context(request: Request) -> dict[str, Any]:
        """Fresh services and DataLoaders for every request."""
        return build_context(request)

    return GraphQLRouter(
        schema,
        path="/graphql",
        graphiql=settings.graphiql,
        context_getter=get_context,
    )
