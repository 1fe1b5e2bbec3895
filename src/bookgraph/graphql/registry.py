"""
Explicit resolver registration table.

Every GraphQL field served by a resolver function is registered here under
its (type name, field name) pair. Object types are then assembled from the
table, so a field has exactly one handler: registering a second handler for
the same pair fails immediately instead of one silently shadowing the other.
"""

import inspect
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import strawberry
from graphql import GraphQLObjectType

from ..logging import get_logger

logger = get_logger(__name__)

ResolverT = TypeVar("ResolverT", bound=Callable[..., Any])
TypeT = TypeVar("TypeT", bound=type)

ROOT_TYPES = ("Query", "Mutation")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class ResolverRegistryError(Exception):
    """The registration table and the schema disagree."""

    pass


class ResolverConflictError(ResolverRegistryError):
    """Two handlers claim the same (type, field) pair."""

    pass


@dataclass(frozen=True)
class ResolverBinding:
    """One row of the registration table."""

    type_name: str
    field_name: str
    resolver: Callable[..., Any]
    description: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.type_name}.{self.field_name}"

    @property
    def handler_name(self) -> str:
        return f"{self.resolver.__module__}.{self.resolver.__qualname__}"


def python_name(field_name: str) -> str:
    """camelCase GraphQL field name -> snake_case attribute name."""
    return _CAMEL_BOUNDARY.sub("_", field_name).lower()


def _summary(resolver: Callable[..., Any]) -> str | None:
    doc = inspect.getdoc(resolver)
    return doc.splitlines()[0] if doc else None


class ResolverRegistry:
    """
    Table of (type name, field name) -> resolver.

    Usage:
        registry = ResolverRegistry()

        @registry.query("bookById")
        async def resolve_book_by_id(info: strawberry.Info, id: strawberry.ID) -> Book: ...

        Query = registry.build_root("Query")
    """

    def __init__(self) -> None:
        self._bindings: dict[tuple[str, str], ResolverBinding] = {}
        self._built: dict[str, type] = {}

    def register(
        self, type_name: str, field_name: str, *, description: str | None = None
    ) -> Callable[[ResolverT], ResolverT]:
        """Decorator registering a resolver for ``type_name.field_name``.

        Raises:
            ResolverConflictError: If the pair already has a resolver
            ResolverRegistryError: If the type has already been built
        """

        def decorator(resolver: ResolverT) -> ResolverT:
            self.add(
                ResolverBinding(
                    type_name=type_name,
                    field_name=field_name,
                    resolver=resolver,
                    description=description or _summary(resolver),
                )
            )
            return resolver

        return decorator

    def query(self, field_name: str, **kwargs: Any) -> Callable[[ResolverT], ResolverT]:
        return self.register("Query", field_name, **kwargs)

    def mutation(self, field_name: str, **kwargs: Any) -> Callable[[ResolverT], ResolverT]:
        return self.register("Mutation", field_name, **kwargs)

    def add(self, binding: ResolverBinding) -> None:
        key = (binding.type_name, binding.field_name)
        existing = self._bindings.get(key)
        if existing is not None:
            raise ResolverConflictError(
                f"Conflicting resolvers for {binding.qualified_name}: "
                f"{existing.handler_name} and {binding.handler_name}"
            )
        if binding.type_name in self._built:
            raise ResolverRegistryError(
                f"Cannot register {binding.qualified_name}: "
                f"type {binding.type_name} has already been built"
            )
        self._bindings[key] = binding
        logger.debug(
            "Registered resolver", field=binding.qualified_name, handler=binding.handler_name
        )

    def get(self, type_name: str, field_name: str) -> ResolverBinding | None:
        return self._bindings.get((type_name, field_name))

    def bindings_for(self, type_name: str) -> list[ResolverBinding]:
        return [binding for (owner, _), binding in self._bindings.items() if owner == type_name]

    @property
    def bindings(self) -> list[ResolverBinding]:
        return list(self._bindings.values())

    def is_built(self, type_name: str) -> bool:
        return type_name in self._built

    def build_type(
        self, cls: TypeT, *, name: str | None = None, description: str | None = None
    ) -> TypeT:
        """Attach the registered resolver fields to ``cls`` and make it a strawberry type.

        ``cls`` declares the plain data fields; relationship and computed
        fields come only from the table.
        """
        type_name = name or cls.__name__
        if type_name in self._built:
            raise ResolverRegistryError(f"Type {type_name} has already been built")

        declared = set(inspect.get_annotations(cls)) | set(vars(cls))
        field_factory = strawberry.mutation if type_name == "Mutation" else strawberry.field

        for binding in self.bindings_for(type_name):
            attribute = python_name(binding.field_name)
            if attribute in declared:
                raise ResolverConflictError(
                    f"{binding.qualified_name} is declared on {cls.__qualname__} "
                    f"and also registered by {binding.handler_name}"
                )
            setattr(
                cls,
                attribute,
                field_factory(
                    resolver=binding.resolver,
                    name=binding.field_name,
                    description=binding.description,
                ),
            )

        built = strawberry.type(cls, name=type_name, description=description or _summary(cls))
        self._built[type_name] = built
        return built

    def build_root(self, type_name: str, description: str | None = None) -> type | None:
        """Create a root operation type (Query/Mutation) purely from the table.

        Returns None when nothing is registered for ``type_name``.
        """
        if not self.bindings_for(type_name):
            return None
        cls = type(type_name, (), {"__module__": __name__, "__doc__": description})
        return self.build_type(cls, description=description)

    def validate(self, schema: strawberry.Schema) -> None:
        """Check the table against a built schema.

        Every registration must target a built type and a field present in the
        schema, and every root operation field must have a registration.

        Raises:
            ResolverRegistryError: Listing every mismatch found
        """
        problems: list[str] = []
        graphql_schema = schema._schema

        for binding in self._bindings.values():
            if binding.type_name not in self._built:
                problems.append(
                    f"{binding.qualified_name} is registered but type "
                    f"{binding.type_name} was never built"
                )
                continue
            graphql_type = graphql_schema.get_type(binding.type_name)
            if (
                not isinstance(graphql_type, GraphQLObjectType)
                or binding.field_name not in graphql_type.fields
            ):
                problems.append(f"{binding.qualified_name} is registered but missing from the schema")

        for root in ROOT_TYPES:
            graphql_type = graphql_schema.get_type(root)
            if not isinstance(graphql_type, GraphQLObjectType):
                continue
            for field_name in graphql_type.fields:
                if (root, field_name) not in self._bindings:
                    problems.append(f"{root}.{field_name} has no registered resolver")

        if problems:
            raise ResolverRegistryError(
                "Resolver registry does not match the schema: " + "; ".join(problems)
            )

        logger.info("Resolver registry validated", bindings=len(self._bindings))


# Process-wide table used by the bookgraph schema
registry = ResolverRegistry()
