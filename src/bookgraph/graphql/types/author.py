"""
Author GraphQL type definitions
"""

from datetime import datetime
from typing import TYPE_CHECKING

import strawberry

from ...dbmodels import Authors
from ..registry import registry
from ..resolvers import author as _author_resolvers  # noqa: F401  (registers Author fields)

if TYPE_CHECKING:
    from .book import Book


class Author:
    """A person who has written zero or more books."""

    id: strawberry.ID
    name: str
    email: str
    created_at: datetime | None = None
    preloaded_books: strawberry.Private["list[Book] | None"] = None

    @property
    def pk(self) -> int:
        return int(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Author):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(("Author", self.id))

    @classmethod
    def from_model(cls, row: Authors, books: "list[Book] | None" = None) -> "Author":
        return cls(
            id=strawberry.ID(str(row.id)),
            name=row.name,
            email=row.email,
            created_at=row.created_at,
            preloaded_books=books,
        )


Author = registry.build_type(Author)
