"""
Book GraphQL type definitions
"""

from datetime import datetime
from typing import TYPE_CHECKING

import strawberry

from ...dbmodels import Books
from ..registry import registry
from ..resolvers import book as _book_resolvers  # noqa: F401  (registers Book fields)

if TYPE_CHECKING:
    from .author import Author


class Book:
    """A book written by exactly one author."""

    id: strawberry.ID
    title: str
    author_id: strawberry.Private[int]
    isbn: str | None = None
    published_year: int | None = None
    created_at: datetime | None = None
    preloaded_author: strawberry.Private["Author | None"] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(("Book", self.id))

    @classmethod
    def from_model(cls, row: Books, author: "Author | None" = None) -> "Book":
        return cls(
            id=strawberry.ID(str(row.id)),
            title=row.title,
            author_id=row.author_id,
            isbn=row.isbn,
            published_year=row.published_year,
            created_at=row.created_at,
            preloaded_author=author,
        )


Book = registry.build_type(Book)
