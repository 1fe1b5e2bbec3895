from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import strawberry

from ...exceptions import parse_id
from ...logging import get_logger
from ..context import get_book_service, get_loaders
from ..registry import registry

if TYPE_CHECKING:
    from ..types.book import Book

logger = get_logger(__name__)

BookType = Annotated["Book", strawberry.lazy("bookgraph.graphql.types.book")]
AuthorType = Annotated["Author", strawberry.lazy("bookgraph.graphql.types.author")]


# Query resolvers
@registry.query("bookById")
async def resolve_book_by_id(info: strawberry.Info, id: strawberry.ID) -> BookType | None:
    """Fetch a single book; errors with NOT_FOUND when it does not exist."""
    from ..types.book import Book

    row = await get_book_service(info).get_by_id(parse_id(id))
    return Book.from_model(row)


@registry.query("booksByTitle")
async def resolve_books_by_title(info: strawberry.Info, title: str) -> list[BookType]:
    """Books whose title contains the given text, ignoring case."""
    from ..types.book import Book

    rows = await get_book_service(info).find_by_title(title)
    logger.info("Books found by title", title=title, count=len(rows))
    return [Book.from_model(row) for row in rows]


@registry.query("allBooks")
async def resolve_all_books(info: strawberry.Info) -> list[BookType]:
    """All books ordered by id."""
    from ..types.book import Book

    rows = await get_book_service(info).list_all()
    return [Book.from_model(row) for row in rows]


# Relationship resolvers
@registry.register("Book", "author")
async def resolve_book_author(root: Book, info: strawberry.Info) -> AuthorType | None:
    """The author who wrote this book; null with an error when the author is gone."""
    if root.preloaded_author is not None:
        return root.preloaded_author
    return await get_loaders(info).book_author.load(root)


# Mutation resolvers
@registry.mutation("createBook")
async def create_book(
    info: strawberry.Info,
    title: str,
    author_id: strawberry.ID,
    isbn: str | None = None,
    published_year: int | None = None,
) -> BookType:
    """Create a book for an existing author."""
    from ..types.author import Author
    from ..types.book import Book

    row = await get_book_service(info).create(
        title=title,
        author_id=parse_id(author_id, "authorId"),
        isbn=isbn,
        published_year=published_year,
    )
    get_loaders(info).clear_all()
    return Book.from_model(row, author=Author.from_model(row.author))


@registry.mutation("updateBook")
async def update_book(
    info: strawberry.Info,
    id: strawberry.ID,
    title: str | None = None,
    isbn: str | None = None,
    published_year: int | None = None,
) -> BookType:
    """Update the supplied fields of a book."""
    from ..types.book import Book

    row = await get_book_service(info).update(
        parse_id(id), title=title, isbn=isbn, published_year=published_year
    )
    get_loaders(info).clear_all()
    return Book.from_model(row)


@registry.mutation("deleteBook")
async def delete_book(info: strawberry.Info, id: strawberry.ID) -> bool:
    """Delete a book; false when it did not exist."""
    deleted = await get_book_service(info).delete(parse_id(id))
    get_loaders(info).clear_all()
    return deleted
