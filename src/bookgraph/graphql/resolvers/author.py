from __future__ import annotations

from typing import TYPE_CHECKING, Annotated

import strawberry

from ...exceptions import parse_id
from ...logging import get_logger
from ..context import get_author_service, get_loaders
from ..registry import registry

if TYPE_CHECKING:
    from ..types.author import Author

logger = get_logger(__name__)

AuthorType = Annotated["Author", strawberry.lazy("bookgraph.graphql.types.author")]
BookType = Annotated["Book", strawberry.lazy("bookgraph.graphql.types.book")]


# Query resolvers
@registry.query("authorById")
async def resolve_author_by_id(info: strawberry.Info, id: strawberry.ID) -> AuthorType | None:
    """Fetch a single author; errors with NOT_FOUND when it does not exist."""
    from ..types.author import Author

    row = await get_author_service(info).get_by_id(parse_id(id))
    return Author.from_model(row)


@registry.query("authorByEmail")
async def resolve_author_by_email(info: strawberry.Info, email: str) -> AuthorType | None:
    """Fetch an author by exact email."""
    from ..types.author import Author

    row = await get_author_service(info).get_by_email(email)
    return Author.from_model(row)


@registry.query("allAuthors")
async def resolve_all_authors(info: strawberry.Info) -> list[AuthorType]:
    """All authors ordered by id."""
    from ..types.author import Author

    rows = await get_author_service(info).list_all()
    logger.debug("Listing authors", count=len(rows))
    return [Author.from_model(row) for row in rows]


# Relationship resolvers
@registry.register("Author", "books")
async def resolve_author_books(root: Author, info: strawberry.Info) -> list[BookType]:
    """Books written by this author; empty when there are none."""
    if root.preloaded_books is not None:
        return root.preloaded_books
    return await get_loaders(info).author_books.load(root)


# Mutation resolvers
@registry.mutation("createAuthor")
async def create_author(info: strawberry.Info, name: str, email: str) -> AuthorType:
    """Create a new author with a unique email."""
    from ..types.author import Author

    row = await get_author_service(info).create(name=name, email=email)
    get_loaders(info).clear_all()
    return Author.from_model(row, books=[])


@registry.mutation("updateAuthor")
async def update_author(
    info: strawberry.Info,
    id: strawberry.ID,
    name: str | None = None,
    email: str | None = None,
) -> AuthorType:
    """Update the supplied fields of an author."""
    from ..types.author import Author

    row = await get_author_service(info).update(parse_id(id), name=name, email=email)
    get_loaders(info).clear_all()
    return Author.from_model(row)


@registry.mutation("deleteAuthor")
async def delete_author(info: strawberry.Info, id: strawberry.ID) -> bool:
    """Delete an author together with their books; false when it did not exist."""
    deleted = await get_author_service(info).delete(parse_id(id))
    get_loaders(info).clear_all()
    return deleted
