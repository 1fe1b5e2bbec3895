"""Author use cases: lookups, writes and the Author -> Books batch."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from sqlalchemy.exc import IntegrityError

from ..database.connection import get_async_session
from ..dbmodels import Authors, Books
from ..exceptions import ConflictError, ResourceNotFoundError
from ..logging import get_logger
from ..repositories import AuthorRepository, BookRepository
from .base import FieldErrors, HasPrimaryKey, SessionFactory

logger = get_logger(__name__)

AuthorT = TypeVar("AuthorT", bound=HasPrimaryKey)


class AuthorService:
    """
    Author operations.

    Every call opens its own pooled session, so each write commits (or rolls
    back) on its own.
    """

    def __init__(self, session_factory: SessionFactory = get_async_session):
        self._session_factory = session_factory

    async def get_by_id(self, author_id: int) -> Authors:
        async with self._session_factory() as session:
            author = await AuthorRepository(session).find_by_id(author_id)
        if author is None:
            logger.info("Author not found", author_id=author_id)
            raise ResourceNotFoundError("Author", author_id)
        return author

    async def get_by_email(self, email: str) -> Authors:
        async with self._session_factory() as session:
            author = await AuthorRepository(session).find_by_email(email)
        if author is None:
            logger.info("Author not found by email", email=email)
            raise ResourceNotFoundError(
                "Author", email, message=f"Author not found with email: {email}"
            )
        return author

    async def list_all(self) -> list[Authors]:
        async with self._session_factory() as session:
            return list(await AuthorRepository(session).find_all())

    async def create(self, name: str, email: str) -> Authors:
        check = FieldErrors()
        name = check.require("name", name, "Name")
        email = check.require("email", email, "Email")
        check.max_length("name", name, 255, "Name")
        check.max_length("email", email, 255, "Email")
        check.raise_if_any()

        try:
            async with self._session_factory() as session:
                authors = AuthorRepository(session)
                if await authors.exists_by_email(email):
                    raise ConflictError("email", email, "Author")
                author = await authors.add(Authors(name=name, email=email))
        except IntegrityError as e:
            # Lost a race with a concurrent create using the same email
            logger.warning("Author email constraint violated", email=email, error=str(e.orig))
            raise ConflictError("email", email, "Author") from e

        logger.info("Author created", author_id=author.id)
        return author

    async def update(
        self, author_id: int, name: str | None = None, email: str | None = None
    ) -> Authors:
        """Overwrite only the supplied (non-None) fields."""
        check = FieldErrors()
        if name is not None:
            name = check.require("name", name, "Name")
        if email is not None:
            email = check.require("email", email, "Email")
        check.max_length("name", name, 255, "Name")
        check.max_length("email", email, 255, "Email")
        check.raise_if_any()

        try:
            async with self._session_factory() as session:
                authors = AuthorRepository(session)
                author = await authors.find_by_id(author_id)
                if author is None:
                    raise ResourceNotFoundError("Author", author_id)

                if name is not None:
                    author.name = name
                if email is not None and email != author.email:
                    if await authors.exists_by_email(email):
                        raise ConflictError("email", email, "Author")
                    author.email = email

                author = await authors.add(author)
        except IntegrityError as e:
            logger.warning("Author email constraint violated", email=email, error=str(e.orig))
            raise ConflictError("email", email, "Author") from e

        logger.info("Author updated", author_id=author_id)
        return author

    async def delete(self, author_id: int) -> bool:
        """Delete an author and, through the store's cascade, their books.

        Returns False when there was nothing to delete.
        """
        async with self._session_factory() as session:
            authors = AuthorRepository(session)
            if not await authors.exists_by_id(author_id):
                logger.info("Author not found for deletion", author_id=author_id)
                return False
            await authors.delete_by_id(author_id)

        logger.info("Author deleted", author_id=author_id)
        return True

    async def books_for_authors(self, authors: Sequence[AuthorT]) -> dict[AuthorT, list[Books]]:
        """Resolve the books of many authors with a single bulk query.

        Every requested author is present in the result; authors without books
        map to an empty list.
        """
        if not authors:
            return {}

        author_ids = {author.pk for author in authors}
        logger.debug("Batch loading books", author_count=len(author_ids))

        async with self._session_factory() as session:
            books = await BookRepository(session).find_all_by_author_ids(author_ids)

        books_by_author: dict[int, list[Books]] = {}
        for book in books:
            books_by_author.setdefault(book.author_id, []).append(book)

        return {author: list(books_by_author.get(author.pk, [])) for author in authors}
