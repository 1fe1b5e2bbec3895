"""Book use cases: lookups, writes and the Book -> Author batch."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from ..database.connection import get_async_session
from ..dbmodels import Authors, Books
from ..exceptions import ConflictError, ResourceNotFoundError
from ..logging import get_logger
from ..repositories import AuthorRepository, BookRepository
from .base import FieldErrors, HasAuthorId, SessionFactory

logger = get_logger(__name__)

BookT = TypeVar("BookT", bound=HasAuthorId)


def _clean_isbn(isbn: str | None) -> str | None:
    if isbn is None:
        return None
    return isbn.strip() or None


class BookService:
    """Book operations; see AuthorService for the session model."""

    def __init__(self, session_factory: SessionFactory = get_async_session):
        self._session_factory = session_factory

    async def get_by_id(self, book_id: int) -> Books:
        async with self._session_factory() as session:
            book = await BookRepository(session).find_by_id(book_id)
        if book is None:
            logger.info("Book not found", book_id=book_id)
            raise ResourceNotFoundError("Book", book_id)
        return book

    async def list_all(self) -> list[Books]:
        async with self._session_factory() as session:
            return list(await BookRepository(session).find_all())

    async def find_by_title(self, title: str) -> list[Books]:
        """Case-insensitive title substring search; no match is an empty list."""
        async with self._session_factory() as session:
            return list(await BookRepository(session).find_by_title_containing(title))

    async def list_by_author_id(self, author_id: int) -> list[Books]:
        logger.info("Finding books by author id", author_id=author_id)
        async with self._session_factory() as session:
            return list(await BookRepository(session).find_by_author_id(author_id))

    async def create(
        self,
        title: str,
        author_id: int,
        isbn: str | None = None,
        published_year: int | None = None,
    ) -> Books:
        """Create a book for an existing author.

        The returned book has its ``author`` relationship populated with the
        author that was checked, so callers can serve it without another query.
        """
        check = FieldErrors()
        title = check.require("title", title, "Title")
        check.max_length("title", title, 255, "Title")
        check.max_length("isbn", _clean_isbn(isbn), 20, "ISBN")
        check.raise_if_any()
        isbn = _clean_isbn(isbn)

        try:
            async with self._session_factory() as session:
                books = BookRepository(session)
                if isbn is not None and await books.exists_by_isbn(isbn):
                    raise ConflictError("isbn", isbn, "Book")

                author = await AuthorRepository(session).find_by_id(author_id)
                if author is None:
                    raise ResourceNotFoundError("Author", author_id)

                book = await books.add(
                    Books(
                        title=title,
                        isbn=isbn,
                        published_year=published_year,
                        author_id=author.id,
                    )
                )
                set_committed_value(book, "author", author)
        except IntegrityError as e:
            if "books_author_id_fkey" in str(e.orig):
                # Author deleted between the existence check and the insert
                raise ResourceNotFoundError("Author", author_id) from e
            logger.warning("Book ISBN constraint violated", isbn=isbn, error=str(e.orig))
            raise ConflictError("isbn", isbn, "Book") from e

        logger.info("Book created", book_id=book.id, author_id=author_id)
        return book

    async def update(
        self,
        book_id: int,
        title: str | None = None,
        isbn: str | None = None,
        published_year: int | None = None,
    ) -> Books:
        """Overwrite only the supplied (non-None) fields."""
        check = FieldErrors()
        if title is not None:
            title = check.require("title", title, "Title")
        check.max_length("title", title, 255, "Title")
        check.max_length("isbn", _clean_isbn(isbn), 20, "ISBN")
        check.raise_if_any()

        try:
            async with self._session_factory() as session:
                books = BookRepository(session)
                book = await books.find_by_id(book_id)
                if book is None:
                    raise ResourceNotFoundError("Book", book_id)

                if title is not None:
                    book.title = title
                if isbn is not None:
                    new_isbn = _clean_isbn(isbn)
                    if new_isbn is not None and new_isbn != book.isbn:
                        if await books.exists_by_isbn(new_isbn):
                            raise ConflictError("isbn", new_isbn, "Book")
                    book.isbn = new_isbn
                if published_year is not None:
                    book.published_year = published_year

                book = await books.add(book)
        except IntegrityError as e:
            cleaned = _clean_isbn(isbn)
            logger.warning("Book ISBN constraint violated", isbn=cleaned, error=str(e.orig))
            raise ConflictError("isbn", cleaned, "Book") from e

        logger.info("Book updated", book_id=book_id)
        return book

    async def delete(self, book_id: int) -> bool:
        """Delete a book; returns False when there was nothing to delete."""
        async with self._session_factory() as session:
            books = BookRepository(session)
            if not await books.exists_by_id(book_id):
                logger.info("Book not found for deletion", book_id=book_id)
                return False
            await books.delete_by_id(book_id)

        logger.info("Book deleted", book_id=book_id)
        return True

    async def authors_for_books(self, books: Sequence[BookT]) -> dict[BookT, Authors]:
        """Resolve the authors of many books with a single bulk query.

        1. collect the distinct author ids
        2. load all of them with one ``WHERE id IN (...)`` query
        3. index the rows by id
        4. walk the books once and pick each book's author from the index

        A book whose author row is missing is left out of the result (and
        logged); it is never paired with some other author.
        """
        if not books:
            return {}

        author_ids = {book.author_id for book in books}
        logger.debug("Batch loading authors", book_count=len(books), author_ids=sorted(author_ids))

        async with self._session_factory() as session:
            authors = await AuthorRepository(session).find_all_by_ids(author_ids)

        authors_by_id = {author.id: author for author in authors}

        result: dict[BookT, Authors] = {}
        for book in books:
            author = authors_by_id.get(book.author_id)
            if author is None:
                logger.warning("Author missing for book", author_id=book.author_id)
                continue
            result[book] = author

        logger.debug("Mapped books to authors", mapped=len(result), requested=len(books))
        return result
