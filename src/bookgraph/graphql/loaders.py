"""
Request-scoped DataLoaders for relationship fields.

Each loader collects every parent that asks for the same relationship during
one execution pass and resolves them all with a single service call, which
issues a single bulk query. A new ``Loaders`` is built per request so cached
values never outlive it.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from strawberry.dataloader import DataLoader

from ..config import settings
from ..exceptions import ResourceNotFoundError
from ..logging import get_logger
from ..services import AuthorService, BookService

if TYPE_CHECKING:
    from .types.author import Author
    from .types.book import Book

logger = get_logger(__name__)

ResultT = TypeVar("ResultT")


async def timed_batch(
    loader_name: str, keys: list[Any], batch: Callable[[], Awaitable[ResultT]]
) -> ResultT:
    """Run one batch call and report it when it is slower than the threshold."""
    started = time.perf_counter()
    result = await batch()
    duration_ms = (time.perf_counter() - started) * 1000

    if duration_ms > settings.batch_slow_threshold_ms:
        logger.warning(
            "Slow batch load",
            loader=loader_name,
            batch_size=len(keys),
            duration_ms=round(duration_ms, 2),
            threshold_ms=settings.batch_slow_threshold_ms,
        )
    else:
        logger.debug(
            "Batch loaded",
            loader=loader_name,
            batch_size=len(keys),
            duration_ms=round(duration_ms, 2),
        )
    return result


class Loaders:
    """The DataLoaders of one request.

    Attributes:
        book_author: Book -> Author
        author_books: Author -> list of Books
    """

    def __init__(self, author_service: AuthorService, book_service: BookService):
        self.author_service = author_service
        self.book_service = book_service
        self.book_author: DataLoader[Book, Author] = DataLoader(load_fn=self.load_book_authors)
        self.author_books: DataLoader[Author, list[Book]] = DataLoader(
            load_fn=self.load_author_books
        )

    def clear_all(self) -> None:
        """Drop every cached relationship; called after each write."""
        self.book_author.clear_all()
        self.author_books.clear_all()

    async def load_book_authors(self, keys: list[Book]) -> list[Author | ResourceNotFoundError]:
        """Batch load the author of each book.

        A book whose author no longer exists gets a not-found error for that
        one key; the other books of the batch still resolve.
        """
        from .types.author import Author

        mapping = await timed_batch(
            "book_author", keys, lambda: self.book_service.authors_for_books(keys)
        )

        results: list[Author | ResourceNotFoundError] = []
        for book in keys:
            row = mapping.get(book)
            if row is None:
                results.append(ResourceNotFoundError("Author", book.author_id))
            else:
                results.append(Author.from_model(row))
        return results

    async def load_author_books(self, keys: list[Author]) -> list[list[Book]]:
        """Batch load the books of each author; authors without books get []."""
        from .types.book import Book

        mapping = await timed_batch(
            "author_books", keys, lambda: self.author_service.books_for_authors(keys)
        )

        return [
            [Book.from_model(row, author=author) for row in mapping.get(author, [])]
            for author in keys
        ]
