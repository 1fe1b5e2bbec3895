"""
Tests for the request-scoped DataLoaders
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from bookgraph.config import settings
from bookgraph.exceptions import ResourceNotFoundError
from bookgraph.graphql.loaders import Loaders
from bookgraph.graphql.types.author import Author
from bookgraph.graphql.types.book import Book
from bookgraph.services import AuthorService, BookService


@pytest.fixture
def author_service():
    return AsyncMock(spec=AuthorService)


@pytest.fixture
def book_service():
    return AsyncMock(spec=BookService)


@pytest.fixture
def loaders(author_service, book_service):
    return Loaders(author_service, book_service)


class TestBookAuthorLoader:
    @pytest.mark.asyncio
    async def test_concurrent_loads_share_one_batch(
        self, loaders, book_service, make_author, make_book
    ):
        books = [Book.from_model(make_book(i, author_id)) for i, author_id in [(1, 1), (2, 1), (3, 2)]]
        rows = {1: make_author(1, "First"), 2: make_author(2, "Second")}
        book_service.authors_for_books.side_effect = lambda keys: {
            key: rows[key.author_id] for key in keys
        }

        authors = await asyncio.gather(*(loaders.book_author.load(book) for book in books))

        assert book_service.authors_for_books.await_count == 1
        (batch,), _ = book_service.authors_for_books.await_args
        assert set(batch) == set(books)
        assert [author.name for author in authors] == ["First", "First", "Second"]
        assert all(isinstance(author, Author) for author in authors)

    @pytest.mark.asyncio
    async def test_orphan_fails_only_its_own_load(
        self, loaders, book_service, make_author, make_book
    ):
        kept = Book.from_model(make_book(1, 1))
        orphan = Book.from_model(make_book(2, 99))
        book_service.authors_for_books.return_value = {kept: make_author(1)}

        results = await asyncio.gather(
            loaders.book_author.load(kept),
            loaders.book_author.load(orphan),
            return_exceptions=True,
        )

        assert isinstance(results[0], Author)
        assert results[0].id == "1"
        assert isinstance(results[1], ResourceNotFoundError)
        assert results[1].resource_type == "Author"
        assert results[1].resource_id == "99"

    @pytest.mark.asyncio
    async def test_slow_batch_is_logged(self, loaders, book_service, make_author, make_book):
        book = Book.from_model(make_book(1, 1))
        book_service.authors_for_books.return_value = {book: make_author(1)}

        with (
            patch.object(settings, "batch_slow_threshold_ms", -1),
            patch("bookgraph.graphql.loaders.logger") as logger,
        ):
            await loaders.book_author.load(book)

        logger.warning.assert_called_once()
        _, kwargs = logger.warning.call_args
        assert kwargs["loader"] == "book_author"
        assert kwargs["batch_size"] == 1


class TestAuthorBooksLoader:
    @pytest.mark.asyncio
    async def test_books_grouped_per_author(
        self, loaders, author_service, make_author, make_book
    ):
        first = Author.from_model(make_author(1))
        second = Author.from_model(make_author(2))
        author_service.books_for_authors.return_value = {
            first: [make_book(10, 1), make_book(11, 1)],
            second: [],
        }

        first_books, second_books = await asyncio.gather(
            loaders.author_books.load(first), loaders.author_books.load(second)
        )

        assert author_service.books_for_authors.await_count == 1
        assert [book.id for book in first_books] == ["10", "11"]
        assert second_books == []
        # Nested Book.author is served from the parent, not another batch
        assert all(book.preloaded_author is first for book in first_books)


class TestClearAll:
    @pytest.mark.asyncio
    async def test_cached_results_dropped_from_both_loaders(
        self, loaders, author_service, book_service, make_author, make_book
    ):
        author = Author.from_model(make_author(1))
        book = Book.from_model(make_book(10, 1))
        author_service.books_for_authors.side_effect = lambda keys: {key: [] for key in keys}
        book_service.authors_for_books.side_effect = lambda keys: {
            key: make_author(1) for key in keys
        }

        await loaders.author_books.load(author)
        await loaders.book_author.load(book)
        await loaders.author_books.load(author)
        assert author_service.books_for_authors.await_count == 1

        loaders.clear_all()
        await loaders.author_books.load(author)
        await loaders.book_author.load(book)

        assert author_service.books_for_authors.await_count == 2
        assert book_service.authors_for_books.await_count == 2
