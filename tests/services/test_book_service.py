"""
Unit tests for BookService, including the Book -> Author batch
"""

from dataclasses import dataclass
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from bookgraph.exceptions import ConflictError, ResourceNotFoundError, ValidationError
from bookgraph.services import BookService


@dataclass(frozen=True)
class BookRef:
    """Minimal parent for the author batch."""

    id: int
    author_id: int


@pytest.fixture
def author_repo():
    with patch("bookgraph.services.books.AuthorRepository") as repo_cls:
        repo = AsyncMock()
        repo_cls.return_value = repo
        yield repo


@pytest.fixture
def book_repo():
    with patch("bookgraph.services.books.BookRepository") as repo_cls:
        repo = AsyncMock()
        repo_cls.return_value = repo
        yield repo


@pytest.fixture
def service(session_factory):
    return BookService(session_factory=session_factory)


def assign_id(new_id: int):
    async def add(entity):
        entity.id = new_id
        return entity

    return add


class TestBookLookups:
    @pytest.mark.asyncio
    async def test_get_by_id_missing_raises_not_found(self, service, book_repo):
        book_repo.find_by_id.return_value = None

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.get_by_id(42)

        assert exc_info.value.resource_type == "Book"
        assert str(exc_info.value) == "Book not found with id: 42"

    @pytest.mark.asyncio
    async def test_find_by_title_no_match_is_empty(self, service, book_repo):
        book_repo.find_by_title_containing.return_value = []

        assert await service.find_by_title("nothing like this") == []
        book_repo.find_by_title_containing.assert_awaited_once_with("nothing like this")

    @pytest.mark.asyncio
    async def test_list_by_author_id(self, service, book_repo, make_book):
        book_repo.find_by_author_id.return_value = [make_book(1, 7), make_book(2, 7)]

        books = await service.list_by_author_id(7)

        assert [book.id for book in books] == [1, 2]


class TestCreateBook:
    @pytest.mark.asyncio
    async def test_create_populates_validated_author(
        self, service, author_repo, book_repo, make_author
    ):
        author = make_author(1, "George Orwell")
        author_repo.find_by_id.return_value = author
        book_repo.exists_by_isbn.return_value = False
        book_repo.add.side_effect = assign_id(20)

        book = await service.create(
            title="Animal Farm", author_id=1, isbn="978-0-00-000000-1", published_year=1945
        )

        assert book.id == 20
        assert book.author_id == 1
        assert book.author is author
        assert book.published_year == 1945

    @pytest.mark.asyncio
    async def test_create_for_missing_author(self, service, author_repo, book_repo):
        author_repo.find_by_id.return_value = None

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.create(title="Orphan", author_id=999)

        assert exc_info.value.resource_type == "Author"
        assert exc_info.value.resource_id == "999"
        book_repo.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_blank_title_rejected(self, service, author_repo, session_factory):
        with pytest.raises(ValidationError) as exc_info:
            await service.create(title="   ", author_id=1)

        assert exc_info.value.invalid_fields == {"title": "must not be empty"}
        assert session_factory.opened == 0

    @pytest.mark.asyncio
    async def test_create_duplicate_isbn_rejected(self, service, author_repo, book_repo):
        book_repo.exists_by_isbn.return_value = True

        with pytest.raises(ConflictError) as exc_info:
            await service.create(title="Copy", author_id=1, isbn="123")

        assert exc_info.value.invalid_fields == {"isbn": "must be unique"}
        author_repo.find_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blank_isbn_stored_as_none(self, service, author_repo, book_repo, make_author):
        author_repo.find_by_id.return_value = make_author(1)
        book_repo.add.side_effect = assign_id(1)

        book = await service.create(title="No ISBN", author_id=1, isbn="  ")

        assert book.isbn is None
        book_repo.exists_by_isbn.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_author_deleted_during_insert(
        self, service, author_repo, book_repo, make_author
    ):
        author_repo.find_by_id.return_value = make_author(4)
        book_repo.add.side_effect = IntegrityError(
            "INSERT INTO books",
            {},
            Exception('violates foreign key constraint "books_author_id_fkey"'),
        )

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await service.create(title="Late", author_id=4)

        assert exc_info.value.resource_type == "Author"

    @pytest.mark.asyncio
    async def test_isbn_constraint_race_translated(
        self, service, author_repo, book_repo, make_author
    ):
        author_repo.find_by_id.return_value = make_author(4)
        book_repo.exists_by_isbn.return_value = False
        book_repo.add.side_effect = IntegrityError(
            "INSERT INTO books",
            {},
            Exception('duplicate key value violates unique constraint "books_isbn_key"'),
        )

        with pytest.raises(ConflictError):
            await service.create(title="Race", author_id=4, isbn="555")


class TestUpdateBook:
    @pytest.mark.asyncio
    async def test_blank_isbn_clears_it(self, service, book_repo, make_book):
        book_repo.find_by_id.return_value = make_book(1, 1, title="Old", isbn="111")
        book_repo.add.side_effect = lambda entity: entity

        book = await service.update(1, isbn="  ")

        assert book.isbn is None
        assert book.title == "Old"
        book_repo.exists_by_isbn.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_isbn_checked_for_uniqueness(self, service, book_repo, make_book):
        book_repo.find_by_id.return_value = make_book(1, 1, isbn="111")
        book_repo.exists_by_isbn.return_value = True

        with pytest.raises(ConflictError):
            await service.update(1, isbn="222")

    @pytest.mark.asyncio
    async def test_isbn_constraint_race_reports_trimmed_isbn(
        self, service, book_repo, make_book
    ):
        book_repo.find_by_id.return_value = make_book(1, 1, isbn="111")
        book_repo.exists_by_isbn.return_value = False
        book_repo.add.side_effect = IntegrityError(
            "UPDATE books",
            {},
            Exception('duplicate key value violates unique constraint "books_isbn_key"'),
        )

        with pytest.raises(ConflictError) as exc_info:
            await service.update(1, isbn="  222  ")

        assert exc_info.value.value == "222"
        assert exc_info.value.errors == ["Book with isbn 222 already exists"]

    @pytest.mark.asyncio
    async def test_update_missing_book(self, service, book_repo):
        book_repo.find_by_id.return_value = None

        with pytest.raises(ResourceNotFoundError):
            await service.update(5, title="Anything")


class TestDeleteBook:
    @pytest.mark.asyncio
    async def test_delete_twice(self, service, book_repo):
        book_repo.exists_by_id.side_effect = [True, False]

        assert await service.delete(3) is True
        assert await service.delete(3) is False
        book_repo.delete_by_id.assert_awaited_once_with(3)


class TestAuthorsForBooks:
    @pytest.mark.asyncio
    async def test_one_bulk_query_for_distinct_authors(self, service, author_repo, make_author):
        a1, a2 = make_author(1), make_author(2)
        books = [BookRef(1, 1), BookRef(2, 1), BookRef(3, 2)]
        # Row order from the store is irrelevant
        author_repo.find_all_by_ids.return_value = [a2, a1]

        mapping = await service.authors_for_books(books)

        author_repo.find_all_by_ids.assert_awaited_once_with({1, 2})
        assert len(mapping) == 3
        assert mapping[books[0]] is a1
        assert mapping[books[1]] is a1
        assert mapping[books[2]] is a2

    @pytest.mark.asyncio
    async def test_missing_author_is_omitted(self, service, author_repo, make_author):
        a1 = make_author(1)
        kept, orphan = BookRef(1, 1), BookRef(2, 99)
        author_repo.find_all_by_ids.return_value = [a1]

        mapping = await service.authors_for_books([kept, orphan])

        assert mapping == {kept: a1}

    @pytest.mark.asyncio
    async def test_empty_input_skips_store(self, service, author_repo, session_factory):
        assert await service.authors_for_books([]) == {}

        assert session_factory.opened == 0
        author_repo.find_all_by_ids.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_large_batch_is_still_one_query(self, service, author_repo, make_author):
        authors = [make_author(i) for i in range(1, 11)]
        books = [BookRef(i, (i % 10) + 1) for i in range(1, 501)]
        author_repo.find_all_by_ids.return_value = authors

        mapping = await service.authors_for_books(books)

        assert author_repo.find_all_by_ids.await_count == 1
        assert len(mapping) == 500
        assert all(mapping[book].id == book.author_id for book in books)
