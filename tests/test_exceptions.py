"""
Tests for domain exceptions and id parsing
"""

import pytest

from bookgraph.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
    parse_id,
)
from bookgraph.repositories.books import escape_like


@pytest.mark.parametrize("raw, expected", [("1", 1), (" 42 ", 42), (7, 7)])
def test_parse_id_accepts_positive_integers(raw, expected):
    assert parse_id(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "", "0", "-3", "1.5", None])
def test_parse_id_rejects_everything_else(raw):
    with pytest.raises(ValidationError) as exc_info:
        parse_id(raw, "authorId")

    assert exc_info.value.invalid_fields == {"authorId": "must be a positive integer"}


def test_not_found_message():
    error = ResourceNotFoundError("Author", 999)

    assert str(error) == "Author not found with id: 999"
    assert error.resource_id == "999"


def test_validation_error_joins_messages():
    error = ValidationError(["Name is required", "Email is required"])

    assert str(error) == "Name is required; Email is required"
    assert ValidationError([]).args == ("Validation failed",)


def test_conflict_is_a_validation_error():
    error = ConflictError("isbn", "978-1", "Book")

    assert isinstance(error, ValidationError)
    assert str(error) == "Book with isbn 978-1 already exists"


def test_escape_like():
    assert escape_like("100%_\\") == "100\\%\\_\\\\"
