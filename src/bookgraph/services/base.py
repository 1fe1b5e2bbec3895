"""Shared pieces of the author and book services."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ValidationError

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class HasAuthorId(Protocol):
    """A parent object carrying the foreign id of its author (e.g. a Book)."""

    @property
    def author_id(self) -> int: ...

    def __hash__(self) -> int: ...


class HasPrimaryKey(Protocol):
    """A parent object identified by its primary key (e.g. an Author)."""

    @property
    def pk(self) -> int: ...

    def __hash__(self) -> int: ...


class FieldErrors:
    """Collects field-level problems and raises them together."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.invalid_fields: dict[str, str] = {}

    def add(self, field: str, message: str, reason: str) -> None:
        self.errors.append(message)
        self.invalid_fields[field] = reason

    def require(self, field: str, value: str | None, label: str) -> str:
        """Return the stripped value, recording an error when it is blank."""
        cleaned = (value or "").strip()
        if not cleaned:
            self.add(field, f"{label} is required", "must not be empty")
        return cleaned

    def max_length(self, field: str, value: str | None, limit: int, label: str) -> None:
        if value is not None and len(value) > limit:
            self.add(field, f"{label} must be at most {limit} characters", f"max length {limit}")

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError(self.errors, self.invalid_fields)
