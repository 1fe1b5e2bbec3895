"""
Per-request GraphQL context.

The context is a plain dict (as the FastAPI router builds it) holding the
services and a fresh set of DataLoaders.
"""

from typing import Any

import strawberry
from fastapi import Request

from ..services import AuthorService, BookService
from .loaders import Loaders


def build_context(
    request: Request | None = None,
    author_service: AuthorService | None = None,
    book_service: BookService | None = None,
) -> dict[str, Any]:
    author_service = author_service or AuthorService()
    book_service = book_service or BookService()
    return {
        "request": request,
        "author_service": author_service,
        "book_service": book_service,
        "loaders": Loaders(author_service, book_service),
    }


def get_author_service(info: strawberry.Info) -> AuthorService:
    return info.context["author_service"]


def get_book_service(info: strawberry.Info) -> BookService:
    return info.context["book_service"]


def get_loaders(info: strawberry.Info) -> Loaders:
    return info.context["loaders"]
