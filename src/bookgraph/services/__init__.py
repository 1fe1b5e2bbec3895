"""Domain services for authors and books."""

from .authors import AuthorService
from .books import BookService

__all__ = ["AuthorService", "BookService"]
