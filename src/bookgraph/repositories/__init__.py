"""Store access for authors and books."""

from .authors import AuthorRepository
from .books import BookRepository

__all__ = ["AuthorRepository", "BookRepository"]
