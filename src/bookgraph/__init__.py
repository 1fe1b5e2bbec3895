"""
bookgraph
GraphQL API over authors and books with batched relationship loading
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
