"""Repository for the books table."""

from collections.abc import Iterable, Sequence

from sqlalchemy import exists, select

from ..dbmodels import Books
from .base import SQLAlchemyRepository


class BookRepository(SQLAlchemyRepository[Books]):
    model = Books

    async def find_by_title_containing(self, title: str) -> Sequence[Books]:
        """Case-insensitive substring match on the title."""
        pattern = f"%{escape_like(title)}%"
        stmt = select(Books).where(Books.title.ilike(pattern, escape="\\")).order_by(Books.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_by_author_id(self, author_id: int) -> Sequence[Books]:
        stmt = select(Books).where(Books.author_id == author_id).order_by(Books.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_all_by_author_ids(self, author_ids: Iterable[int]) -> Sequence[Books]:
        """Bulk fetch: one ``WHERE author_id IN (...)`` query for the whole id set."""
        id_set = set(author_ids)
        if not id_set:
            return []
        stmt = select(Books).where(Books.author_id.in_(id_set)).order_by(Books.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def exists_by_isbn(self, isbn: str) -> bool:
        stmt = select(exists().where(Books.isbn == isbn))
        result = await self.session.execute(stmt)
        return bool(result.scalar())


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
