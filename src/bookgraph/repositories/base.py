"""Shared SQLAlchemy repository behaviour."""

from collections.abc import Iterable, Sequence
from typing import ClassVar, Generic, TypeVar

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..dbmodels import Base

ModelT = TypeVar("ModelT", bound=Base)


class SQLAlchemyRepository(Generic[ModelT]):
    """
    Point lookups, bulk id-set lookups and writes for one mapped table.

    Repositories never validate; they only talk to the store. The caller owns
    the session and therefore the transaction boundary.
    """

    model: ClassVar[type[Base]]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, entity_id: int) -> ModelT | None:
        return await self.session.get(self.model, entity_id)

    async def find_all(self) -> Sequence[ModelT]:
        stmt = select(self.model).order_by(self.model.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def find_all_by_ids(self, ids: Iterable[int]) -> Sequence[ModelT]:
        """Bulk fetch: one ``WHERE id IN (...)`` query for the whole id set."""
        id_set = set(ids)
        if not id_set:
            return []
        stmt = select(self.model).where(self.model.id.in_(id_set))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def exists_by_id(self, entity_id: int) -> bool:
        stmt = select(exists().where(self.model.id == entity_id))
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def add(self, entity: ModelT) -> ModelT:
        """Insert or update an entity and load its server-generated columns."""
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def delete_by_id(self, entity_id: int) -> bool:
        stmt = delete(self.model).where(self.model.id == entity_id)
        result = await self.session.execute(stmt)
        return bool(result.rowcount)
