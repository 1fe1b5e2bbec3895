"""Repository for the authors table."""

from sqlalchemy import exists, select

from ..dbmodels import Authors
from .base import SQLAlchemyRepository


class AuthorRepository(SQLAlchemyRepository[Authors]):
    model = Authors

    async def find_by_email(self, email: str) -> Authors | None:
        stmt = select(Authors).where(Authors.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(exists().where(Authors.email == email))
        result = await self.session.execute(stmt)
        return bool(result.scalar())
