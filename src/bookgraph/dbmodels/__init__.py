"""
Database models for bookgraph (authoritative ORM definitions).

This module defines the SQLAlchemy Base with a naming convention for stable
Alembic autogenerate diffs, and exposes `target_metadata` for Alembic.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKeyConstraint,
    Identity,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Naming convention for deterministic constraint/index names in Alembic diffs
naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all database models with type checking support."""

    metadata = MetaData(naming_convention=naming_convention)


class Authors(Base):
    __tablename__ = "authors"
    __table_args__ = (
        PrimaryKeyConstraint("id", name="authors_pkey"),
        UniqueConstraint("email", name="authors_email_key"),
    )

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=False))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )

    books: Mapped[list["Books"]] = relationship(
        "Books",
        uselist=True,
        back_populates="author",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Authors id={self.id!r} email={self.email!r}>"


class Books(Base):
    __tablename__ = "books"
    __table_args__ = (
        ForeignKeyConstraint(
            ["author_id"],
            ["authors.id"],
            ondelete="CASCADE",
            name="books_author_id_fkey",
        ),
        PrimaryKeyConstraint("id", name="books_pkey"),
        UniqueConstraint("isbn", name="books_isbn_key"),
        Index("idx_books_author_id", "author_id"),
        Index("idx_books_title", "title"),
    )

    id: Mapped[int] = mapped_column(BigInteger, Identity(always=False))
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(20))
    published_year: Mapped[int | None] = mapped_column(Integer)
    author_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )

    author: Mapped["Authors"] = relationship("Authors", back_populates="books")

    def __repr__(self) -> str:
        return f"<Books id={self.id!r} author_id={self.author_id!r}>"


# Expose metadata for Alembic
target_metadata = Base.metadata

__all__ = ["Base", "Authors", "Books", "target_metadata"]
