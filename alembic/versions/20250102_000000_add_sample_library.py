"""Add sample authors and books

Seeds a small library so a fresh database has data to query. Rows are matched
by email (authors) and ISBN (books), so running it against a database that
already holds them changes nothing.

Revision ID: 20250102_000000_add_sample_library
Revises: 20250101_000000_initial_schema
Create Date: 2025-01-02 00:00:00

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20250102_000000_add_sample_library"
down_revision: str | Sequence[str] | None = "20250101_000000_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

AUTHORS = [
    ("Joanne Rowling", "jk.rowling@email.com"),
    ("George Orwell", "george.orwell@email.com"),
    ("Leo Tolstoy", "leo.tolstoy@email.com"),
    ("Alexander Pushkin", "alex.pushkin@email.com"),
    ("Mikhail Lermontov", "mikhail.lermontov@email.com"),
    ("Fyodor Dostoevsky", "fedor.dostoevsky@email.com"),
    ("Alexander Griboyedov", "alex.grig@email.com"),
]

# (title, isbn, published_year, author email)
BOOKS = [
    ("Harry Potter and the Philosopher's Stone", "978-5-389-00001-2", 1997, "jk.rowling@email.com"),
    ("1984", "978-5-389-00002-9", 1949, "george.orwell@email.com"),
    ("Animal Farm", "978-5-389-00003-6", 1945, "george.orwell@email.com"),
    ("Anna Karenina", "978-5-389-00004-3", 1877, "leo.tolstoy@email.com"),
    ("Eugene Onegin", "978-5-389-00005-0", 1833, "leo.tolstoy@email.com"),
    ("The Captain's Daughter", "978-5-389-00006-7", 1836, "leo.tolstoy@email.com"),
    ("Ruslan and Ludmila", "978-5-389-00007-4", 1820, "alex.pushkin@email.com"),
    ("Borodino", "978-5-389-00008-1", 1832, "mikhail.lermontov@email.com"),
    ("The Brothers Karamazov", "978-5-389-00009-8", 1880, "fedor.dostoevsky@email.com"),
    ("A Hero of Our Time", "978-5-389-00010-4", 1840, "alex.grig@email.com"),
    ("The Idiot", "978-5-389-00011-1", 1869, "alex.grig@email.com"),
]


def upgrade() -> None:
    """Insert the sample authors and their books."""
    connection = op.get_bind()

    for name, email in AUTHORS:
        connection.execute(
            sa.text(
                """
                INSERT INTO authors (name, email, created_at)
                VALUES (:name, :email, CURRENT_TIMESTAMP)
                ON CONFLICT (email) DO NOTHING
                """
            ),
            {"name": name, "email": email},
        )

    for title, isbn, published_year, email in BOOKS:
        connection.execute(
            sa.text(
                """
                INSERT INTO books (title, isbn, published_year, author_id, created_at)
                SELECT :title, :isbn, :published_year, a.id, CURRENT_TIMESTAMP
                FROM authors a
                WHERE a.email = :email
                ON CONFLICT (isbn) DO NOTHING
                """
            ),
            {"title": title, "isbn": isbn, "published_year": published_year, "email": email},
        )


def downgrade() -> None:
    """Remove the sample rows; books go first, then their authors."""
    connection = op.get_bind()

    connection.execute(
        sa.text("DELETE FROM books WHERE isbn = ANY(:isbns)"),
        {"isbns": [isbn for _, isbn, _, _ in BOOKS]},
    )
    connection.execute(
        sa.text("DELETE FROM authors WHERE email = ANY(:emails)"),
        {"emails": [email for _, email in AUTHORS]},
    )
