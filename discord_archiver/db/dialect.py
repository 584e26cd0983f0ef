"""Dialect-specific INSERT ... ON CONFLICT constructs.

SQLite and PostgreSQL both support ON CONFLICT upserts, but SQLAlchemy exposes
them through separate dialect `insert()` constructs. Repositories build their
statements through `dialect_insert()` so they run on either backend.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def dialect_insert(session: AsyncSession, model: Any) -> Any:
    """Return an upsert-capable insert() for the session's database."""
    name = session.get_bind().dialect.name
    try:
        insert = _INSERTS[name]
    except KeyError:
        raise ValueError(f"Unsupported database dialect: {name}") from None
    return insert(model)
