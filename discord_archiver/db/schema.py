"""Idempotent, feature-gated table creation.

Tables are created with CREATE TABLE IF NOT EXISTS semantics before the first
use of each feature area:
- messages, channels, guilds: always
- files: when attachments or embed images are saved
- avatar_files: when avatars are saved
- members, users: when members are archived
"""

from __future__ import annotations

from sqlalchemy import Connection, Table
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession
from sqlalchemy.orm import Session

from discord_archiver.db.models import (
    AvatarFile,
    Base,
    Channel,
    File,
    Guild,
    Member,
    Message,
    User,
)


def schema_tables(
    *,
    files: bool = False,
    avatars: bool = False,
    members: bool = False,
) -> list[Table]:
    """Return the tables required for the enabled feature areas."""
    tables = [Guild.__table__, Channel.__table__, Message.__table__]
    if files:
        tables.append(File.__table__)
    if avatars:
        tables.append(AvatarFile.__table__)
    if members:
        tables.extend([Member.__table__, User.__table__])
    return tables


def _create(connection: Connection, tables: list[Table]) -> None:
    Base.metadata.create_all(connection, tables=tables, checkfirst=True)


async def ensure_schema(
    session: AsyncSession,
    *,
    files: bool = False,
    avatars: bool = False,
    members: bool = False,
) -> None:
    """Create missing tables inside the session's current transaction."""
    tables = schema_tables(files=files, avatars=avatars, members=members)
    await session.run_sync(
        lambda sync_session: _create(_connection_of(sync_session), tables)
    )


async def create_core_tables(connection: AsyncConnection) -> None:
    """Create the always-present tables on a bare connection."""
    await connection.run_sync(_create, schema_tables())


def _connection_of(sync_session: Session) -> Connection:
    return sync_session.connection()
