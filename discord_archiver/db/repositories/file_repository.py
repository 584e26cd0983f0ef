"""Downloaded media repository."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from discord_archiver.db.base import utcnow
from discord_archiver.db.dialect import dialect_insert
from discord_archiver.db.models import AvatarFile, File
from discord_archiver.errors import NotUniqueError


async def insert_file(
    session: AsyncSession, channel_id: str, message_id: str, path: str
) -> None:
    """Record a downloaded attachment or embed image.

    Raises:
        NotUniqueError: If the path is already recorded
    """
    stmt = (
        dialect_insert(session, File)
        .values(channel_id=channel_id, message_id=message_id, path=path)
        .on_conflict_do_nothing(index_elements=["path"])
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        raise NotUniqueError("files", (path,))


async def delete_file(session: AsyncSession, path: str) -> None:
    """Forget a recorded file (used when the file could not be put in place)."""
    await session.execute(delete(File).where(File.path == path))


async def upsert_avatar_file(session: AsyncSession, user_id: str, path: str) -> None:
    """Record the downloaded avatar of a user, replacing any previous one."""
    insert_stmt = dialect_insert(session, AvatarFile).values(
        user_id=user_id, path=path
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={"path": insert_stmt.excluded.path, "archived_at": utcnow()},
    )
    await session.execute(stmt)


async def delete_avatar_file(session: AsyncSession, user_id: str) -> None:
    """Forget the recorded avatar of a user."""
    await session.execute(delete(AvatarFile).where(AvatarFile.user_id == user_id))


async def get_message_files(
    session: AsyncSession, channel_id: str, message_id: str
) -> list[str]:
    """List the recorded file paths of a message."""
    result = await session.execute(
        select(File.path)
        .where(File.channel_id == channel_id, File.message_id == message_id)
        .order_by(File.path)
    )
    return list(result.scalars().all())
