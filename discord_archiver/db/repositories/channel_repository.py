"""Channel repository for database operations."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from discord_archiver.db.base import utcnow
from discord_archiver.db.dialect import dialect_insert
from discord_archiver.db.models import Channel
from discord_archiver.db.snapshots import ChannelSnapshot


async def upsert_channel(session: AsyncSession, channel: Channel) -> None:
    """Upsert a channel record.

    Inserts a new channel or replaces the existing row on conflict (channel_id).

    Args:
        session: Database session
        channel: Channel ORM model instance to upsert
    """
    insert_stmt = dialect_insert(session, Channel).values(
        channel_id=channel.channel_id,
        guild_id=channel.guild_id,
        name=channel.name,
        topic=channel.topic,
        type=channel.type,
        snapshot=channel.snapshot,
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["channel_id"],
        set_={
            "guild_id": insert_stmt.excluded.guild_id,
            "name": insert_stmt.excluded.name,
            "topic": insert_stmt.excluded.topic,
            "type": insert_stmt.excluded.type,
            "snapshot": insert_stmt.excluded.snapshot,
            "archived_at": utcnow(),
        },
    )
    await session.execute(stmt)


async def get_channel(
    session: AsyncSession, channel_id: str
) -> ChannelSnapshot | None:
    """Load the archived snapshot of a channel, or None if not archived."""
    result = await session.execute(
        select(Channel.snapshot).where(Channel.channel_id == channel_id)
    )
    snapshot = result.scalar_one_or_none()
    if snapshot is None:
        return None
    return ChannelSnapshot.load(snapshot)


async def list_channels(session: AsyncSession, guild_id: str) -> list[ChannelSnapshot]:
    """Load the snapshots of all archived channels in a guild."""
    result = await session.execute(
        select(Channel.snapshot)
        .where(Channel.guild_id == guild_id)
        .order_by(Channel.name)
    )
    return [ChannelSnapshot.load(s) for s in result.scalars().all()]
