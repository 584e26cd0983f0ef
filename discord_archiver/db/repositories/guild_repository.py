"""Guild repository for database operations."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from discord_archiver.db.base import utcnow
from discord_archiver.db.dialect import dialect_insert
from discord_archiver.db.models import Guild
from discord_archiver.db.snapshots import GuildSnapshot


async def upsert_guild(session: AsyncSession, guild: Guild) -> None:
    """Upsert a guild record.

    Inserts a new guild or replaces the existing row on conflict (guild_id).

    Args:
        session: Database session
        guild: Guild ORM model instance to upsert
    """
    insert_stmt = dialect_insert(session, Guild).values(
        guild_id=guild.guild_id,
        name=guild.name,
        snapshot=guild.snapshot,
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["guild_id"],
        set_={
            "name": insert_stmt.excluded.name,
            "snapshot": insert_stmt.excluded.snapshot,
            "archived_at": utcnow(),
        },
    )
    await session.execute(stmt)


async def get_guild(session: AsyncSession, guild_id: str) -> GuildSnapshot | None:
    """Load the archived snapshot of a guild, or None if not archived."""
    result = await session.execute(
        select(Guild.snapshot).where(Guild.guild_id == guild_id)
    )
    snapshot = result.scalar_one_or_none()
    if snapshot is None:
        return None
    return GuildSnapshot.load(snapshot)


async def list_guilds(session: AsyncSession) -> list[GuildSnapshot]:
    """Load the snapshots of all archived guilds, ordered by name."""
    result = await session.execute(select(Guild.snapshot).order_by(Guild.name))
    return [GuildSnapshot.load(s) for s in result.scalars().all()]
