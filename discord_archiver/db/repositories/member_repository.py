"""Member and user repository.

Both tables are upserted: membership state (nickname, roles) and profile
fields legitimately change between runs, and the archive keeps the latest.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from discord_archiver.db.base import utcnow
from discord_archiver.db.dialect import dialect_insert
from discord_archiver.db.models import Member, User


async def upsert_member(session: AsyncSession, member: Member) -> None:
    """Upsert a member on (guild_id, user_id)."""
    insert_stmt = dialect_insert(session, Member).values(
        guild_id=member.guild_id,
        user_id=member.user_id,
        username=member.username,
        nickname=member.nickname,
        roles=member.roles or [],
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["guild_id", "user_id"],
        set_={
            "username": insert_stmt.excluded.username,
            "nickname": insert_stmt.excluded.nickname,
            "roles": insert_stmt.excluded.roles,
            "updated_at": utcnow(),
        },
    )
    await session.execute(stmt)


async def upsert_user(session: AsyncSession, user: User) -> None:
    """Upsert a user on user_id."""
    insert_stmt = dialect_insert(session, User).values(
        user_id=user.user_id,
        username=user.username,
        avatar=user.avatar,
        discriminator=user.discriminator,
        verified=bool(user.verified),
    )
    stmt = insert_stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "username": insert_stmt.excluded.username,
            "avatar": insert_stmt.excluded.avatar,
            "discriminator": insert_stmt.excluded.discriminator,
            "verified": insert_stmt.excluded.verified,
            "updated_at": utcnow(),
        },
    )
    await session.execute(stmt)


async def list_members(session: AsyncSession, guild_id: str) -> list[Member]:
    """Load archived members of a guild in numeric user ID order."""
    result = await session.execute(
        select(Member)
        .where(Member.guild_id == guild_id)
        .order_by(func.length(Member.user_id), Member.user_id)
    )
    return list(result.scalars().all())
