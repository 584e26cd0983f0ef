"""Message repository.

Messages are insert-only. A collision on (channel_id, message_id) is reported
as NotUniqueError, distinct from other database errors, so the caller decides
whether re-archiving overlapping history is fatal.

The insert is issued as ON CONFLICT DO NOTHING and the collision detected from
the row count. Unlike letting the constraint fire, this keeps the surrounding
transaction usable on PostgreSQL, where a failed statement aborts the whole
transaction.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from discord_archiver.db.dialect import dialect_insert
from discord_archiver.db.models import Message
from discord_archiver.errors import NotUniqueError


async def insert_message(
    session: AsyncSession,
    message: Message,
    *,
    skip_duplicates: bool = False,
) -> bool:
    """Insert a message.

    Args:
        session: Database session
        message: Message ORM instance to insert
        skip_duplicates: Report a collision by returning False instead of raising

    Returns:
        True if the row was inserted, False if it already existed
        (only when skip_duplicates is set)

    Raises:
        NotUniqueError: If (channel_id, message_id) is already archived
    """
    stmt = (
        dialect_insert(session, Message)
        .values(
            channel_id=message.channel_id,
            message_id=message.message_id,
            author_id=message.author_id,
            username=message.username,
            nickname=message.nickname,
            content=message.content or "",
            embeds=message.embeds or [],
            attachments=message.attachments or [],
        )
        .on_conflict_do_nothing(index_elements=["channel_id", "message_id"])
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        if skip_duplicates:
            return False
        raise NotUniqueError("messages", (message.channel_id, message.message_id))
    return True


async def get_channel_message_count(session: AsyncSession, channel_id: str) -> int:
    """Get the count of archived messages in a channel.

    Args:
        session: Database session
        channel_id: The channel ID to count messages for

    Returns:
        Number of messages in the channel
    """
    stmt = (
        select(func.count())
        .select_from(Message)
        .where(Message.channel_id == channel_id)
    )
    result = await session.execute(stmt)
    return result.scalar() or 0


async def get_channel_messages(
    session: AsyncSession,
    channel_id: str,
    offset: int = 0,
    limit: int = 0,
) -> list[Message]:
    """Load archived messages of a channel, oldest first.

    Snowflakes are stored as strings, so they are ordered by (length, value)
    to get numeric order.

    Args:
        session: Database session
        channel_id: Channel to read
        offset: Number of leading messages to skip
        limit: Maximum number of messages to return (0 = all)
    """
    stmt = (
        select(Message)
        .where(Message.channel_id == channel_id)
        .order_by(func.length(Message.message_id), Message.message_id)
    )
    if offset > 0:
        stmt = stmt.offset(offset)
    if limit > 0:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())
