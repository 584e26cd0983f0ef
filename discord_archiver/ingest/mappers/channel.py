"""Channel API JSON to ORM mapper."""

from __future__ import annotations

from typing import Any

from discord_archiver.db.models import Channel
from discord_archiver.db.snapshots import ChannelSnapshot


def map_channel(data: dict[str, Any], guild_id: str | None = None) -> Channel:
    """Convert Discord API channel JSON to Channel ORM instance.

    Args:
        data: Raw channel object from Discord API
        guild_id: Guild ID to use if the payload does not carry one

    Returns:
        Channel ORM instance (not yet added to session)
    """
    if guild_id and not data.get("guild_id"):
        data = {**data, "guild_id": guild_id}
    snapshot = ChannelSnapshot.from_api(data)
    return Channel(
        channel_id=snapshot.id,
        guild_id=snapshot.guild_id,
        name=snapshot.name,
        topic=snapshot.topic,
        type=snapshot.type,
        snapshot=snapshot.dump(),
    )


# Channel type constants for reference
CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_DM = 1
CHANNEL_TYPE_VOICE = 2
CHANNEL_TYPE_GROUP_DM = 3
CHANNEL_TYPE_CATEGORY = 4
CHANNEL_TYPE_ANNOUNCEMENT = 5
CHANNEL_TYPE_ANNOUNCEMENT_THREAD = 10
CHANNEL_TYPE_PUBLIC_THREAD = 11
CHANNEL_TYPE_PRIVATE_THREAD = 12
CHANNEL_TYPE_STAGE = 13
CHANNEL_TYPE_DIRECTORY = 14
CHANNEL_TYPE_FORUM = 15
CHANNEL_TYPE_MEDIA = 16


def is_archivable(channel_type: int) -> bool:
    """Check if a guild walk archives channels of this type (text only)."""
    return channel_type == CHANNEL_TYPE_TEXT


def channel_type_name(channel_type: int) -> str:
    """Get human-readable channel type name."""
    names = {
        CHANNEL_TYPE_TEXT: "text",
        CHANNEL_TYPE_DM: "dm",
        CHANNEL_TYPE_VOICE: "voice",
        CHANNEL_TYPE_GROUP_DM: "group_dm",
        CHANNEL_TYPE_CATEGORY: "category",
        CHANNEL_TYPE_ANNOUNCEMENT: "announcement",
        CHANNEL_TYPE_ANNOUNCEMENT_THREAD: "announcement_thread",
        CHANNEL_TYPE_PUBLIC_THREAD: "public_thread",
        CHANNEL_TYPE_PRIVATE_THREAD: "private_thread",
        CHANNEL_TYPE_STAGE: "stage",
        CHANNEL_TYPE_DIRECTORY: "directory",
        CHANNEL_TYPE_FORUM: "forum",
        CHANNEL_TYPE_MEDIA: "media",
    }
    return names.get(channel_type, f"unknown({channel_type})")
