"""Mappers for converting Discord API JSON to ORM models."""

from discord_archiver.ingest.mappers.channel import (
    channel_type_name,
    is_archivable,
    map_channel,
)
from discord_archiver.ingest.mappers.guild import map_guild
from discord_archiver.ingest.mappers.message import map_message
from discord_archiver.ingest.mappers.user import avatar_url, map_member, map_user

__all__ = [
    "avatar_url",
    "channel_type_name",
    "is_archivable",
    "map_channel",
    "map_guild",
    "map_member",
    "map_message",
    "map_user",
]
