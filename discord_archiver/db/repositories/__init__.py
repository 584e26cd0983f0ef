"""Repository layer for database operations.

Provides clean separation between data access and business logic.
Every write runs inside the caller's session and transaction.
"""

from discord_archiver.db.repositories.channel_repository import (
    get_channel,
    list_channels,
    upsert_channel,
)
from discord_archiver.db.repositories.file_repository import (
    delete_avatar_file,
    delete_file,
    get_message_files,
    insert_file,
    upsert_avatar_file,
)
from discord_archiver.db.repositories.guild_repository import (
    get_guild,
    list_guilds,
    upsert_guild,
)
from discord_archiver.db.repositories.member_repository import (
    list_members,
    upsert_member,
    upsert_user,
)
from discord_archiver.db.repositories.message_repository import (
    get_channel_message_count,
    get_channel_messages,
    insert_message,
)

__all__ = [
    "delete_avatar_file",
    "delete_file",
    "get_channel",
    "get_channel_message_count",
    "get_channel_messages",
    "get_guild",
    "get_message_files",
    "insert_file",
    "insert_message",
    "list_channels",
    "list_guilds",
    "list_members",
    "upsert_avatar_file",
    "upsert_channel",
    "upsert_guild",
    "upsert_member",
    "upsert_user",
]
