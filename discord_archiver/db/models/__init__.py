"""Discord Archiver Database Models.

All models use SQLAlchemy 2.0 syntax and run on SQLite or PostgreSQL.
"""

from discord_archiver.db.base import Base
from discord_archiver.db.models.channel import Channel
from discord_archiver.db.models.file import AvatarFile, File
from discord_archiver.db.models.guild import Guild
from discord_archiver.db.models.message import Message
from discord_archiver.db.models.user import Member, User

__all__ = [
    "Base",
    "AvatarFile",
    "Channel",
    "File",
    "Guild",
    "Member",
    "Message",
    "User",
]
