"""Guild ORM model.

LATEST-STATE SNAPSHOT: each archive pass of a guild replaces the previous row.
Guilds are never deleted by the archiver.

The `snapshot` column holds a versioned `GuildSnapshot` (see db/snapshots.py),
not the raw API payload.
"""

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from discord_archiver.db.base import Base, JSONType, Snowflake, TZDateTime, utcnow


class Guild(Base):
    """Discord guild (server)."""

    __tablename__ = "guilds"

    guild_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Versioned metadata snapshot (GuildSnapshot.dump()).
    snapshot: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    archived_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Guild(guild_id={self.guild_id}, name='{self.name}')>"
