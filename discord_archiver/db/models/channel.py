"""Channel ORM model.

Channels are LATEST-STATE SNAPSHOTS: upserted once per archive run of the
channel. Messages within channels are insert-only (see message.py).

`guild_id` is a soft reference (lookup only, no FK): a channel may be archived
before or without its guild, and DM channels have no guild at all.
"""

from datetime import datetime

from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from discord_archiver.db.base import Base, JSONType, Snowflake, TZDateTime, utcnow


class Channel(Base):
    """Discord channel.

    `type` follows the Discord channel type numbering (0=text, 2=voice,
    4=category, 5=announcement, ...). Only text channels are walked for
    messages by guild archives.
    """

    __tablename__ = "channels"

    channel_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    # Soft reference to guilds.guild_id. NULL for DM channels.
    guild_id: Mapped[str | None] = mapped_column(Snowflake, nullable=True)

    # NULL only for DM and group DM channels.
    name: Mapped[str | None] = mapped_column(String(400), nullable=True)

    topic: Mapped[str | None] = mapped_column(Text, nullable=True)

    type: Mapped[int] = mapped_column(Integer, nullable=False)

    # Versioned metadata snapshot (ChannelSnapshot.dump()).
    snapshot: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)

    archived_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_channels_guild_id", "guild_id"),)

    def __repr__(self) -> str:
        return f"<Channel(channel_id={self.channel_id}, name='{self.name}', type={self.type})>"
