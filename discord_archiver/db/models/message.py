"""Message ORM model.

Messages are INSERT-ONLY. The composite primary key (channel_id, message_id)
is the archive's sole duplicate-detection mechanism: archiving the same
message twice surfaces a NotUniqueError instead of overwriting the first row.

Design principles:
- Author identity is denormalized (author_id, username, nickname) because the
  static page renderer reads messages without joining users or members
- nickname is resolved opportunistically at archive time and may be NULL
- Attachments and embeds are stored as the JSON lists the API returned; the
  downloaded copies (if any) are tracked separately in the files table
"""

from datetime import datetime

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from discord_archiver.db.base import Base, JSONType, Snowflake, TZDateTime, utcnow


class Message(Base):
    """Discord message as archived."""

    __tablename__ = "messages"

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    channel_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)
    message_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    # -------------------------------------------------------------------------
    # Author (denormalized)
    # -------------------------------------------------------------------------

    # Soft reference: webhooks and deleted accounts never reach the users table.
    author_id: Mapped[str] = mapped_column(Snowflake, nullable=False)
    username: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Guild nickname at archive time. NULL when the member could not be
    # resolved (departed or invisible members).
    nickname: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # -------------------------------------------------------------------------
    # Content
    # -------------------------------------------------------------------------

    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    embeds: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    attachments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    archived_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_messages_author_id", "author_id"),)

    def __repr__(self) -> str:
        return f"<Message(channel_id={self.channel_id}, message_id={self.message_id})>"
