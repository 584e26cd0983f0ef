"""Downloaded media ORM models.

CRITICAL SEMANTIC: a row in these tables means the bytes exist on disk under
the archive's save path. Rows are written only after the file content has
been durably written; a failed row write removes the pending file.

Paths are relative to the configured save path:
- attachments/<channel_id>/<message_id>-<index>-<filename>
- embeds/<channel_id>/<message_id>-<index>.<ext>
- embeds/<channel_id>/<message_id>-<index>-thumb.<ext>
- avatars/<user_id>.<ext>
"""

from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from discord_archiver.db.base import Base, Snowflake, TZDateTime, utcnow


class File(Base):
    """Attachment or embed image downloaded for a message.

    Insert-only: the path is unique, and a second download to the same path
    surfaces a NotUniqueError.
    """

    __tablename__ = "files"

    path: Mapped[str] = mapped_column(String(1024), primary_key=True)

    channel_id: Mapped[str] = mapped_column(Snowflake, nullable=False)
    message_id: Mapped[str] = mapped_column(Snowflake, nullable=False)

    archived_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_files_channel_message", "channel_id", "message_id"),)

    def __repr__(self) -> str:
        return f"<File(path='{self.path}')>"


class AvatarFile(Base):
    """Avatar image downloaded for a user. Upserted: one row per user."""

    __tablename__ = "avatar_files"

    user_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    path: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)

    archived_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<AvatarFile(user_id={self.user_id}, path='{self.path}')>"
