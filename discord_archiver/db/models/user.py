"""User and guild member ORM models.

Users are LATEST-STATE SNAPSHOTS: each member archive overwrites the previous
state. user_id is the only authoritative identity; the display fields are
best-effort metadata.

Members are the per-guild view of a user (nickname, roles). Membership state
legitimately changes between runs, so members are upserted on
(guild_id, user_id) rather than inserted.
"""

from datetime import datetime

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from discord_archiver.db.base import Base, JSONType, Snowflake, TZDateTime, utcnow


class User(Base):
    """Discord user profile cache."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    username: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Full CDN URL of the avatar at archive time (default avatar if unset).
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Legacy discriminator ("0" under the new username system).
    discriminator: Mapped[str | None] = mapped_column(String(4), nullable=True)

    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<User(user_id={self.user_id}, username='{self.username}')>"


class Member(Base):
    """Guild membership of a user."""

    __tablename__ = "members"

    guild_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)
    user_id: Mapped[str] = mapped_column(Snowflake, primary_key=True)

    username: Mapped[str | None] = mapped_column(String(128), nullable=True)
    nickname: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Role IDs as returned by the API.
    roles: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)

    updated_at: Mapped[datetime] = mapped_column(
        TZDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Member(guild_id={self.guild_id}, user_id={self.user_id})>"
