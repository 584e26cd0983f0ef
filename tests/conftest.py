"""Shared fixtures for discord-archiver tests."""

from __future__ import annotations

from typing import Any, AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from discord_archiver.db.models import Base
from discord_archiver.ingest.client import DiscordAPIError

GUILD_ID = "100"
CHANNEL_ID = "200"


def make_message(
    message_id: int | str,
    channel_id: str = CHANNEL_ID,
    author_id: str = "900",
    **extra: Any,
) -> dict[str, Any]:
    """Minimal Discord message payload."""
    return {
        "id": str(message_id),
        "channel_id": channel_id,
        "author": {"id": author_id, "username": f"user{author_id}"},
        "content": f"message {message_id}",
        "embeds": [],
        "attachments": [],
        **extra,
    }


def make_member(user_id: int | str, nick: str | None = None, **user: Any) -> dict[str, Any]:
    """Minimal Discord guild member payload."""
    return {
        "user": {"id": str(user_id), "username": f"user{user_id}", **user},
        "nick": nick,
        "roles": ["1", "2"],
    }


class FakeSession:
    """In-memory ArchiveSession.

    Messages are held oldest first and served newest first, like the API.
    Members are served by ascending user ID.
    """

    def __init__(
        self,
        messages: dict[str, list[dict[str, Any]]] | None = None,
        members: dict[str, list[dict[str, Any]]] | None = None,
        channels: dict[str, dict[str, Any]] | None = None,
        guilds: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.messages = messages or {}
        self.members = members or {}
        self.channels = channels or {}
        self.guilds = guilds or {}
        self.message_calls: list[tuple[str, int, str | None]] = []
        self.member_lookups: list[tuple[str, str]] = []
        self.failing_channels: set[str] = set()
        self.member_state: dict[tuple[str, str], dict[str, Any]] = {}

    async def get_channel(self, channel_id: str) -> dict[str, Any]:
        if channel_id not in self.channels:
            raise DiscordAPIError(404, "Unknown Channel")
        return self.channels[channel_id]

    async def get_guild(self, guild_id: str) -> dict[str, Any]:
        if guild_id not in self.guilds:
            raise DiscordAPIError(404, "Unknown Guild")
        return self.guilds[guild_id]

    async def get_guild_channels(self, guild_id: str) -> list[dict[str, Any]]:
        return [c for c in self.channels.values() if c.get("guild_id") == guild_id]

    async def get_messages(
        self,
        channel_id: str,
        limit: int = 100,
        before: str | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        self.message_calls.append((channel_id, limit, before))
        if channel_id in self.failing_channels:
            raise DiscordAPIError(403, "Missing Access")
        newest_first = sorted(
            self.messages.get(channel_id, []), key=lambda m: int(m["id"]), reverse=True
        )
        if before is not None:
            newest_first = [m for m in newest_first if int(m["id"]) < int(before)]
        return newest_first[: min(limit, 100)]

    async def get_guild_members(
        self, guild_id: str, limit: int = 1000, after: str | None = None
    ) -> list[dict[str, Any]]:
        ordered = sorted(self.members.get(guild_id, []), key=lambda m: int(m["user"]["id"]))
        if after is not None:
            ordered = [m for m in ordered if int(m["user"]["id"]) > int(after)]
        return ordered[: min(limit, 1000)]

    async def get_guild_member(self, guild_id: str, user_id: str) -> dict[str, Any]:
        self.member_lookups.append((guild_id, user_id))
        for member in self.members.get(guild_id, []):
            if member["user"]["id"] == user_id:
                return member
        raise DiscordAPIError(404, "Unknown Member")

    def cached_member(self, guild_id: str, user_id: str) -> dict[str, Any] | None:
        return self.member_state.get((guild_id, user_id))


@pytest.fixture
def fake_session() -> FakeSession:
    """Guild 100 with one text channel 200 holding 30 messages."""
    return FakeSession(
        messages={CHANNEL_ID: [make_message(i) for i in range(1, 31)]},
        channels={
            CHANNEL_ID: {"id": CHANNEL_ID, "type": 0, "guild_id": GUILD_ID, "name": "general"}
        },
        guilds={GUILD_ID: {"id": GUILD_ID, "name": "Test Guild"}},
        members={GUILD_ID: [make_member("900", nick="Nine")]},
    )


@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncIterator[AsyncSession]:
    """Session on a fresh SQLite archive with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'archive.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()
