"""The remote API surface the archiver depends on.

DiscordClient implements it over HTTP; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Any, Protocol


class ArchiveSession(Protocol):
    async def get_channel(self, channel_id: str) -> dict[str, Any]: ...

    async def get_guild(self, guild_id: str) -> dict[str, Any]: ...

    async def get_guild_channels(self, guild_id: str) -> list[dict[str, Any]]: ...

    async def get_messages(
        self,
        channel_id: str,
        limit: int = 100,
        before: str | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        """Messages newest first, strictly before/after the given IDs."""
        ...

    async def get_guild_members(
        self, guild_id: str, limit: int = 1000, after: str | None = None
    ) -> list[dict[str, Any]]:
        """Members ordered by user ID, strictly after the given user."""
        ...

    async def get_guild_member(self, guild_id: str, user_id: str) -> dict[str, Any]: ...

    def cached_member(self, guild_id: str, user_id: str) -> dict[str, Any] | None: ...
