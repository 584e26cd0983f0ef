"""Per-run nickname resolution for message authors.

Lookups go memo -> the session's member state -> a remote member fetch. A
pair that cannot be resolved is remembered as unknown so departed or hidden
members cost at most one remote call per run. Nothing here is persisted and
there is no eviction; each Archiver owns its own resolver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from discord_archiver.ingest.client import DiscordAPIError

if TYPE_CHECKING:
    from discord_archiver.ingest.logger import ArchiveLogger
    from discord_archiver.ingest.session import ArchiveSession


def member_nickname(member: dict[str, Any]) -> str:
    return member.get("nick") or ""


class NicknameResolver:
    def __init__(self, session: "ArchiveSession", logger: "ArchiveLogger") -> None:
        self._session = session
        self._logger = logger
        self._nicknames: dict[tuple[str, str], str] = {}
        self._unknown: set[tuple[str, str]] = set()
        self.remote_lookups = 0

    def remember(self, guild_id: str, user_id: str, nickname: str) -> None:
        """Prime the memo, e.g. from an archived member list."""
        self._nicknames[(guild_id, user_id)] = nickname
        self._unknown.discard((guild_id, user_id))

    def is_unknown(self, guild_id: str, user_id: str) -> bool:
        return (guild_id, user_id) in self._unknown

    async def resolve(self, guild_id: str | None, user_id: str) -> str | None:
        """Nickname of a guild member, "" if they have none, None if unknown."""
        if not guild_id:
            return None
        pair = (guild_id, user_id)
        if pair in self._nicknames:
            return self._nicknames[pair]
        if pair in self._unknown:
            return None

        member = self._session.cached_member(guild_id, user_id)
        if member is None:
            self.remote_lookups += 1
            try:
                member = await self._session.get_guild_member(guild_id, user_id)
            except (DiscordAPIError, httpx.HTTPError) as e:
                self._logger.debug(f"Member lookup {user_id} in {guild_id} failed: {e}")
                member = None

        if not member:
            self._unknown.add(pair)
            self._logger.member_unknown(guild_id, user_id)
            return None

        nickname = member_nickname(member)
        self._nicknames[pair] = nickname
        return nickname
