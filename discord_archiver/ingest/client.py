"""Discord REST API client with rate limit handling.

This module provides an async HTTP client for Discord's REST API with:
- Automatic rate limit handling (429 responses)
- Exponential backoff for server errors (5xx) and transport failures
- Proper request headers for user/bot tokens
- An in-memory member state, filled from member responses, backing
  cached_member()
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from discord_archiver.ingest.logger import logger


# Discord API base URL
BASE_URL = "https://discord.com/api/v10"

# Retry configuration
MAX_RETRIES = 5
MAX_RATE_LIMIT_RETRIES = 30  # Cap on consecutive 429 retries
INITIAL_BACKOFF = 1.0  # seconds
MAX_BACKOFF = 64.0  # seconds


class DiscordAPIError(Exception):
    """Raised when Discord API returns an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Discord API error {status_code}: {message}")


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message", response.text)
    except ValueError:
        return response.text


@dataclass
class DiscordClient:
    """Async Discord REST API client.

    Handles rate limits and retries automatically. Implements the
    ArchiveSession protocol.
    """

    token: str
    user_agent: str
    transport: httpx.AsyncBaseTransport | None = None
    _member_state: dict[tuple[str, str], dict[str, Any]] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        """Build request headers."""
        return {
            "Authorization": self.token,
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
        }

    async def __aenter__(self) -> "DiscordClient":
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            headers=self.headers,
            timeout=30.0,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make a request with rate limit and retry handling."""
        if not self._client:
            raise RuntimeError("Client not initialized. Use async with.")

        backoff = INITIAL_BACKOFF
        rate_limit_retries = 0
        attempt = 0

        while True:
            try:
                response = await self._client.request(method, path, params=params)
            except httpx.TransportError as e:
                if attempt >= MAX_RETRIES:
                    raise
                attempt += 1
                reason = "timeout" if isinstance(e, httpx.TimeoutException) else str(e)
                logger.retry(attempt, MAX_RETRIES, backoff, reason)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue

            if response.status_code == 200:
                return response.json()

            if response.status_code == 204:
                return None

            # Rate limited - wait and retry (doesn't count as attempt)
            if response.status_code == 429:
                rate_limit_retries += 1
                if rate_limit_retries > MAX_RATE_LIMIT_RETRIES:
                    raise DiscordAPIError(429, "Max rate limit retries exceeded")
                retry_after = float(response.headers.get("Retry-After", 1.0))
                logger.rate_limit(retry_after)
                await asyncio.sleep(retry_after)
                continue

            if response.status_code >= 500 and attempt < MAX_RETRIES:
                attempt += 1
                logger.retry(
                    attempt, MAX_RETRIES, backoff, f"HTTP {response.status_code}"
                )
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
                continue

            raise DiscordAPIError(response.status_code, _error_message(response))

    # -------------------------------------------------------------------------
    # Guild endpoints
    # -------------------------------------------------------------------------

    async def get_guild(self, guild_id: str) -> dict[str, Any]:
        """Fetch guild information."""
        return await self._request(
            "GET", f"/guilds/{guild_id}", params={"with_counts": "true"}
        )

    async def get_guild_channels(self, guild_id: str) -> list[dict[str, Any]]:
        """Fetch all channels in a guild (excludes threads)."""
        return await self._request("GET", f"/guilds/{guild_id}/channels")

    async def get_guild_members(
        self, guild_id: str, limit: int = 1000, after: str | None = None
    ) -> list[dict[str, Any]]:
        """Fetch guild members ordered by user ID, after the given user."""
        params: dict[str, Any] = {"limit": min(limit, 1000)}
        if after:
            params["after"] = after
        members = await self._request(
            "GET", f"/guilds/{guild_id}/members", params=params
        )
        for member in members:
            self._remember_member(guild_id, member)
        return members

    async def get_guild_member(self, guild_id: str, user_id: str) -> dict[str, Any]:
        """Fetch one guild member. A missing member is a 404 DiscordAPIError."""
        member = await self._request("GET", f"/guilds/{guild_id}/members/{user_id}")
        self._remember_member(guild_id, member)
        return member

    # -------------------------------------------------------------------------
    # Channel endpoints
    # -------------------------------------------------------------------------

    async def get_channel(self, channel_id: str) -> dict[str, Any]:
        """Fetch channel information."""
        return await self._request("GET", f"/channels/{channel_id}")

    # -------------------------------------------------------------------------
    # Message endpoints
    # -------------------------------------------------------------------------

    async def get_messages(
        self,
        channel_id: str,
        limit: int = 100,
        before: str | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch messages from a channel.

        Args:
            channel_id: The channel to fetch from
            limit: Max messages to return (1-100)
            before: Get messages before this message ID
            after: Get messages after this message ID

        Returns:
            List of message objects, ordered by ID descending (newest first)
        """
        params: dict[str, Any] = {"limit": min(limit, 100)}
        if before:
            params["before"] = before
        if after:
            params["after"] = after
        return await self._request(
            "GET", f"/channels/{channel_id}/messages", params=params
        )

    # -------------------------------------------------------------------------
    # Member state
    # -------------------------------------------------------------------------

    def _remember_member(self, guild_id: str, member: dict[str, Any] | None) -> None:
        if not member:
            return
        user_id = (member.get("user") or {}).get("id")
        if user_id:
            self._member_state[(guild_id, str(user_id))] = member

    def cached_member(self, guild_id: str, user_id: str) -> dict[str, Any] | None:
        """Member seen earlier in this session, without a network call."""
        return self._member_state.get((guild_id, user_id))
