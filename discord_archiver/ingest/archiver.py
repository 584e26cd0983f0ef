"""Channel, guild and member archiving.

An Archiver walks the remote collections page by page and writes what it
finds through the run's TransactionWriter. It does not commit; the caller
owns the transaction (see ingest/run.py).

Messages are walked newest first with `before`. Resuming with `skip=N`
therefore bypasses the N most recent messages and archives everything older.
Members are walked by ascending user ID with `after`.

Per-run state (nickname memo, unknown members, which guilds were already
written) lives on the instance, so two runs never share it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import httpx

from discord_archiver.config.settings import ArchiveOptions, DuplicatePolicy
from discord_archiver.db.repositories import (
    insert_message,
    upsert_channel,
    upsert_guild,
    upsert_member,
    upsert_user,
)
from discord_archiver.db.schema import ensure_schema
from discord_archiver.errors import ArchiveError
from discord_archiver.ingest.client import DiscordAPIError
from discord_archiver.ingest.logger import ArchiveLogger
from discord_archiver.ingest.logger import logger as default_logger
from discord_archiver.ingest.mappers import (
    avatar_url,
    channel_type_name,
    is_archivable,
    map_channel,
    map_guild,
    map_member,
    map_message,
    map_user,
)
from discord_archiver.ingest.nicknames import NicknameResolver, member_nickname
from discord_archiver.ingest.pagination import (
    MEMBER_PAGE_MAX,
    MESSAGE_PAGE_MAX,
    Fetch,
    PageWalker,
    locate_resume_cursor,
    member_key,
    message_key,
)
from discord_archiver.utils.snowflake import snowflake_date

if TYPE_CHECKING:
    from discord_archiver.ingest.media import MediaFetcher
    from discord_archiver.ingest.session import ArchiveSession
    from discord_archiver.ingest.writer import TransactionWriter


class ArchiveState(str, Enum):
    """Progress of the current walk.

    INIT -> RESUMING (only when skipping) -> PAGING -> DONE | LIMIT_REACHED
    """

    INIT = "init"
    RESUMING = "resuming"
    PAGING = "paging"
    DONE = "done"
    LIMIT_REACHED = "limit_reached"


@dataclass
class MemberArchiveResult:
    """Result of archiving the member list of a guild."""

    guild_id: str
    state: ArchiveState
    members_archived: int = 0


@dataclass
class ChannelArchiveResult:
    """Result of archiving one channel."""

    channel_id: str
    state: ArchiveState
    messages_archived: int = 0
    duplicates_skipped: int = 0
    media_queued: int = 0
    members: MemberArchiveResult | None = None


@dataclass
class GuildArchiveResult:
    """Result of archiving a guild's text channels."""

    guild_id: str
    channels: list[ChannelArchiveResult] = field(default_factory=list)
    failed_channels: list[str] = field(default_factory=list)
    members: MemberArchiveResult | None = None

    @property
    def messages_archived(self) -> int:
        return sum(c.messages_archived for c in self.channels)

    @property
    def duplicates_skipped(self) -> int:
        return sum(c.duplicates_skipped for c in self.channels)


# Errors that end one channel of a guild walk without ending the walk.
CHANNEL_ERRORS = (DiscordAPIError, httpx.HTTPError, ArchiveError)


class Archiver:
    """Archives channels, guilds and member lists for one run.

    Args:
        session: Remote API (DiscordClient or any ArchiveSession)
        writer: Serialized handle on the run's database session
        options: What to archive and where to resume
        media: Background downloader; required when any media option is on
        logger: Log sink for progress and non-fatal errors
    """

    def __init__(
        self,
        session: "ArchiveSession",
        writer: "TransactionWriter",
        options: ArchiveOptions,
        *,
        media: "MediaFetcher | None" = None,
        logger: ArchiveLogger = default_logger,
    ) -> None:
        wants_media = (
            options.save_attachments or options.save_embed_images or options.save_avatars
        )
        if wants_media and media is None:
            raise ValueError("a MediaFetcher is required to save media")
        self._session = session
        self._writer = writer
        self.options = options
        self._media = media
        self._logger = logger
        self.nicknames = NicknameResolver(session, logger)
        self.state = ArchiveState.INIT
        self._schemas: set[tuple[bool, bool, bool]] = set()
        self._guilds_written: set[str] = set()

    # -------------------------------------------------------------------------
    # Shared steps
    # -------------------------------------------------------------------------

    async def _ensure_schema(self, *, members: bool = False) -> None:
        files = self.options.save_attachments or self.options.save_embed_images
        avatars = members and self.options.save_avatars
        key = (files, avatars, members)
        if key in self._schemas:
            return
        await self._writer.run(ensure_schema, files=files, avatars=avatars, members=members)
        self._schemas.add(key)

    async def _write_guild(self, guild_id: str) -> dict[str, Any]:
        guild = await self._session.get_guild(guild_id)
        await self._writer.run(upsert_guild, map_guild(guild))
        self._guilds_written.add(guild_id)
        return guild

    def _walk_options(self, resume: bool) -> ArchiveOptions:
        """Run options, or the same options without skip, limit and last_id.

        Member lists archived alongside channels are always walked in full;
        the resume options describe the channel walk.
        """
        if resume:
            return self.options
        return self.options.model_copy(update={"skip": 0, "limit": 0, "last_id": ""})

    async def _resume_cursor(
        self,
        options: ArchiveOptions,
        fetch: Fetch,
        page_max: int,
        key: Callable[[Any], str],
    ) -> str | None:
        """Starting cursor from skip (which wins) or last_id."""
        if options.skip > 0:
            self.state = ArchiveState.RESUMING
            return await locate_resume_cursor(fetch, options.skip, page_max=page_max, key=key)
        return options.last_id or None

    def _describe_resume(self, options: ArchiveOptions, block: Any) -> None:
        if options.skip > 0:
            block.field("resume", f"skip {options.skip:,}", color="magenta")
        elif options.last_id:
            block.field("resume", f"from {options.last_id}", color="magenta")
        if options.limit:
            block.field("limit", f"{options.limit:,}")

    # -------------------------------------------------------------------------
    # Channels
    # -------------------------------------------------------------------------

    async def archive_channel(
        self,
        channel_id: str,
        *,
        channel: dict[str, Any] | None = None,
        members: bool = False,
    ) -> ChannelArchiveResult:
        """Archive the message history of one channel.

        Args:
            channel_id: Channel to archive
            channel: Channel payload if already fetched (guild walks)
            members: Also archive the member list of the channel's guild

        Raises:
            NotUniqueError: On an already archived message with the "fail" policy
            SequenceTooShortError: If skip exceeds the channel history
            DiscordAPIError, httpx.HTTPError: On API failures
        """
        self.state = ArchiveState.INIT
        await self._ensure_schema()

        if channel is None:
            channel = await self._session.get_channel(channel_id)
        guild_id = channel.get("guild_id")
        if guild_id and guild_id not in self._guilds_written:
            await self._write_guild(guild_id)
        await self._writer.run(upsert_channel, map_channel(channel))

        async def fetch(cursor: str | None, limit: int) -> list[dict[str, Any]]:
            return await self._session.get_messages(channel_id, limit=limit, before=cursor)

        title = f"#{channel.get('name') or channel_id}"
        with self._logger.block(title) as block:
            block.field("channel ID", channel_id)
            block.field("type", channel_type_name(channel.get("type", 0)))
            self._describe_resume(self.options, block)

            cursor = await self._resume_cursor(
                self.options, fetch, MESSAGE_PAGE_MAX, message_key
            )
            self.state = ArchiveState.PAGING
            result = ChannelArchiveResult(channel_id=channel_id, state=self.state)
            walker: PageWalker[dict[str, Any]] = PageWalker(
                fetch, page_max=MESSAGE_PAGE_MAX, cursor=cursor, limit=self.options.limit
            )

            async for page in walker:
                for message in page:
                    await self._archive_message(guild_id, channel_id, message, result)
                self._logger.batch_progress(
                    result.messages_archived,
                    self.options.limit or None,
                    oldest=snowflake_date(walker.cursor),
                )

            if walker.limit_reached:
                self.state = ArchiveState.LIMIT_REACHED
                self._logger.limit_reached(self.options.limit)
            else:
                self.state = ArchiveState.DONE
            result.state = self.state

            if walker.fetched == 0:
                block.empty()
            else:
                summary = f"archived {result.messages_archived:,} messages"
                if result.duplicates_skipped:
                    summary += f", {result.duplicates_skipped:,} already archived"
                if result.state is ArchiveState.LIMIT_REACHED:
                    summary += " (limit reached)"
                block.result(summary, success=result.state is ArchiveState.DONE)

        if members and guild_id:
            result.members = await self.archive_members(guild_id, resume=False)
            self.state = result.state
        return result

    async def _archive_message(
        self,
        guild_id: str | None,
        channel_id: str,
        message: dict[str, Any],
        result: ChannelArchiveResult,
    ) -> None:
        nickname = None
        author_id = (message.get("author") or {}).get("id")
        if guild_id and author_id and not message.get("webhook_id"):
            nickname = await self.nicknames.resolve(guild_id, str(author_id))

        inserted = await self._writer.run(
            insert_message,
            map_message(message, channel_id, nickname),
            skip_duplicates=self.options.on_duplicate is DuplicatePolicy.SKIP,
        )
        if not inserted:
            result.duplicates_skipped += 1
            self._logger.duplicate_skipped(channel_id, str(message["id"]))
            return
        result.messages_archived += 1

        if self._media is None:
            return
        if self.options.save_attachments:
            result.media_queued += await self._media.fetch_attachments(channel_id, message)
        if self.options.save_embed_images:
            result.media_queued += await self._media.fetch_embeds(channel_id, message)

    # -------------------------------------------------------------------------
    # Guilds
    # -------------------------------------------------------------------------

    async def archive_guild(
        self, guild_id: str, *, members: bool = False
    ) -> GuildArchiveResult:
        """Archive every text channel of a guild, one after another.

        A failing channel is logged and skipped. Failing to fetch the guild
        or its channel list raises.

        Args:
            guild_id: Guild to archive
            members: Also archive the member list after the channels
        """
        self.state = ArchiveState.INIT
        await self._ensure_schema()

        guild = await self._write_guild(guild_id)
        self._logger.guild_start(guild_id, guild.get("name", guild_id))

        channels = await self._session.get_guild_channels(guild_id)
        text_channels = sorted(
            (c for c in channels if is_archivable(c.get("type", -1))),
            key=lambda c: (c.get("position") or 0, c["id"]),
        )

        result = GuildArchiveResult(guild_id=guild_id)
        for channel in text_channels:
            channel = {**channel, "guild_id": channel.get("guild_id") or guild_id}
            try:
                channel_result = await self.archive_channel(channel["id"], channel=channel)
            except CHANNEL_ERRORS as e:
                self._logger.channel_failed(channel.get("name") or channel["id"], e)
                result.failed_channels.append(channel["id"])
                continue
            result.channels.append(channel_result)

        if members:
            result.members = await self.archive_members(guild_id, resume=False)

        self.state = ArchiveState.DONE
        return result

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def archive_members(
        self, guild_id: str, *, resume: bool = True
    ) -> MemberArchiveResult:
        """Archive the member list of a guild, upserting members and users.

        Archived members also prime the nickname memo for later channels.

        Args:
            guild_id: Guild whose members to archive
            resume: Apply skip, limit and last_id. Off when the member list
                is archived alongside a channel or guild walk.

        Raises:
            SequenceTooShortError: If skip exceeds the member count
            DiscordAPIError, httpx.HTTPError: On API failures
        """
        self.state = ArchiveState.INIT
        options = self._walk_options(resume)
        await self._ensure_schema(members=True)

        async def fetch(cursor: str | None, limit: int) -> list[dict[str, Any]]:
            return await self._session.get_guild_members(guild_id, limit=limit, after=cursor)

        save_avatars = self.options.save_avatars and self._media is not None

        with self._logger.block("Members") as block:
            block.field("guild ID", guild_id)
            self._describe_resume(options, block)

            cursor = await self._resume_cursor(options, fetch, MEMBER_PAGE_MAX, member_key)
            self.state = ArchiveState.PAGING
            result = MemberArchiveResult(guild_id=guild_id, state=self.state)
            walker: PageWalker[dict[str, Any]] = PageWalker(
                fetch,
                page_max=MEMBER_PAGE_MAX,
                cursor=cursor,
                limit=options.limit,
                key=member_key,
            )

            async for page in walker:
                for member in page:
                    user = member["user"]
                    user_id = str(user["id"])
                    await self._writer.run(upsert_member, map_member(member, guild_id))
                    await self._writer.run(upsert_user, map_user(user))
                    self.nicknames.remember(guild_id, user_id, member_nickname(member))
                    if save_avatars:
                        await self._media.fetch_avatar(
                            user_id, avatar_url(user, self.options.avatar_size)
                        )
                    result.members_archived += 1
                self._logger.batch_progress(result.members_archived, unit="members")

            if walker.limit_reached:
                self.state = ArchiveState.LIMIT_REACHED
                self._logger.limit_reached(options.limit, "members")
            else:
                self.state = ArchiveState.DONE
            result.state = self.state
            block.result(
                f"archived {result.members_archived:,} members",
                success=result.state is ArchiveState.DONE,
            )

        return result
