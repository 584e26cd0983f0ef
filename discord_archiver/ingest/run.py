"""Main orchestration for the Discord archive pipeline.

Runs the archive targets of every account in config.json. Each target (a
guild, or a single channel) is archived in its own transaction:

    session -> TransactionWriter -> MediaFetcher -> Archiver
            -> drain downloads -> commit

Any error or interruption cancels outstanding downloads and rolls the
target's transaction back.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

from discord_archiver.config.settings import (
    AccountConfig,
    AppSettings,
    ArchiveOptions,
    load_config,
)
from discord_archiver.core import BaseOrchestrator
from discord_archiver.ingest.archiver import (
    Archiver,
    ChannelArchiveResult,
    GuildArchiveResult,
)
from discord_archiver.ingest.client import DiscordAPIError, DiscordClient
from discord_archiver.ingest.logger import logger
from discord_archiver.ingest.media import MediaFetcher
from discord_archiver.ingest.session import ArchiveSession
from discord_archiver.ingest.writer import TransactionWriter

R = TypeVar("R")


class ArchiveOrchestrator(BaseOrchestrator):
    """Orchestrates archive runs across configured accounts."""

    def __init__(
        self,
        settings: AppSettings,
        options: ArchiveOptions | None = None,
        *,
        members: bool | None = None,
        client_factory: Callable[[AccountConfig], Any] | None = None,
    ) -> None:
        super().__init__(settings.database_url)
        self.settings = settings
        self.options = options or settings.options
        self.members = settings.archive_members if members is None else members
        self._client_factory = client_factory or _discord_client
        # Stats
        self.guilds_archived = 0
        self.channels_archived = 0
        self.messages_archived = 0
        self.duplicates_skipped = 0
        self.members_archived = 0
        self.files_saved = 0

    async def _run_pipeline(
        self,
        guild_id: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        """Execute the archive pipeline."""
        if channel_id:
            await self._archive_single_channel(channel_id)
            return
        for account in self.settings.accounts:
            await self._archive_account(account, guild_id)

    def _log_summary(self, elapsed: float) -> None:
        """Log the final archive summary."""
        logger.summary(
            guilds=self.guilds_archived,
            channels=self.channels_archived,
            messages=self.messages_archived,
            duplicates=self.duplicates_skipped,
            members=self.members_archived,
            files=self.files_saved,
            elapsed=elapsed,
        )

    async def _in_transaction(
        self,
        client: ArchiveSession,
        work: Callable[[Archiver], Awaitable[R]],
    ) -> R:
        """Run one archive target in its own transaction.

        Downloads are drained before the commit; on failure they are
        cancelled and the transaction is rolled back.
        """
        async with self.transaction() as session:
            writer = TransactionWriter(session)
            async with MediaFetcher(
                writer,
                self.settings.save_path,
                concurrency=self.settings.download_concurrency,
                timeout=self.settings.download_timeout,
                logger=logger,
            ) as media:
                archiver = Archiver(client, writer, self.options, media=media, logger=logger)
                result = await work(archiver)
                await media.drain()
            self.files_saved += media.saved
        return result

    def _record_channel(self, result: ChannelArchiveResult) -> None:
        self.channels_archived += 1
        self.messages_archived += result.messages_archived
        self.duplicates_skipped += result.duplicates_skipped
        if result.members:
            self.members_archived += result.members.members_archived

    def _record_guild(self, result: GuildArchiveResult) -> None:
        self.guilds_archived += 1
        for channel in result.channels:
            self._record_channel(channel)
        if result.members:
            self.members_archived += result.members.members_archived

    async def _archive_account(
        self, account: AccountConfig, filter_guild_id: str | None = None
    ) -> None:
        """Archive the configured guilds and channels of one account."""
        logger.info(f"Processing account: {account.name}")

        async with self._client_factory(account) as client:
            for guild_id in account.guilds:
                if filter_guild_id and guild_id != filter_guild_id:
                    continue
                result = await self._in_transaction(
                    client,
                    lambda a, g=guild_id: a.archive_guild(g, members=self.members),
                )
                self._record_guild(result)
                if result.failed_channels:
                    logger.warning(
                        f"{len(result.failed_channels)} channel(s) of guild "
                        f"{guild_id} failed and were skipped"
                    )

            if filter_guild_id:
                return
            for channel_id in account.channels:
                result = await self._in_transaction(
                    client,
                    lambda a, c=channel_id: a.archive_channel(c, members=self.members),
                )
                self._record_channel(result)

    async def _archive_single_channel(self, channel_id: str) -> None:
        """Archive one channel with the first account that can see it."""
        for account in self.settings.accounts:
            async with self._client_factory(account) as client:
                try:
                    channel = await client.get_channel(channel_id)
                except DiscordAPIError as e:
                    logger.debug(f"{account.name} cannot read channel {channel_id}: {e}")
                    continue

                result = await self._in_transaction(
                    client,
                    lambda a: a.archive_channel(
                        channel_id, channel=channel, members=self.members
                    ),
                )
                self._record_channel(result)
                return

        logger.warning(f"Could not find channel {channel_id} in any account")


def _discord_client(account: AccountConfig) -> DiscordClient:
    return DiscordClient(token=account.token, user_agent=account.user_agent)


async def run_archive(
    config_path: str = "config.json",
    guild_id: str | None = None,
    channel_id: str | None = None,
    *,
    members: bool | None = None,
    overrides: dict[str, Any] | None = None,
) -> ArchiveOrchestrator:
    """Entry point for running the archive pipeline.

    Args:
        config_path: Path to config.json
        guild_id: Only archive this guild
        channel_id: Only archive this channel
        members: Archive member lists (defaults to the config value)
        overrides: ArchiveOptions fields that take precedence over config
    """
    settings = load_config(config_path)
    options = settings.options
    if overrides:
        options = ArchiveOptions.model_validate(
            {**options.model_dump(), **overrides}
        )
    orchestrator = ArchiveOrchestrator(settings, options, members=members)
    await orchestrator.run(guild_id=guild_id, channel_id=channel_id)
    return orchestrator
