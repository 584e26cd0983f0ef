"""Rich-based logging utilities for the Discord archive pipeline.

Provides console output for guild/channel walks, inline paging progress,
rate-limit warnings and the final run summary.
"""

from __future__ import annotations

from typing import Any

from discord_archiver.utils.pipeline_logger import BasePipelineLogger


class ArchiveLogger(BasePipelineLogger):
    """Logger for archive runs with rich output.

    Extends BasePipelineLogger with archive-specific events. The Archiver
    and MediaFetcher take an instance of this class as their log sink.
    """

    def __init__(self) -> None:
        super().__init__(__name__)

    # -------------------------------------------------------------------------
    # Rate Limiting & Retries
    # -------------------------------------------------------------------------

    def rate_limit(self, retry_after: float) -> None:
        """Log a rate limit warning with retry time."""
        self.warning(f"Rate limited. Waiting {retry_after:.1f}s...")

    def retry(
        self, attempt: int, max_attempts: int, wait_time: float, reason: str = ""
    ) -> None:
        """Log a retry attempt with optional reason."""
        msg = f"Retry {attempt}/{max_attempts} in {wait_time:.1f}s"
        if reason:
            msg += f" ({reason})"
        self.warning(msg)

    # -------------------------------------------------------------------------
    # Guild / Channel Walks
    # -------------------------------------------------------------------------

    def guild_start(self, guild_id: str, guild_name: str) -> None:
        """Log the start of a guild walk."""
        self._clear_progress_line()
        self.console.print()
        self.console.rule(f"[bold cyan]{guild_name}[/bold cyan]", style="cyan")
        self.console.print(f"[dim]Guild ID: {guild_id}[/dim]")

    def channel_failed(self, channel_name: str, exc: BaseException) -> None:
        """Log a channel whose walk failed; the guild walk goes on."""
        self.error(f"Channel {channel_name} failed: {type(exc).__name__}: {exc}")

    def limit_reached(self, limit: int, unit: str = "messages") -> None:
        self.debug(f"Limit of {limit:,} {unit} reached")

    def duplicate_skipped(self, channel_id: str, message_id: str) -> None:
        self.debug(f"Message {message_id} in {channel_id} already archived, skipping")

    # -------------------------------------------------------------------------
    # Members / Media
    # -------------------------------------------------------------------------

    def member_unknown(self, guild_id: str, user_id: str) -> None:
        self.debug(f"No member {user_id} in guild {guild_id}; nickname left empty")

    def media_error(self, url: str, exc: BaseException) -> None:
        """Log an abandoned download. The walk is not affected."""
        self.warning(f"Download of {url} abandoned: {type(exc).__name__}: {exc}")

    def media_saved(self, path: str) -> None:
        self.debug(f"Saved {path}")

    # -------------------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------------------

    def summary(
        self,
        guilds: int = 0,
        channels: int = 0,
        messages: int = 0,
        duplicates: int = 0,
        members: int = 0,
        files: int = 0,
        elapsed: float = 0.0,
        **kwargs: Any,
    ) -> None:
        """Print final archive summary."""
        stats: dict[str, int | str] = {
            "Guilds": guilds,
            "Channels": channels,
            "Messages archived": messages,
        }
        if duplicates:
            stats["Duplicates skipped"] = duplicates
        if members:
            stats["Members archived"] = members
        stats["Files saved"] = files
        self.print_summary("Archive", elapsed=elapsed, stats=stats, style="cyan")


# Global logger instance
logger = ArchiveLogger()
