"""CLI entry point for discord_archiver.ingest.

Usage:
    python -m discord_archiver.ingest                    # Archive everything in config
    python -m discord_archiver.ingest --guild-id 123     # Archive one guild
    python -m discord_archiver.ingest --channel-id 456   # Archive one channel
    python -m discord_archiver.ingest --members          # Also archive member lists
    python -m discord_archiver.ingest --debug            # Show debug info
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any

from discord_archiver.ingest.logger import logger
from discord_archiver.ingest.run import run_archive
from discord_archiver.utils.logging import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Discord Archiver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m discord_archiver.ingest
      Archive all guilds and channels defined in config.json

  python -m discord_archiver.ingest --guild-id 123456789 --members
      Archive one guild and its member list

  python -m discord_archiver.ingest --channel-id 987654321 --skip 500
      Archive a channel, leaving out its 500 most recent messages

  python -m discord_archiver.ingest --channel-id 987654321 --last-id 1122334455
      Archive the messages older than the given message

  python -m discord_archiver.ingest --debug
      Enable debug logging including third-party libraries
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to config.json (default: config.json)",
    )
    parser.add_argument("--guild-id", type=str, help="Archive only this guild ID")
    parser.add_argument("--channel-id", type=str, help="Archive only this channel ID")
    parser.add_argument(
        "--members",
        action="store_true",
        default=None,
        help="Also archive the member list of each archived guild or channel's guild",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Archive at most this many items per channel or member list",
    )
    parser.add_argument(
        "--skip",
        type=int,
        help="Leave out this many leading items (takes precedence over --last-id)",
    )
    parser.add_argument(
        "--last-id",
        type=str,
        help="Resume past this message or user ID",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output (DEBUG level)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode with third-party library logs",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Optional file to write logs to",
    )
    return parser


def option_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """ArchiveOptions fields given on the command line."""
    overrides: dict[str, Any] = {}
    for name in ("limit", "skip", "last_id"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        log_level = logging.DEBUG
        debug_third_party = True
    elif args.verbose:
        log_level = logging.DEBUG
        debug_third_party = False
    else:
        log_level = logging.INFO
        debug_third_party = False

    setup_logging(
        level=log_level,
        log_file=args.log_file,
        debug_third_party=debug_third_party,
    )

    logger.info("Starting Discord Archiver")

    try:
        asyncio.run(
            run_archive(
                config_path=args.config,
                guild_id=args.guild_id,
                channel_id=args.channel_id,
                members=args.members,
                overrides=option_overrides(args),
            )
        )
        logger.success("Archive complete!")
    except KeyboardInterrupt:
        logger.warning("Interrupted by user, nothing from the current target was kept")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise


if __name__ == "__main__":
    main()
