"""Logging setup for archive runs.

Log records and the ArchiveLogger block/progress output share one rich
Console, so a warning raised mid-page lands on its own line instead of
tearing through the inline progress line.

The CLI maps its flags onto setup_logging():
    (none)        INFO for discord_archiver, client libraries at WARNING
    --verbose     DEBUG for discord_archiver, client libraries at WARNING
    --debug       DEBUG, plus httpx request lines and SQL statement echo
    --log-file    a plain-text copy of every record, for unattended runs

Modules log through logging.getLogger(__name__) or the ArchiveLogger in
ingest/logger.py; neither configures handlers on import.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler


# Shared by RichHandler and every BasePipelineLogger.
console = Console()

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client and database driver loggers, quiet unless --debug.
THIRD_PARTY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "asyncpg", "sqlalchemy.engine")


def _file_handler(log_file: str | Path) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def quiet_third_party(debug: bool = False) -> None:
    """Set the level of the HTTP and database libraries.

    With debug, httpx logs every request and SQLAlchemy echoes statements
    (INFO, since DEBUG would also dump result rows).
    """
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
    if debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)


def setup_logging(
    level: int = logging.INFO,
    log_file: str | Path | None = None,
    debug_third_party: bool = False,
) -> None:
    """Route all logging through the shared console, once per process.

    Args:
        level: Root logger level
        log_file: Also append plain-text records here (parent directories
            are created)
        debug_third_party: Let httpx and SQLAlchemy log their traffic
    """
    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
        )
    ]
    if log_file:
        handlers.append(_file_handler(log_file))

    # force: replace handlers a library may have installed before the CLI ran
    logging.basicConfig(level=level, handlers=handlers, format="%(message)s", force=True)
    quiet_third_party(debug_third_party)
