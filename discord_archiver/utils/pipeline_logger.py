"""Base pipeline logger with shared components.

Provides reusable building blocks for pipeline-specific loggers:
- StructuredBlock: Context manager for key-value style output
- BasePipelineLogger: Abstract base with common logging methods

Every console write goes through the shared console from utils.logging, so
inline progress lines and RichHandler output never interleave badly.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from discord_archiver.utils.logging import console

if TYPE_CHECKING:
    from typing import Self


class StructuredBlock:
    """A context manager for displaying structured key-value info blocks.

    Usage:
        with logger.block("#general") as block:
            block.field("channel ID", "123456789")
            block.field("resume", "skip 10", color="magenta")
            # ... archive ...
            block.result("archived 1,234 messages", success=True)

    Output:
        #general
            channel ID: 123456789
            resume: skip 10
            ✓ archived 1,234 messages
    """

    def __init__(self, title: str, parent: "BasePipelineLogger") -> None:
        self.title = title
        self.console = parent.console
        self._parent = parent

    def __enter__(self) -> "Self":
        self._parent._clear_progress_line()
        self.console.print(f"\n[bold]{self.title}[/bold]")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self._parent._clear_progress_line()
        if exc_type is not None and issubclass(exc_type, Exception):
            self.console.print(f"    [red]✗[/red] {exc_type.__name__}: {exc_val}")

    def field(self, key: str, value: Any, color: str | None = None) -> None:
        """Add a key-value field to the block."""
        if color:
            self.console.print(f"    [dim]{key}:[/dim] [{color}]{value}[/{color}]")
        else:
            self.console.print(f"    [dim]{key}:[/dim] {value}")

    def result(self, message: str, success: bool = True) -> None:
        """Show the final result of the block."""
        self._parent._clear_progress_line()
        icon = "[green]✓[/green]" if success else "[yellow]●[/yellow]"
        self.console.print(f"    {icon} {message}")

    def empty(self) -> None:
        """Show that this block had no content to process."""
        self._parent._clear_progress_line()
        self.console.print("    [dim]Nothing to archive[/dim]")


class BasePipelineLogger(ABC):
    """Abstract base class for pipeline loggers.

    Provides the shared console, in-place progress line handling, the
    standard logging methods and a summary panel. Subclasses add the
    pipeline-specific events and implement summary().
    """

    def __init__(self, logger_name: str | None = None) -> None:
        """Initialize the pipeline logger.

        Args:
            logger_name: Name for the Python logger. If None, uses the
                subclass module.
        """
        self.console: Console = console
        self._has_progress_line = False
        self._logger = logging.getLogger(logger_name or self.__class__.__module__)

    # -------------------------------------------------------------------------
    # Progress Line Management
    # -------------------------------------------------------------------------

    def _clear_progress_line(self) -> None:
        """Clear the in-place progress line if present."""
        if self._has_progress_line:
            print("\033[2K", end="\r")
            self._has_progress_line = False

    def _progress_line(self, text: str) -> None:
        print("\033[2K", end="")
        self.console.print(f"    [dim]{text}[/dim]", end="\r")
        self._has_progress_line = True

    # -------------------------------------------------------------------------
    # Structured Block Context Manager
    # -------------------------------------------------------------------------

    @contextmanager
    def block(self, title: str) -> Generator[StructuredBlock, None, None]:
        """Create a structured block for key-value style output.

        Args:
            title: The title/header of the block

        Yields:
            StructuredBlock for adding fields and results
        """
        block = StructuredBlock(title, self)
        with block:
            yield block

    # -------------------------------------------------------------------------
    # Standard Logging (goes through Python logging)
    # -------------------------------------------------------------------------

    def info(self, message: str) -> None:
        """Log an info message."""
        self._clear_progress_line()
        self._logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self._clear_progress_line()
        self._logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self._clear_progress_line()
        self._logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self._logger.debug(message)

    def success(self, message: str) -> None:
        """Log a success message with green checkmark."""
        self._clear_progress_line()
        self.console.print(f"[green]✓[/green] {message}")

    # -------------------------------------------------------------------------
    # Common Rich Output Methods
    # -------------------------------------------------------------------------

    def batch_progress(
        self,
        count: int,
        total: int | None = None,
        *,
        oldest: str | None = None,
        newest: str | None = None,
        prefix: str = "Archived",
        unit: str = "messages",
    ) -> None:
        """Log paging progress as an inline, overwritten line.

        Args:
            count: Number of items handled so far
            total: Upper bound on the number of items (optional)
            oldest: Oldest point reached, as a date or ID (optional)
            newest: Newest point reached, as a date or ID (optional)
            prefix: Action prefix (e.g., "Archived", "Fetched")
            unit: Unit name
        """
        span = ""
        if oldest and newest:
            span = f" [{oldest} → {newest}]"
        elif oldest:
            span = f" [→ {oldest}]"
        elif newest:
            span = f" [{newest} →]"

        total_str = f"/{total:,}" if total else ""
        self._progress_line(f"{prefix} {count:,}{total_str} {unit}{span}")

    # -------------------------------------------------------------------------
    # Summary Panel
    # -------------------------------------------------------------------------

    def print_summary(
        self,
        pipeline_name: str,
        *,
        elapsed: float,
        stats: dict[str, int | str],
        style: str = "cyan",
    ) -> None:
        """Print a summary panel of (label, value) rows plus elapsed time."""
        self._clear_progress_line()
        self.console.print()

        table = Table.grid(padding=(0, 2))
        table.add_column("Metric", style="bold")
        table.add_column("Value", justify="right", style="green")

        for label, value in stats.items():
            table.add_row(label, f"{value:,}" if isinstance(value, int) else str(value))
        table.add_row("Time elapsed", f"{elapsed:.1f}s")

        self.console.print(
            Panel(
                table,
                title=f"[bold]{pipeline_name} Complete[/bold]",
                border_style=style,
                padding=(1, 2),
            )
        )

    @abstractmethod
    def summary(self, **kwargs: Any) -> None:
        """Print final summary. Implementation varies by pipeline."""
        ...
