"""Base orchestrator for pipeline execution.

Provides common infrastructure for all pipeline orchestrators:
- Database engine and session management
- Transaction scope: commit on success, rollback on error or cancellation
- Timing and the summary hook
- Common run() interface with guild/channel selection

Usage:
    class MyOrchestrator(BaseOrchestrator):
        async def _run_pipeline(self, guild_id, channel_id):
            async with self.transaction() as session:
                ...

        def _log_summary(self, elapsed):
            ...
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

from discord_archiver.db.engine import get_async_session, get_engine
from discord_archiver.db.schema import create_core_tables

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


class BaseOrchestrator(ABC):
    """Abstract base class for pipeline orchestrators.

    Subclasses must implement:
    - _run_pipeline(): The actual pipeline logic
    - _log_summary(): Log final statistics
    """

    def __init__(self, database_url: str) -> None:
        """Initialize the orchestrator.

        Args:
            database_url: Database connection URL.
        """
        self.database_url = database_url
        self.engine: AsyncEngine = get_engine(database_url)
        self.async_session: async_sessionmaker[AsyncSession] = get_async_session(
            database_url
        )
        self.start_time: float = 0.0

    async def init_db(self) -> None:
        """Create the always-present tables if they don't exist.

        Feature tables (files, avatars, members) are created on first use
        inside the run's transaction.
        """
        async with self.engine.begin() as conn:
            await create_core_tables(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session whose work is committed only if the block succeeds.

        Any exception, including task cancellation, rolls everything back.
        """
        async with self.async_session() as session:
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            await session.commit()

    async def run(
        self,
        guild_id: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        """Run the pipeline, then print the summary.

        Args:
            guild_id: If provided, only process this guild.
            channel_id: If provided, only process this channel.
        """
        self.start_time = time.time()

        await self.init_db()
        await self._run_pipeline(guild_id=guild_id, channel_id=channel_id)

        self._log_summary(time.time() - self.start_time)

    @abstractmethod
    async def _run_pipeline(
        self,
        guild_id: str | None = None,
        channel_id: str | None = None,
    ) -> None:
        """Execute the pipeline logic."""
        ...

    @abstractmethod
    def _log_summary(self, elapsed: float) -> None:
        """Log the final summary statistics.

        Args:
            elapsed: Total time elapsed in seconds.
        """
        ...
