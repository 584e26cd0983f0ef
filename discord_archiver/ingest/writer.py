"""Serialized access to the run's database session.

An AsyncSession must not be used by two tasks at once. The page walk and
every background download write through one TransactionWriter, which runs
repository calls one at a time against the shared session.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

R = TypeVar("R")


class TransactionWriter:
    """Single-writer handle on the transaction's session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self._lock = asyncio.Lock()

    async def run(
        self,
        op: Callable[..., Awaitable[R]],
        *args: Any,
        **kwargs: Any,
    ) -> R:
        """Await `op(session, *args, **kwargs)` while holding the writer lock."""
        async with self._lock:
            return await op(self.session, *args, **kwargs)
