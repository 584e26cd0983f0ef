"""Background download of attachments, embed images and avatars.

Downloads share one run-wide permit pool. Submitting a job waits for a
permit, so a walk that produces media faster than it can be fetched slows
down instead of queueing unbounded work. The permit is released when the job
ends, whatever the outcome.

Each download is streamed into a temporary file next to its destination and
fsynced. The database row is written through the TransactionWriter, and only
then is the file renamed into place:

    temp file + fsync -> row -> os.replace

If the row cannot be written the temporary file is removed; if the rename
fails the row is deleted again. Network, filesystem and not-unique errors
abandon that one download and are logged; they never reach the walk.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Any, Awaitable, Callable

import httpx

from discord_archiver.db.repositories import (
    delete_avatar_file,
    delete_file,
    insert_file,
    upsert_avatar_file,
)
from discord_archiver.errors import ArchiveError, UnsupportedMediaError
from discord_archiver.ingest.logger import ArchiveLogger
from discord_archiver.ingest.logger import logger as default_logger
from discord_archiver.ingest.writer import TransactionWriter
from discord_archiver.utils.sniff import SNIFF_LEN, detect_content_type, extension_for

DEFAULT_CONCURRENCY = 3
DEFAULT_TIMEOUT = 15.0
CHUNK_SIZE = 64 * 1024

Job = Callable[[], Awaitable[None]]


def _flush_and_sync(f: Any) -> None:
    f.flush()
    os.fsync(f.fileno())


class MediaFetcher:
    """Bounded-concurrency media downloader for one archive run.

    Usage:
        async with MediaFetcher(writer, save_path) as media:
            await media.fetch_attachments(channel_id, message)
            ...
            await media.drain()
    """

    def __init__(
        self,
        writer: TransactionWriter,
        save_path: str | Path,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
        logger: ArchiveLogger = default_logger,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._writer = writer
        self.save_path = Path(save_path)
        self.concurrency = concurrency
        self._timeout = timeout
        self._logger = logger
        self._transport = transport
        self._permits = asyncio.Semaphore(concurrency)
        self._tasks: set[asyncio.Task[None]] = set()
        self._client: httpx.AsyncClient | None = None

        self.saved = 0
        self.failed = 0
        self.dropped = 0

    async def __aenter__(self) -> "MediaFetcher":
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type: Any, *args: Any) -> None:
        if exc_type is not None:
            await self.cancel()
        else:
            await self.drain()
        if self._client:
            await self._client.aclose()
            self._client = None

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def submit(self, job: Job, url: str = "") -> None:
        """Wait for a permit, then run the job as a background task.

        The permit is returned when the task is done, including when it is
        cancelled before it ever ran.
        """
        await self._permits.acquire()
        try:
            task = asyncio.create_task(self._run(job, url))
        except BaseException:
            self._permits.release()
            raise
        self._tasks.add(task)
        task.add_done_callback(self._finished)

    def _finished(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        self._permits.release()

    async def _run(self, job: Job, url: str) -> None:
        try:
            await job()
        except UnsupportedMediaError as e:
            self.dropped += 1
            self._logger.debug(str(e))
        except (httpx.HTTPError, OSError, ArchiveError) as e:
            self.failed += 1
            self._logger.media_error(url, e)

    async def drain(self) -> None:
        """Wait until every submitted download has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def cancel(self) -> None:
        """Cancel outstanding downloads and wait for their cleanup."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Job producers
    # -------------------------------------------------------------------------

    async def fetch_attachments(self, channel_id: str, message: dict[str, Any]) -> int:
        """Queue downloads for every attachment of a message."""
        message_id = str(message["id"])
        count = 0
        for index, attachment in enumerate(message.get("attachments") or []):
            url = attachment.get("url")
            if not url:
                continue
            filename = Path(attachment.get("filename") or "").name or "file"
            relpath = PurePosixPath(
                "attachments", channel_id, f"{message_id}-{index}-{filename}"
            )
            await self.submit(
                partial(self._save_message_file, url, relpath, channel_id, message_id),
                url,
            )
            count += 1
        return count

    async def fetch_embeds(self, channel_id: str, message: dict[str, Any]) -> int:
        """Queue downloads for embed images and thumbnails of a message."""
        message_id = str(message["id"])
        count = 0
        for index, embed in enumerate(message.get("embeds") or []):
            for field, suffix in (("image", ""), ("thumbnail", "-thumb")):
                url = (embed.get(field) or {}).get("url")
                if not url:
                    continue
                stem = PurePosixPath("embeds", channel_id, f"{message_id}-{index}{suffix}")
                await self.submit(
                    partial(self._save_embed, url, stem, channel_id, message_id), url
                )
                count += 1
        return count

    async def fetch_avatar(self, user_id: str, url: str) -> None:
        """Queue a download of a user's avatar."""
        await self.submit(partial(self._save_avatar, url, user_id), url)

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    async def _save_message_file(
        self, url: str, relpath: PurePosixPath, channel_id: str, message_id: str
    ) -> None:
        tmp, _ = await self._download(url, relpath.parent)
        await self._commit(
            tmp,
            relpath,
            record=partial(
                insert_file,
                channel_id=channel_id,
                message_id=message_id,
                path=str(relpath),
            ),
            undo=partial(delete_file, path=str(relpath)),
        )

    async def _save_embed(
        self, url: str, stem: PurePosixPath, channel_id: str, message_id: str
    ) -> None:
        tmp, head = await self._download(url, stem.parent)
        relpath = self._sniffed_path(url, tmp, head, stem)
        await self._commit(
            tmp,
            relpath,
            record=partial(
                insert_file,
                channel_id=channel_id,
                message_id=message_id,
                path=str(relpath),
            ),
            undo=partial(delete_file, path=str(relpath)),
        )

    async def _save_avatar(self, url: str, user_id: str) -> None:
        stem = PurePosixPath("avatars", user_id)
        tmp, head = await self._download(url, stem.parent)
        relpath = self._sniffed_path(url, tmp, head, stem)
        await self._commit(
            tmp,
            relpath,
            record=partial(upsert_avatar_file, user_id=user_id, path=str(relpath)),
            undo=partial(delete_avatar_file, user_id=user_id),
        )

    # -------------------------------------------------------------------------
    # File handling
    # -------------------------------------------------------------------------

    def _sniffed_path(
        self, url: str, tmp: Path, head: bytes, stem: PurePosixPath
    ) -> PurePosixPath:
        content_type = detect_content_type(head)
        ext = extension_for(content_type)
        if ext is None:
            tmp.unlink(missing_ok=True)
            raise UnsupportedMediaError(url, content_type)
        return stem.with_name(f"{stem.name}.{ext}")

    async def _download(self, url: str, reldir: PurePosixPath) -> tuple[Path, bytes]:
        """Stream a URL into a fsynced temporary file inside reldir.

        Disk writes and the fsync run in worker threads so a slow disk
        does not stall the event loop.

        Returns the temporary path and the first SNIFF_LEN bytes.
        """
        if not self._client:
            raise RuntimeError("MediaFetcher not initialized. Use async with.")

        directory = self.save_path / reldir
        directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(dir=directory, prefix=".", suffix=".part")
        tmp = Path(name)
        head = b""
        try:
            with os.fdopen(fd, "wb") as f:
                async with self._client.stream("GET", url) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        if len(head) < SNIFF_LEN:
                            head += chunk[: SNIFF_LEN - len(head)]
                        await asyncio.to_thread(f.write, chunk)
                await asyncio.to_thread(_flush_and_sync, f)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        return tmp, head

    async def _commit(
        self,
        tmp: Path,
        relpath: PurePosixPath,
        *,
        record: Callable[..., Awaitable[None]],
        undo: Callable[..., Awaitable[None]],
    ) -> None:
        try:
            await self._writer.run(record)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        try:
            os.replace(tmp, self.save_path / relpath)
        except OSError:
            tmp.unlink(missing_ok=True)
            await self._writer.run(undo)
            raise

        self.saved += 1
        self._logger.media_saved(str(relpath))
