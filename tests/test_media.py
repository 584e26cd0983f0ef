"""Tests for discord_archiver.ingest.media."""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import MagicMock, patch

import httpx
import pytest

from discord_archiver.db.models import AvatarFile
from discord_archiver.db.repositories import get_message_files, insert_file
from discord_archiver.ingest.media import MediaFetcher
from discord_archiver.ingest.writer import TransactionWriter

from conftest import make_message

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
GZIP = b"\x1f\x8b\x08" + b"\x00" * 64


class Server:
    """MockTransport handler that tracks concurrent requests."""

    def __init__(self, body: bytes = PNG, delay: float = 0.01) -> None:
        self.body = body
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_paths: set[str] = set()
        self.bodies: dict[str, bytes] = {}
        self.gate: asyncio.Event | None = None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            await asyncio.sleep(self.delay)
            if request.url.path in self.fail_paths:
                return httpx.Response(500)
            return httpx.Response(200, content=self.bodies.get(request.url.path, self.body))
        finally:
            self.in_flight -= 1


def _fetcher(db_session, tmp_path, server: Server, concurrency: int = 3) -> MediaFetcher:
    return MediaFetcher(
        TransactionWriter(db_session),
        tmp_path / "archive",
        concurrency=concurrency,
        logger=MagicMock(),
        transport=httpx.MockTransport(server),
    )


def _with_attachments(message_id: int, count: int) -> dict:
    return make_message(
        message_id,
        attachments=[
            {"url": f"https://cdn.example/{message_id}/{i}.png", "filename": f"f{i}.png"}
            for i in range(count)
        ],
    )


def _leftover_parts(root) -> list:
    return list(root.rglob("*.part"))


# ---------------------------------------------------------------------------
# TestPermits
# ---------------------------------------------------------------------------


class TestPermits:
    """Tests for the download permit pool."""

    @pytest.mark.asyncio
    async def test_never_exceeds_permits(self, db_session, tmp_path):
        server = Server()

        async with _fetcher(db_session, tmp_path, server, concurrency=3) as media:
            await media.fetch_attachments("200", _with_attachments(1, 10))
            await media.drain()

        assert server.max_in_flight <= 3
        assert media.saved == 10
        assert len(await get_message_files(db_session, "200", "1")) == 10

    @pytest.mark.asyncio
    async def test_failure_releases_permit(self, db_session, tmp_path):
        server = Server()
        server.fail_paths = {"/1/0.png"}

        async with _fetcher(db_session, tmp_path, server, concurrency=1) as media:
            await media.fetch_attachments("200", _with_attachments(1, 4))
            await media.drain()

        assert media.failed == 1
        assert media.saved == 3
        assert media.pending == 0
        assert _leftover_parts(tmp_path) == []

    @pytest.mark.asyncio
    async def test_cancel_cleans_up(self, db_session, tmp_path):
        server = Server()
        server.gate = asyncio.Event()

        async with _fetcher(db_session, tmp_path, server, concurrency=2) as media:
            await media.fetch_attachments("200", _with_attachments(1, 2))
            await asyncio.sleep(0.01)
            await media.cancel()

        assert media.pending == 0
        assert media.saved == 0
        assert _leftover_parts(tmp_path) == []
        assert await get_message_files(db_session, "200", "1") == []

    def test_rejects_empty_pool(self, tmp_path):
        with pytest.raises(ValueError):
            MediaFetcher(MagicMock(), tmp_path, concurrency=0)


# ---------------------------------------------------------------------------
# TestPaths
# ---------------------------------------------------------------------------


class TestPaths:
    """Tests for destination paths and recorded rows."""

    @pytest.mark.asyncio
    async def test_attachment_keeps_basename(self, db_session, tmp_path):
        message = make_message(
            7,
            attachments=[{"url": "https://cdn.example/a", "filename": "../../evil.txt"}],
        )

        async with _fetcher(db_session, tmp_path, Server()) as media:
            await media.fetch_attachments("200", message)

        assert await get_message_files(db_session, "200", "7") == [
            "attachments/200/7-0-evil.txt"
        ]
        assert (tmp_path / "archive/attachments/200/7-0-evil.txt").read_bytes() == PNG

    @pytest.mark.asyncio
    async def test_embed_image_and_thumbnail_are_sniffed(self, db_session, tmp_path):
        message = make_message(
            8,
            embeds=[
                {
                    "image": {"url": "https://cdn.example/img"},
                    "thumbnail": {"url": "https://cdn.example/thumb"},
                }
            ],
        )

        async with _fetcher(db_session, tmp_path, Server()) as media:
            queued = await media.fetch_embeds("200", message)

        assert queued == 2
        assert await get_message_files(db_session, "200", "8") == [
            "embeds/200/8-0-thumb.png",
            "embeds/200/8-0.png",
        ]

    @pytest.mark.asyncio
    async def test_overlong_extension_is_dropped(self, db_session, tmp_path):
        message = make_message(9, embeds=[{"image": {"url": "https://cdn.example/gz"}}])

        async with _fetcher(db_session, tmp_path, Server(body=GZIP)) as media:
            await media.fetch_embeds("200", message)

        assert media.dropped == 1
        assert media.saved == 0
        assert await get_message_files(db_session, "200", "9") == []
        assert list((tmp_path / "archive/embeds/200").iterdir()) == []

    @pytest.mark.asyncio
    async def test_text_with_parameters_is_dropped(self, db_session, tmp_path):
        message = make_message(9, embeds=[{"image": {"url": "https://cdn.example/t"}}])

        async with _fetcher(db_session, tmp_path, Server(body=b"hello")) as media:
            await media.fetch_embeds("200", message)

        assert media.dropped == 1
        assert await get_message_files(db_session, "200", "9") == []

    @pytest.mark.asyncio
    async def test_avatar_is_recorded(self, db_session, tmp_path):
        async with _fetcher(db_session, tmp_path, Server()) as media:
            await media.fetch_avatar("5", "https://cdn.example/avatars/5/h.png")

        row = await db_session.get(AvatarFile, "5")
        assert row.path == "avatars/5.png"
        assert (tmp_path / "archive/avatars/5.png").exists()

    @pytest.mark.asyncio
    async def test_existing_row_abandons_download(self, db_session, tmp_path):
        await insert_file(db_session, "200", "1", "attachments/200/1-0-f0.png")

        async with _fetcher(db_session, tmp_path, Server()) as media:
            await media.fetch_attachments("200", _with_attachments(1, 1))

        assert media.failed == 1
        assert not (tmp_path / "archive/attachments/200/1-0-f0.png").exists()
        assert _leftover_parts(tmp_path) == []


# ---------------------------------------------------------------------------
# TestDiskWrites
# ---------------------------------------------------------------------------


class TestDiskWrites:
    """Tests for how downloads reach the disk."""

    @pytest.mark.asyncio
    async def test_large_body_written_and_synced_off_loop(self, db_session, tmp_path):
        body = PNG + bytes(range(256)) * 1024
        synced_on: list[threading.Thread] = []

        def record_fsync(fd: int) -> None:
            synced_on.append(threading.current_thread())

        with patch("discord_archiver.ingest.media.os.fsync", side_effect=record_fsync):
            async with _fetcher(db_session, tmp_path, Server(body=body)) as media:
                await media.fetch_attachments("200", _with_attachments(1, 1))

        assert (tmp_path / "archive/attachments/200/1-0-f0.png").read_bytes() == body
        assert len(synced_on) == 1
        assert synced_on[0] is not threading.main_thread()
