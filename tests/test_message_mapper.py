"""Tests for discord_archiver.ingest.mappers.message module."""

from __future__ import annotations

import pytest

from discord_archiver.ingest.mappers.message import _sanitize_null_bytes, map_message


class TestSanitizeNullBytes:
    """Tests for _sanitize_null_bytes function."""

    def test_removes_null_bytes_from_string(self) -> None:
        """Should remove NULL bytes from strings."""
        assert _sanitize_null_bytes("hello\x00world") == "helloworld"
        assert _sanitize_null_bytes("\x00test\x00") == "test"

    def test_handles_clean_string(self) -> None:
        """Should pass through clean strings unchanged."""
        assert _sanitize_null_bytes("hello world") == "hello world"

    def test_recursively_sanitizes_dict(self) -> None:
        """Should recursively sanitize dict values."""
        data = {"key": "value\x00", "nested": {"inner": "\x00test"}}
        result = _sanitize_null_bytes(data)
        assert result == {"key": "value", "nested": {"inner": "test"}}

    def test_recursively_sanitizes_list(self) -> None:
        """Should recursively sanitize list items."""
        data = ["a\x00b", {"key": "\x00value"}]
        result = _sanitize_null_bytes(data)
        assert result == ["ab", {"key": "value"}]

    def test_passes_through_non_string_types(self) -> None:
        """Should pass through integers, None, booleans unchanged."""
        assert _sanitize_null_bytes(123) == 123
        assert _sanitize_null_bytes(None) is None
        assert _sanitize_null_bytes(True) is True


class TestMapMessage:
    """Tests for map_message function."""

    @pytest.fixture
    def minimal_message_data(self) -> dict:
        """Minimal valid message data from Discord API."""
        return {
            "id": "123456789",
            "channel_id": "987654321",
            "author": {"id": "111222333", "username": "alice"},
            "content": "Hello, world!",
            "timestamp": "2024-01-15T10:30:00.000000+00:00",
            "type": 0,
        }

    def test_maps_basic_fields(self, minimal_message_data: dict) -> None:
        """Should correctly map basic message fields, keeping IDs as strings."""
        result = map_message(minimal_message_data)

        assert result.message_id == "123456789"
        assert result.channel_id == "987654321"
        assert result.author_id == "111222333"
        assert result.username == "alice"
        assert result.content == "Hello, world!"
        assert result.nickname is None

    def test_uses_provided_channel_id(self, minimal_message_data: dict) -> None:
        """Should use provided channel_id when not in payload."""
        del minimal_message_data["channel_id"]

        result = map_message(minimal_message_data, channel_id="555")

        assert result.channel_id == "555"

    def test_prefers_payload_channel_id(self, minimal_message_data: dict) -> None:
        result = map_message(minimal_message_data, channel_id="555")

        assert result.channel_id == "987654321"

    def test_keeps_nickname(self, minimal_message_data: dict) -> None:
        assert map_message(minimal_message_data, nickname="Al").nickname == "Al"
        assert map_message(minimal_message_data, nickname="").nickname == ""

    def test_defaults_for_missing_content(self, minimal_message_data: dict) -> None:
        """Should default content to "" and embeds/attachments to []."""
        minimal_message_data["content"] = None

        result = map_message(minimal_message_data)

        assert result.content == ""
        assert result.embeds == []
        assert result.attachments == []

    def test_keeps_embeds_and_attachments(self, minimal_message_data: dict) -> None:
        minimal_message_data["embeds"] = [{"image": {"url": "https://x/\x00a.png"}}]
        minimal_message_data["attachments"] = [{"id": "1", "filename": "a.txt"}]

        result = map_message(minimal_message_data)

        assert result.embeds == [{"image": {"url": "https://x/a.png"}}]
        assert result.attachments == [{"id": "1", "filename": "a.txt"}]
