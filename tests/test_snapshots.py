"""Tests for discord_archiver.db.snapshots."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from discord_archiver.db.snapshots import SNAPSHOT_VERSION, ChannelSnapshot, GuildSnapshot
from discord_archiver.errors import SnapshotVersionError


def test_from_api_drops_unknown_fields() -> None:
    snapshot = GuildSnapshot.from_api(
        {"id": "1", "name": "G", "splash": "x", "roles": [], "features": ["NEWS"]}
    )

    dumped = snapshot.dump()

    assert dumped["version"] == SNAPSHOT_VERSION
    assert dumped["features"] == ["NEWS"]
    assert "splash" not in dumped
    assert "roles" not in dumped


def test_from_api_ignores_payload_version() -> None:
    snapshot = ChannelSnapshot.from_api({"id": "2", "type": 0, "version": 99})

    assert snapshot.version == SNAPSHOT_VERSION


def test_load_round_trips_dump() -> None:
    snapshot = ChannelSnapshot.from_api(
        {"id": "2", "type": 0, "guild_id": "1", "name": "general", "nsfw": True}
    )

    assert ChannelSnapshot.load(snapshot.dump()) == snapshot


def test_newer_version_fails_to_load() -> None:
    with pytest.raises(SnapshotVersionError) as exc_info:
        GuildSnapshot.load({"version": SNAPSHOT_VERSION + 1, "id": "1", "name": "G"})

    assert exc_info.value.found == SNAPSHOT_VERSION + 1


def test_missing_required_field_is_validation_error() -> None:
    with pytest.raises(ValidationError):
        ChannelSnapshot.load({"version": 1, "id": "2"})
