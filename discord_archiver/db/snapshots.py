"""Versioned snapshot formats for guild and channel metadata.

Guild and channel rows keep a JSON snapshot of the metadata the API returned
at archive time. The snapshot is an explicit, versioned structure rather than
the raw API payload, so readers (the static page renderer, the query helpers)
can rely on its shape.

Version history:
    1: initial format
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from discord_archiver.errors import SnapshotVersionError

SNAPSHOT_VERSION = 1


class _Snapshot(BaseModel):
    """Common behaviour for versioned snapshots."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    version: int = SNAPSHOT_VERSION

    @field_validator("version")
    @classmethod
    def check_version(cls, v: int) -> int:
        if v > SNAPSHOT_VERSION:
            raise SnapshotVersionError(cls.__name__, v, SNAPSHOT_VERSION)
        return v

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "_Snapshot":
        """Build a snapshot from a raw API object, dropping unknown fields."""
        payload = {k: v for k, v in data.items() if k != "version"}
        return cls.model_validate(payload)

    @classmethod
    def load(cls, data: dict[str, Any]) -> "_Snapshot":
        """Load a snapshot previously written with `dump()`."""
        return cls.model_validate(data)

    def dump(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class GuildSnapshot(_Snapshot):
    """Guild metadata as archived."""

    id: str
    name: str
    icon: str | None = None
    description: str | None = None
    owner_id: str | None = None
    preferred_locale: str | None = None
    features: list[str] = []
    approximate_member_count: int | None = None


class ChannelSnapshot(_Snapshot):
    """Channel metadata as archived."""

    id: str
    type: int
    guild_id: str | None = None
    name: str | None = None
    topic: str | None = None
    position: int | None = None
    parent_id: str | None = None
    nsfw: bool = False
    last_message_id: str | None = None
