"""Configuration management using pydantic-settings.

Provides validated configuration with support for:
- JSON config file (config.json)
- Type coercion and validation
- Per-run archive options (media saving, limit, skip, resume cursor)
"""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DuplicatePolicy(str, Enum):
    """What to do when a message is already archived."""

    FAIL = "fail"
    SKIP = "skip"


class ArchiveOptions(BaseModel):
    """Options for a single archive invocation."""

    # Download message attachments (ArchiveChannel, ArchiveGuild).
    save_attachments: bool = False

    # Download embed images and thumbnails (ArchiveChannel, ArchiveGuild).
    save_embed_images: bool = False

    # Download user avatars (ArchiveMembers).
    save_avatars: bool = False

    # Avatar size as a power of two. Empty means the CDN default.
    avatar_size: str = ""

    # Maximum items archived per channel / member list. 0 = unbounded.
    # In ArchiveGuild the limit applies to every channel.
    limit: int = Field(default=0, ge=0)

    # Leading items to bypass before archiving. Takes precedence over last_id.
    skip: int = Field(default=0, ge=0)

    # Explicit resume cursor: archive items before (messages) or after
    # (members) this ID.
    last_id: str = ""

    on_duplicate: DuplicatePolicy = DuplicatePolicy.FAIL

    @field_validator("avatar_size", mode="before")
    @classmethod
    def validate_avatar_size(cls, v: Any) -> str:
        """Accept an empty value or a power of two between 16 and 4096."""
        if v is None or v == "":
            return ""
        size = int(v)
        if size < 16 or size > 4096 or size & (size - 1):
            raise ValueError("avatar_size must be a power of two between 16 and 4096")
        return str(size)

    @field_validator("last_id", mode="before")
    @classmethod
    def ensure_string_id(cls, v: Any) -> str:
        """Snowflake IDs are kept as strings."""
        return "" if v is None else str(v)


class AccountConfig(BaseModel):
    """Configuration for a single Discord account."""

    name: str
    token: str
    user_agent: str
    guilds: list[str] = []
    channels: list[str] = []

    @field_validator("guilds", "channels", mode="before")
    @classmethod
    def ensure_string_list(cls, v: Any) -> list[str]:
        """Ensure IDs are strings (for snowflake IDs)."""
        if isinstance(v, list):
            return [str(g) for g in v]
        return v


class AppSettings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from a JSON config file (config.json).
    """

    database_url: str = "sqlite+aiosqlite:///archive/archive.db"

    # Root folder for downloaded attachments, embeds and avatars.
    save_path: Path = Path("archive")

    # Size of the run-wide download permit pool.
    download_concurrency: int = Field(default=3, ge=1)

    # Per-request network timeout for media downloads, in seconds.
    download_timeout: float = Field(default=15.0, gt=0)

    # Archive guild members after the guild's channels.
    archive_members: bool = False

    accounts: list[AccountConfig] = []
    options: ArchiveOptions = ArchiveOptions()

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    @classmethod
    def from_json(cls, path: str | Path = "config.json") -> "AppSettings":
        """Load settings from a JSON config file.

        Args:
            path: Path to the JSON config file

        Returns:
            AppSettings instance with validated configuration
        """
        config_path = Path(path)
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(**data)
        return cls()


@lru_cache
def get_settings(config_path: str = "config.json") -> AppSettings:
    """Get cached application settings.

    Args:
        config_path: Path to JSON config file (default: config.json)

    Returns:
        Cached AppSettings instance
    """
    return AppSettings.from_json(config_path)


def load_config(path: str | Path = "config.json") -> AppSettings:
    """Load configuration from file, bypassing the settings cache."""
    get_settings.cache_clear()
    return AppSettings.from_json(path)
