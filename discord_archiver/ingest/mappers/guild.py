"""Guild API JSON to ORM mapper."""

from __future__ import annotations

from typing import Any

from discord_archiver.db.models import Guild
from discord_archiver.db.snapshots import GuildSnapshot


def map_guild(data: dict[str, Any]) -> Guild:
    """Convert Discord API guild JSON to Guild ORM instance.

    Only the fields of GuildSnapshot are kept; the rest of the payload is
    dropped.

    Args:
        data: Raw guild object from Discord API

    Returns:
        Guild ORM instance (not yet added to session)
    """
    snapshot = GuildSnapshot.from_api(data)
    return Guild(
        guild_id=snapshot.id,
        name=snapshot.name,
        snapshot=snapshot.dump(),
    )
