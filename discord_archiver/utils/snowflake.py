# discord_archiver/utils/snowflake.py
from __future__ import annotations

from datetime import datetime, timezone

DISCORD_EPOCH = 1420070400000  # 2015-01-01 UTC (ms)


def snowflake_to_datetime(snowflake: str | int) -> datetime:
    ms = (int(snowflake) >> 22) + DISCORD_EPOCH
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def snowflake_date(snowflake: str | int | None) -> str | None:
    """Creation date of a snowflake as YYYY-MM-DD, or None if not numeric."""
    if snowflake is None:
        return None
    try:
        return snowflake_to_datetime(snowflake).strftime("%Y-%m-%d")
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def snowflake_key(snowflake: str) -> tuple[int, str]:
    """Sort key giving numeric order for string IDs without parsing them."""
    return (len(snowflake), snowflake)
