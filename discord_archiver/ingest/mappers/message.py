"""Message API JSON to ORM mapper."""

from __future__ import annotations

from typing import Any

from discord_archiver.db.models import Message


def _sanitize_null_bytes(value: Any) -> Any:
    """Remove NULL bytes (0x00) from strings, which PostgreSQL doesn't accept.

    For dict/list types, recursively sanitize all string values.
    """
    if isinstance(value, str):
        return value.replace("\x00", "")
    elif isinstance(value, dict):
        return {k: _sanitize_null_bytes(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_sanitize_null_bytes(item) for item in value]
    return value


def map_message(
    data: dict[str, Any],
    channel_id: str | None = None,
    nickname: str | None = None,
) -> Message:
    """Convert Discord API message JSON to Message ORM instance.

    Args:
        data: Raw message object from Discord API
        channel_id: Channel ID to use if not in the payload
        nickname: Resolved guild nickname of the author, None if unknown

    Returns:
        Message ORM instance (not yet added to session)
    """
    data = _sanitize_null_bytes(data)
    author = data.get("author") or {}

    return Message(
        channel_id=str(data.get("channel_id") or channel_id),
        message_id=str(data["id"]),
        author_id=str(author.get("id", "")),
        username=author.get("username"),
        nickname=nickname,
        content=data.get("content") or "",
        embeds=data.get("embeds") or [],
        attachments=data.get("attachments") or [],
    )
