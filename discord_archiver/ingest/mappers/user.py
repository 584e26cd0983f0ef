"""User and member API JSON to ORM mappers."""

from __future__ import annotations

from typing import Any

from discord_archiver.db.models import Member, User

CDN_URL = "https://cdn.discordapp.com"


def avatar_url(user: dict[str, Any], size: str = "") -> str:
    """CDN URL of a user's avatar, or of the default avatar if unset.

    Animated avatars (hash prefixed "a_") are served as GIF. `size` is
    appended as a query parameter when given.
    """
    avatar = user.get("avatar")
    if avatar:
        ext = "gif" if avatar.startswith("a_") else "png"
        url = f"{CDN_URL}/avatars/{user['id']}/{avatar}.{ext}"
    else:
        try:
            index = int(user.get("discriminator") or 0) % 5
        except ValueError:
            index = 0
        url = f"{CDN_URL}/embed/avatars/{index}.png"
    if size:
        url += f"?size={size}"
    return url


def map_user(data: dict[str, Any]) -> User:
    """Convert Discord API user JSON to User ORM instance.

    The stored avatar is the full CDN URL at the default size.
    """
    return User(
        user_id=str(data["id"]),
        username=data.get("username"),
        avatar=avatar_url(data),
        discriminator=data.get("discriminator"),
        verified=bool(data.get("verified", False)),
    )


def map_member(data: dict[str, Any], guild_id: str) -> Member:
    """Convert Discord API guild member JSON to Member ORM instance."""
    user = data["user"]
    return Member(
        guild_id=guild_id,
        user_id=str(user["id"]),
        username=user.get("username"),
        nickname=data.get("nick") or "",
        roles=[str(r) for r in data.get("roles") or []],
    )
