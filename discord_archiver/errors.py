"""Archive error taxonomy.

Transport failures are reported by the API client (`DiscordAPIError`,
`httpx.TransportError`). Everything the archive pipeline itself raises
derives from `ArchiveError`.
"""

from __future__ import annotations


class ArchiveError(Exception):
    """Base class for archive pipeline errors."""


class NotUniqueError(ArchiveError):
    """Raised when an insert collides with an existing unique key."""

    def __init__(self, table: str, key: tuple[str, ...]) -> None:
        self.table = table
        self.key = key
        super().__init__(f"{table}: value {key!r} does not meet the unique constraint")


class SequenceTooShortError(ArchiveError):
    """Raised when a collection ends before the requested skip count."""

    def __init__(self, requested: int, available: int) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            f"cannot skip {requested} items, collection holds only {available}"
        )


class UnsupportedMediaError(ArchiveError):
    """Raised when sniffed content does not map to a usable file extension."""

    def __init__(self, url: str, content_type: str) -> None:
        self.url = url
        self.content_type = content_type
        super().__init__(f"unsupported content type {content_type!r} for {url}")


class SnapshotVersionError(ArchiveError):
    """Raised when a stored snapshot is newer than this code understands."""

    def __init__(self, kind: str, found: int, supported: int) -> None:
        self.kind = kind
        self.found = found
        self.supported = supported
        super().__init__(f"{kind} version {found} is newer than supported {supported}")
