"""Cursor pagination over Discord list endpoints.

Messages are listed newest first and paged with `before`; members are listed
by ascending user ID and paged with `after`. Either way the next cursor is
the ID of the last item of the previous page, so one walker serves both.

Fetch errors propagate unchanged; retrying is the client's job.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Awaitable, Callable, Generic, TypeVar

from discord_archiver.errors import SequenceTooShortError

T = TypeVar("T")

# Largest page each endpoint will return.
MESSAGE_PAGE_MAX = 100
MEMBER_PAGE_MAX = 1000

# fetch(cursor, limit) -> one page
Fetch = Callable[[str | None, int], Awaitable[list[T]]]


def message_key(message: dict[str, Any]) -> str:
    return str(message["id"])


def member_key(member: dict[str, Any]) -> str:
    return str(member["user"]["id"])


class PageWalker(Generic[T]):
    """Lazily walk pages from a cursor until empty or a total limit is hit.

    Usage:
        walker = PageWalker(fetch, cursor=last_id, page_max=MESSAGE_PAGE_MAX, limit=50)
        async for page in walker:
            ...
        if walker.limit_reached:
            ...

    Each request asks for `min(page_max, limit - fetched)` items when a
    limit is set, otherwise `page_max`. A walker is single use.
    """

    def __init__(
        self,
        fetch: Fetch[T],
        *,
        page_max: int,
        cursor: str | None = None,
        limit: int = 0,
        key: Callable[[T], str] = message_key,
    ) -> None:
        if page_max <= 0:
            raise ValueError("page_max must be positive")
        if limit < 0:
            raise ValueError("limit must not be negative")
        self._fetch = fetch
        self.page_max = page_max
        self.cursor = cursor
        self.limit = limit
        self._key = key
        self.fetched = 0
        self.limit_reached = False
        self.exhausted = False

    def _request_size(self) -> int:
        if self.limit:
            return min(self.page_max, self.limit - self.fetched)
        return self.page_max

    async def __aiter__(self) -> AsyncIterator[list[T]]:
        while True:
            if self.limit and self.fetched >= self.limit:
                self.limit_reached = True
                return

            page = await self._fetch(self.cursor, self._request_size())
            if not page:
                self.exhausted = True
                return

            self.fetched += len(page)
            self.cursor = self._key(page[-1])
            yield page


async def locate_resume_cursor(
    fetch: Fetch[T],
    skip: int,
    *,
    page_max: int,
    key: Callable[[T], str] = message_key,
    cursor: str | None = None,
) -> str:
    """Return the ID of the `skip`-th item in walk order.

    Walking resumes strictly past that item, so the first `skip` items are
    never archived. Only one page is held at a time.

    Raises:
        ValueError: if skip is not positive
        SequenceTooShortError: if the collection has fewer than skip items
    """
    if skip <= 0:
        raise ValueError("skip must be positive")

    remaining = skip
    while True:
        page = await fetch(cursor, min(page_max, remaining))
        if not page:
            raise SequenceTooShortError(requested=skip, available=skip - remaining)
        if len(page) >= remaining:
            return key(page[remaining - 1])
        remaining -= len(page)
        cursor = key(page[-1])
