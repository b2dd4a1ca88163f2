"""Lazy iteration over paginated listings."""

from __future__ import annotations

from collections import deque
from enum import StrEnum
from typing import TYPE_CHECKING, Self

from paperless_client.observability import get_logger


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from paperless_client.core.models import Page


__all__ = [
    "PageFetcher",
    "PageIterator",
    "PageState",
]

logger = get_logger(__name__)

type PageFetcher[T] = Callable[[str | None], Awaitable[Page[T]]]


class PageState(StrEnum):
    """States of a :class:`PageIterator`.

    Attributes:
        FRESH: Nothing fetched yet; the next pull requests the first page.
        PAGING: At least one page fetched and the server announced another.
        EXHAUSTED: Terminal; no further pages will be requested.
    """

    FRESH = "fresh"
    PAGING = "paging"
    EXHAUSTED = "exhausted"


class PageIterator[T]:
    """Single-pass async iterator over every item of a listing.

    Pages are requested strictly one after the other, and only when the
    items of the previous page have all been handed out. A failed fetch
    propagates the error and ends the iteration; the iterator cannot be
    restarted. Cancellation counts as a failure: a pull cancelled while a
    page is in flight also leaves the iterator EXHAUSTED, so a caller that
    wants to resume must start a new listing (or use
    :meth:`PaperlessClient.fetch_page` with the saved :attr:`cursor`).

    Example:
        ```python
        async for document in client.list(DOCUMENTS, query={"page_size": 100}):
            print(document.title)
        ```

    Attributes:
        count: Total item count announced by the first page (None before it).
        pages_fetched: Number of pages fetched so far.
    """

    def __init__(self, fetch: PageFetcher[T]) -> None:
        """Initialize the iterator.

        Args:
            fetch: Coroutine function fetching the page at a cursor URL, or
                the first page when called with None.
        """
        self._fetch = fetch
        self._state = PageState.FRESH
        self._cursor: str | None = None
        self._buffer: deque[T] = deque()
        self.count: int | None = None
        self.pages_fetched = 0

    @property
    def state(self) -> PageState:
        return self._state

    @property
    def cursor(self) -> str | None:
        """URL of the next page to fetch, while in the PAGING state."""
        return self._cursor

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> T:
        while not self._buffer:
            if self._state is PageState.EXHAUSTED:
                raise StopAsyncIteration
            await self._advance()
        return self._buffer.popleft()

    async def _advance(self) -> None:
        cursor = self._cursor if self._state is PageState.PAGING else None
        try:
            page = await self._fetch(cursor)
        except BaseException:
            self._state = PageState.EXHAUSTED
            self._cursor = None
            raise

        if self._state is PageState.FRESH:
            self.count = page.count
        self.pages_fetched += 1
        self._buffer.extend(page.results)

        if page.next and page.next == cursor:
            logger.warning("pagination_cursor_repeated", cursor=cursor)
            self._state = PageState.EXHAUSTED
            self._cursor = None
        elif page.next:
            self._state = PageState.PAGING
            self._cursor = page.next
        else:
            self._state = PageState.EXHAUSTED
            self._cursor = None

        logger.debug(
            "page_fetched",
            page=self.pages_fetched,
            items=len(page.results),
            count=page.count,
            has_next=page.next is not None,
        )

    async def collect(self) -> list[T]:
        """Consume the remaining items into a list."""
        return [item async for item in self]
