"""
De-duplicating content fetcher.

Concurrent requests for the same path share one in-flight fetch; requests
for different paths are never coalesced. Completed fetches are not cached
here: the task index owns parsed results for its load cycle.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[str]]


class FileFetcher:
    """
    Wraps a fetch capability with an in-flight request map keyed by path.

    Example:
        >>> fetcher = FileFetcher(access.fetch_file)
        >>> a, b = await asyncio.gather(fetcher.fetch("x.md"), fetcher.fetch("x.md"))
        >>> # the collaborator saw a single request for x.md
    """

    def __init__(self, fetch: FetchFn) -> None:
        self._fetch = fetch
        self._in_flight: dict[str, asyncio.Future[str]] = {}

    @property
    def in_flight(self) -> list[str]:
        """Paths with a fetch currently outstanding."""
        return list(self._in_flight)

    async def fetch(self, path: str) -> str:
        """
        Fetch a path, joining an outstanding request for it if one exists.

        Errors from the collaborator propagate unchanged to every waiter.
        """
        pending = self._in_flight.get(path)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(path))
            self._in_flight[path] = pending
            pending.add_done_callback(lambda _f, p=path: self._in_flight.pop(p, None))
        else:
            logger.debug(f"Joining in-flight fetch for {path}")
        # shield so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(pending)

    async def fetch_many(self, paths: Iterable[str]) -> list[str | BaseException]:
        """
        Fetch several paths as one batch.

        Returns:
            Content or the raised exception, in input order
        """
        return await asyncio.gather(*(self.fetch(p) for p in paths), return_exceptions=True)
