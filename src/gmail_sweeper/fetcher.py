"""Bounded-concurrency fetching of message details."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


async def fetch_with_concurrency(
    items: Sequence[str],
    limit: int,
    worker: Callable[[str], Awaitable[None]],
    cancel_token: CancellationToken,
) -> None:
    """Run *worker* over *items* with at most *limit* calls in flight.

    ``min(limit, len(items))`` runners share one cursor, so every item is
    taken exactly once. Completion order is unspecified. A runner checks
    *cancel_token* before taking its next item and exits quietly once it is
    set. A failing item is logged and skipped; it never stops its siblings.
    """
    if limit < 1:
        raise ValueError(f"concurrency must be at least 1, got {limit}")

    cursor = iter(items)

    async def _runner() -> None:
        while not cancel_token.cancelled:
            # next() and the check above run without a suspension in between
            item = next(cursor, None)
            if item is None:
                return
            try:
                await worker(item)
            except Exception as exc:
                logger.warning("Failed to fetch message %s: %s", item, str(exc) or type(exc).__name__)
                logger.debug("Fetch error details", exc_info=True)

    await asyncio.gather(*(_runner() for _ in range(min(limit, len(items)))))
