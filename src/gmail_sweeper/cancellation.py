"""Cooperative cancellation for a running scan."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class CancellationToken:
    """A stop flag shared by every worker of one scan.

    Setting it never interrupts a request already in flight; workers check
    it before starting the next unit of work.
    """

    __slots__ = ("_cancelled",)

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if not self._cancelled:
            logger.info("Stop requested, finishing requests in flight")
        self._cancelled = True

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"
