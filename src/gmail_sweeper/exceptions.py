"""Exceptions raised by Gmail Sweeper."""

from __future__ import annotations


class SweeperError(Exception):
    """Base class for errors reported to the user."""


class ScanError(SweeperError):
    """Listing a page of messages failed; the scan stopped early.

    Records fetched before the failure stay in the aggregator.
    """

    def __init__(self, message: str, pages_fetched: int = 0, messages_fetched: int = 0) -> None:
        super().__init__(message)
        self.pages_fetched = pages_fetched
        self.messages_fetched = messages_fetched


class BulkActionError(SweeperError):
    """A batch delete or archive request failed."""

    def __init__(self, message: str, applied: int = 0) -> None:
        super().__init__(message)
        self.applied = applied

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.applied:
            return f"{base_message} ({self.applied} messages were updated before the failure)"
        return base_message


class NothingSelectedError(SweeperError):
    """An action was requested with an empty selection."""

    def __init__(self, message: str = "Select at least one message.") -> None:
        super().__init__(message)
