"""Test doubles shared by the test modules."""

from __future__ import annotations

import asyncio
from typing import Callable

from gmail_sweeper.gmail_client import MessagePage

DAY_MS = 24 * 60 * 60 * 1000
NOW = 1_700_000_000.0  # 2023-11-14, seconds
NOW_MS = int(NOW * 1000)


def make_detail(
    sender: str = "News <news@example.com>",
    subject: str = "Hello",
    date: str = "Mon, 15 Jan 2024 10:00:00 +0000",
    list_unsubscribe: str | None = None,
    list_unsubscribe_post: str | None = None,
    snippet: str = "",
) -> dict:
    """Build a messages.get(format=metadata) response."""
    headers = [
        {"name": "From", "value": sender},
        {"name": "Subject", "value": subject},
        {"name": "Date", "value": date},
    ]
    if list_unsubscribe is not None:
        headers.append({"name": "List-Unsubscribe", "value": list_unsubscribe})
    if list_unsubscribe_post is not None:
        headers.append({"name": "List-Unsubscribe-Post", "value": list_unsubscribe_post})
    return {"snippet": snippet, "payload": {"headers": headers}}


def endless_pages(page_size: int = 100) -> Callable[[int], MessagePage]:
    """A listing that always returns a full page and a continuation token."""

    def _page(index: int) -> MessagePage:
        return MessagePage(
            ids=[f"p{index}-m{j}" for j in range(page_size)],
            next_page_token=f"token-{index + 1}",
        )

    return _page


class FakeMailbox:
    """In-memory stand-in for GmailMailbox that records every call."""

    def __init__(
        self,
        pages: list[MessagePage] | Callable[[int], MessagePage] = (),
        details: dict[str, dict] | None = None,
        failing_ids: set[str] | frozenset[str] = frozenset(),
        list_error: tuple[int, Exception] | None = None,
        modify_error: Exception | None = None,
        modify_error_at: int = 0,
        on_get: Callable[[str], None] | None = None,
    ) -> None:
        self.pages = pages if callable(pages) else list(pages)
        self.details = details or {}
        self.failing_ids = set(failing_ids)
        self.list_error = list_error
        self.modify_error = modify_error
        self.modify_error_at = modify_error_at
        self.on_get = on_get
        self.list_calls: list[tuple] = []
        self.get_calls: list[str] = []
        self.modify_calls: list[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_page(self, query, page_size, page_token=None) -> MessagePage:
        index = len(self.list_calls)
        self.list_calls.append((query, page_size, page_token))
        await asyncio.sleep(0)
        if self.list_error and self.list_error[0] == index:
            raise self.list_error[1]
        if callable(self.pages):
            return self.pages(index)
        if index >= len(self.pages):
            return MessagePage()
        return self.pages[index]

    async def get_metadata(self, message_id: str) -> dict:
        self.get_calls.append(message_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_get:
                self.on_get(message_id)
            await asyncio.sleep(0)
            if message_id in self.failing_ids:
                raise ConnectionError(f"network down for {message_id}")
            return self.details.get(message_id) or make_detail(subject=f"Subject {message_id}")
        finally:
            self.in_flight -= 1

    async def batch_modify(self, message_ids, add_labels=None, remove_labels=None) -> None:
        index = len(self.modify_calls)
        self.modify_calls.append((list(message_ids), add_labels or [], remove_labels or []))
        await asyncio.sleep(0)
        if self.modify_error and index >= self.modify_error_at:
            raise self.modify_error

    async def get_profile(self) -> dict:
        return {"emailAddress": "me@example.com"}
