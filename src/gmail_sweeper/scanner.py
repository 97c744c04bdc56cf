"""Scan orchestration - walks list pages and fetches message details."""

from __future__ import annotations

import logging
from typing import Callable

from .aggregator import ResultAggregator
from .cancellation import CancellationToken
from .classifier import classify_message
from .constants import DEFAULT_CONCURRENCY, DEFAULT_MAX_PAGES, PAGE_SIZE
from .exceptions import ScanError
from .fetcher import fetch_with_concurrency
from .gmail_client import format_api_error
from .models import MessageRecord, ScanOutcome, ScanProgress, ScanStage

logger = logging.getLogger(__name__)


class MailboxScanner:
    """Runs scans against a mailbox and keeps the results of the latest one.

    Each call to :meth:`scan` replaces the cancellation token and the result
    aggregator, so nothing leaks from one scan into the next.
    """

    def __init__(
        self,
        mailbox,
        max_pages: int = DEFAULT_MAX_PAGES,
        concurrency: int = DEFAULT_CONCURRENCY,
        page_size: int = PAGE_SIZE,
    ) -> None:
        if max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {max_pages}")
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.mailbox = mailbox
        self.max_pages = max_pages
        self.concurrency = concurrency
        self.page_size = page_size
        self.cancel_token = CancellationToken()
        self.results = ResultAggregator()

    @property
    def progress(self) -> ScanProgress:
        return self.results.progress

    def stop(self) -> None:
        """Ask the running scan to stop after the requests in flight."""
        self.cancel_token.cancel()

    async def scan(
        self,
        query: str | None,
        on_record: Callable[[MessageRecord], None] | None = None,
        on_page: Callable[[int], None] | None = None,
    ) -> ScanOutcome:
        """Fetch up to ``max_pages`` pages of messages matching *query*.

        Records are appended to :attr:`results` as soon as each detail
        request completes.  A failed list request raises ScanError; records
        gathered before it stay in :attr:`results`.
        """
        cancel_token = self.cancel_token = CancellationToken()
        results = self.results = ResultAggregator(on_append=on_record)
        progress = results.progress
        progress.stage = ScanStage.LISTING

        async def _fetch_one(message_id: str) -> None:
            if cancel_token.cancelled:
                return
            detail = await self.mailbox.get_metadata(message_id)
            results.append(classify_message(message_id, detail))

        page_token: str | None = None
        try:
            while not cancel_token.cancelled and progress.pages_fetched < self.max_pages:
                page = await self.mailbox.list_page(query, self.page_size, page_token)
                if not page.ids:
                    break
                progress.pages_fetched += 1
                progress.stage = ScanStage.SCANNING
                logger.debug("Page %d: %d messages", progress.pages_fetched, len(page.ids))
                if on_page:
                    on_page(progress.pages_fetched)

                await fetch_with_concurrency(page.ids, self.concurrency, _fetch_one, cancel_token)

                page_token = page.next_page_token
                if not page_token:
                    break
        except Exception as exc:
            progress.stage = ScanStage.IDLE
            logger.debug("Listing failed", exc_info=True)
            raise ScanError(
                f"Listing messages failed: {format_api_error(exc)}",
                pages_fetched=progress.pages_fetched,
                messages_fetched=progress.messages_fetched,
            ) from exc

        progress.stage = ScanStage.DONE
        outcome = ScanOutcome(
            query=query or "",
            pages_fetched=progress.pages_fetched,
            messages_fetched=progress.messages_fetched,
            stopped=cancel_token.cancelled,
        )
        if outcome.stopped:
            logger.info("Scan stopped after %d messages", outcome.messages_fetched)
        else:
            logger.info("Scan done: %d messages in %d pages", outcome.messages_fetched, outcome.pages_fetched)
        return outcome
