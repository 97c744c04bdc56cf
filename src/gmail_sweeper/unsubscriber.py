"""Unsubscribe dispatching for selected messages."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable, Iterable

import httpx

from .constants import ONE_CLICK_BODY, ONE_CLICK_CONTENT_TYPE, USER_AGENT
from .models import HTTP, MAILTO, MessageRecord, UnsubscribeTally

logger = logging.getLogger(__name__)


def open_in_browser(url: str) -> bool:
    return webbrowser.open(url, new=2)


def _count_http(record: MessageRecord, tally: UnsubscribeTally) -> None:
    if record.one_click:
        tally.posted += 1
    else:
        tally.fetched += 1


class UnsubscribeDispatcher:
    """Picks and runs one unsubscribe path per message.

    Priority: no directive -> missing; an http directive -> POST (one-click)
    or GET; otherwise a mailto directive -> handed to the mail client.
    In dry-run mode the same choice is made and counted, but nothing is sent
    or opened.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        dry_run: bool = True,
        open_links: bool = False,
        opener: Callable[[str], bool] = open_in_browser,
        timeout: float | None = None,
    ) -> None:
        self.client = client
        self.dry_run = dry_run
        self.open_links = open_links
        self.opener = opener
        self.timeout = timeout

    async def _send(self, client: httpx.AsyncClient, url: str, one_click: bool) -> None:
        if one_click:
            resp = await client.post(
                url,
                content=ONE_CLICK_BODY,
                headers={"Content-Type": ONE_CLICK_CONTENT_TYPE},
            )
        else:
            resp = await client.get(url)
        logger.debug("%s %s -> %s", resp.request.method, url, resp.status_code)

    async def _dispatch_one(
        self, client: httpx.AsyncClient | None, record: MessageRecord, tally: UnsubscribeTally
    ) -> None:
        if not record.directives:
            tally.missing += 1
            return

        http = record.first_directive(HTTP)
        mail = record.first_directive(MAILTO)

        if http:
            if self.dry_run:
                _count_http(record, tally)
                return
            try:
                await self._send(client, http.url, record.one_click)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.warning("Unsubscribe request to %s failed: %s", http.url, exc)
                tally.errors += 1
            else:
                _count_http(record, tally)
            if self.open_links:
                self.opener(http.url)
        elif mail:
            if not self.dry_run:
                self.opener(mail.url)
            tally.mailed += 1
        else:
            tally.missing += 1

    async def _dispatch_all(
        self, client: httpx.AsyncClient | None, records: list[MessageRecord]
    ) -> UnsubscribeTally:
        tally = UnsubscribeTally(dry_run=self.dry_run)
        for record in records:
            await self._dispatch_one(client, record, tally)
        return tally

    async def dispatch(self, records: Iterable[MessageRecord]) -> UnsubscribeTally:
        """Unsubscribe from every record in *records*, one at a time."""
        records = list(records)

        if self.dry_run:
            tally = await self._dispatch_all(None, records)
        elif self.client is not None:
            tally = await self._dispatch_all(self.client, records)
        else:
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            ) as client:
                tally = await self._dispatch_all(client, records)

        logger.info(
            "%s: %d POST, %d GET, %d mailto; %d missing, %d errors",
            "Would unsubscribe" if self.dry_run else "Unsubscribe attempted",
            tally.posted, tally.fetched, tally.mailed, tally.missing, tally.errors,
        )
        return tally
