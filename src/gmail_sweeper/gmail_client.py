"""Async adapter over the Gmail API client."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from gmail_sweeper.constants import METADATA_HEADERS

logger = logging.getLogger(__name__)


@dataclass
class MessagePage:
    """One page of messages.list results."""

    ids: list[str] = field(default_factory=list)
    next_page_token: str | None = None


def format_api_error(exc: BaseException) -> str:
    """Return the most useful message carried by an API error."""
    if isinstance(exc, HttpError):
        reason = getattr(exc, "reason", None)
        if reason:
            return str(reason)
    return str(exc) or type(exc).__name__


class GmailMailbox:
    """Gmail operations as coroutines.

    googleapiclient is blocking and its httplib2 transport is not thread
    safe, so each request runs in a worker thread with its own authorized
    Http object.
    """

    def __init__(self, credentials, service: Resource | None = None, timeout: float | None = None) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self.service = service or build("gmail", "v1", credentials=credentials, cache_discovery=False)

    def _new_http(self) -> AuthorizedHttp:
        return AuthorizedHttp(self.credentials, http=httplib2.Http(timeout=self.timeout))

    async def _execute(self, request) -> dict:
        return await asyncio.to_thread(request.execute, http=self._new_http())

    async def list_page(
        self,
        query: str | None,
        page_size: int,
        page_token: str | None = None,
    ) -> MessagePage:
        kwargs: dict = {"userId": "me", "maxResults": page_size, "fields": "messages/id,nextPageToken"}
        if query:
            kwargs["q"] = query
        if page_token:
            kwargs["pageToken"] = page_token

        resp = await self._execute(self.service.users().messages().list(**kwargs))
        return MessagePage(
            ids=[m["id"] for m in resp.get("messages", [])],
            next_page_token=resp.get("nextPageToken"),
        )

    async def get_metadata(self, message_id: str) -> dict:
        return await self._execute(
            self.service.users().messages().get(
                userId="me",
                id=message_id,
                format="metadata",
                metadataHeaders=METADATA_HEADERS,
            )
        )

    async def batch_modify(
        self,
        message_ids: list[str],
        add_labels: list[str] | None = None,
        remove_labels: list[str] | None = None,
    ) -> None:
        logger.debug(
            "batchModify %d messages (+%s -%s)", len(message_ids), add_labels or [], remove_labels or []
        )
        await self._execute(
            self.service.users().messages().batchModify(
                userId="me",
                body={
                    "ids": message_ids,
                    "addLabelIds": add_labels or [],
                    "removeLabelIds": remove_labels or [],
                },
            )
        )

    async def get_profile(self) -> dict:
        return await self._execute(self.service.users().getProfile(userId="me"))
