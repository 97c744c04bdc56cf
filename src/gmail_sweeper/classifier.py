"""Turn raw Gmail message metadata into MessageRecord objects.

Everything here is pure: the same payload always yields the same record.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from .constants import UNKNOWN
from .models import HTTP, MAILTO, Directive, MessageRecord

_ANGLE_RE = re.compile(r"<([^>]+)>")
_SPLIT_RE = re.compile(r"[\s,]+")
_MAILTO_RE = re.compile(r"^mailto:", re.IGNORECASE)
_HTTP_RE = re.compile(r"^https?:", re.IGNORECASE)
_ONE_CLICK_RE = re.compile(r"one-click", re.IGNORECASE)


def parse_header(headers: list[dict], name: str) -> str:
    """Return the value of the first header called *name* (case-insensitive)."""
    wanted = name.lower()
    for header in headers or []:
        if (header.get("name") or "").lower() == wanted:
            return header.get("value") or ""
    return ""


def _classify_token(value: str) -> Directive | None:
    value = value.strip()
    if not value:
        return None
    if _MAILTO_RE.match(value):
        return Directive(kind=MAILTO, url=value)
    if _HTTP_RE.match(value):
        return Directive(kind=HTTP, url=value)
    return None


def extract_directives(value: str) -> tuple[Directive, ...]:
    """Parse a List-Unsubscribe value into directives, keeping header order.

    Handles formats like:
      "<mailto:a@x.com>, <https://x.com/u>" -> (mailto, http)
      "https://x.com/u mailto:a@x.com"      -> (http, mailto)
    Schemes other than mailto/http(s) are dropped.
    """
    directives = [d for d in map(_classify_token, _ANGLE_RE.findall(value or "")) if d]
    if not directives and value:
        directives = [d for d in map(_classify_token, _SPLIT_RE.split(value)) if d]
    return tuple(directives)


def email_from(from_value: str) -> str:
    """Extract the lower-cased address from a From header."""
    if not from_value:
        return UNKNOWN
    m = _ANGLE_RE.search(from_value)
    return (m.group(1) if m else from_value).strip().lower()


def domain_from(email: str) -> str:
    _, at, domain = email.partition("@")
    return domain if at else UNKNOWN


def parse_timestamp(date_value: str) -> int:
    """Parse a Date header into epoch milliseconds, 0 when it can't be parsed."""
    if not date_value:
        return 0
    try:
        parsed = parsedate_to_datetime(date_value)
    except (TypeError, ValueError, IndexError):
        try:
            parsed = datetime.fromisoformat(date_value.strip())
        except ValueError:
            return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def classify_message(message_id: str, detail: dict) -> MessageRecord:
    """Build a MessageRecord from a messages.get(format=metadata) response."""
    headers = (detail.get("payload") or {}).get("headers") or []

    from_value = parse_header(headers, "From")
    date_value = parse_header(headers, "Date")
    email = email_from(from_value)

    return MessageRecord(
        id=message_id,
        sender=from_value,
        email=email,
        domain=domain_from(email),
        subject=parse_header(headers, "Subject"),
        snippet=detail.get("snippet") or "",
        date=date_value,
        timestamp=parse_timestamp(date_value),
        directives=extract_directives(parse_header(headers, "List-Unsubscribe")),
        one_click=bool(_ONE_CLICK_RE.search(parse_header(headers, "List-Unsubscribe-Post"))),
    )
