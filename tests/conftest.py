"""Shared fixtures for tests."""

from __future__ import annotations

import pytest

from gmail_sweeper.aggregator import ResultAggregator
from gmail_sweeper.models import HTTP, MAILTO, Directive, MessageRecord
from gmail_sweeper.selection import Selection

from helpers import DAY_MS, NOW_MS


@pytest.fixture
def one_click_record() -> MessageRecord:
    return MessageRecord(
        id="m_oneclick",
        sender="Shop <deals@shop.example>",
        email="deals@shop.example",
        domain="shop.example",
        subject="Big sale",
        date="Mon, 15 Jan 2024 10:00:00 +0000",
        timestamp=NOW_MS - 10 * DAY_MS,
        directives=(
            Directive(kind=MAILTO, url="mailto:leave@shop.example"),
            Directive(kind=HTTP, url="https://shop.example/unsub?id=1"),
        ),
        one_click=True,
    )


@pytest.fixture
def link_record() -> MessageRecord:
    return MessageRecord(
        id="m_link",
        sender="Digest <digest@news.example>",
        email="digest@news.example",
        domain="news.example",
        subject="Weekly digest",
        timestamp=NOW_MS - 200 * DAY_MS,
        directives=(Directive(kind=HTTP, url="https://news.example/u"),),
    )


@pytest.fixture
def mailto_record() -> MessageRecord:
    return MessageRecord(
        id="m_mailto",
        sender="List <list@lists.example>",
        email="list@lists.example",
        domain="lists.example",
        subject="Discussion",
        timestamp=NOW_MS - 5 * DAY_MS,
        directives=(Directive(kind=MAILTO, url="mailto:unsubscribe@lists.example"),),
    )


@pytest.fixture
def plain_record() -> MessageRecord:
    return MessageRecord(
        id="m_plain",
        sender="Alice Smith <alice@example.com>",
        email="alice@example.com",
        domain="example.com",
        subject="Re: Lunch tomorrow?",
    )


@pytest.fixture
def mailbox_records() -> list[MessageRecord]:
    """Messages from three senders across two domains."""

    def _rec(msg_id: str, email: str, days_ago: int | None) -> MessageRecord:
        return MessageRecord(
            id=msg_id,
            sender=email,
            email=email,
            domain=email.split("@")[1],
            subject=f"Subject {msg_id}",
            timestamp=0 if days_ago is None else NOW_MS - days_ago * DAY_MS,
        )

    return [
        _rec("a1", "old@promo.example", 200),
        _rec("a2", "old@promo.example", 120),
        _rec("b1", "fresh@promo.example", 3),
        _rec("b2", "fresh@promo.example", 400),
        _rec("c1", "undated@other.example", None),
        _rec("d1", "recent@other.example", 30),
    ]


@pytest.fixture
def results(mailbox_records: list[MessageRecord]) -> ResultAggregator:
    return ResultAggregator(mailbox_records)


@pytest.fixture
def selection(results: ResultAggregator) -> Selection:
    return Selection(results)
