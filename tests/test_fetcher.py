"""Tests for the bounded fetcher."""

import asyncio

import pytest

from gmail_sweeper.cancellation import CancellationToken
from gmail_sweeper.fetcher import fetch_with_concurrency


class _Tracker:
    def __init__(self, fail=()):
        self.fail = set(fail)
        self.seen: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.runners_started = 0

    async def __call__(self, item: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            if item in self.fail:
                raise ConnectionError("transient")
            self.seen.append(item)
        finally:
            self.in_flight -= 1


def test_every_item_processed_once():
    items = [f"id{i}" for i in range(37)]
    worker = _Tracker()

    asyncio.run(fetch_with_concurrency(items, 5, worker, CancellationToken()))

    assert sorted(worker.seen) == sorted(items)
    assert len(worker.seen) == len(items)


def test_concurrency_never_exceeds_limit():
    items = [f"id{i}" for i in range(50)]
    worker = _Tracker()

    asyncio.run(fetch_with_concurrency(items, 4, worker, CancellationToken()))

    assert worker.max_in_flight == 4


def test_fewer_items_than_limit():
    worker = _Tracker()

    asyncio.run(fetch_with_concurrency(["a", "b"], 12, worker, CancellationToken()))

    assert sorted(worker.seen) == ["a", "b"]
    assert worker.max_in_flight == 2


def test_empty_items():
    worker = _Tracker()
    asyncio.run(fetch_with_concurrency([], 3, worker, CancellationToken()))
    assert worker.seen == []


def test_failing_item_does_not_stop_siblings(caplog):
    items = ["a", "b", "c", "d"]
    worker = _Tracker(fail={"b"})

    with caplog.at_level("WARNING", logger="gmail_sweeper.fetcher"):
        asyncio.run(fetch_with_concurrency(items, 2, worker, CancellationToken()))

    assert sorted(worker.seen) == ["a", "c", "d"]
    assert "Failed to fetch message b" in caplog.text


def test_cancelled_before_start_processes_nothing():
    token = CancellationToken()
    token.cancel()
    worker = _Tracker()

    asyncio.run(fetch_with_concurrency(["a", "b", "c"], 2, worker, token))

    assert worker.seen == []


def test_cancel_mid_run_lets_in_flight_items_finish():
    token = CancellationToken()
    started: list[str] = []

    async def worker(item: str) -> None:
        started.append(item)
        if item == "id3":
            token.cancel()
        await asyncio.sleep(0)

    items = [f"id{i}" for i in range(20)]
    asyncio.run(fetch_with_concurrency(items, 2, worker, token))

    assert "id3" in started
    # at most the other runner's item was taken alongside id3
    assert len(started) <= 5


def test_invalid_limit():
    with pytest.raises(ValueError):
        asyncio.run(fetch_with_concurrency(["a"], 0, _Tracker(), CancellationToken()))
