"""Tests for the result aggregator."""

from gmail_sweeper.aggregator import ResultAggregator
from gmail_sweeper.models import MessageRecord


def _rec(message_id: str) -> MessageRecord:
    return MessageRecord(id=message_id, sender="s", email="s@x.example", domain="x.example")


def test_append_keeps_count_in_step():
    results = ResultAggregator()

    assert results.append(_rec("a")) is True
    assert results.progress.messages_fetched == 1
    assert results.append(_rec("b")) is True
    assert results.progress.messages_fetched == 2
    assert results.ids() == ["a", "b"]


def test_duplicate_id_ignored():
    results = ResultAggregator()
    results.append(_rec("a"))

    assert results.append(_rec("a")) is False
    assert len(results) == 1
    assert results.progress.messages_fetched == 1


def test_remove():
    results = ResultAggregator([_rec("a"), _rec("b"), _rec("c")])

    removed = results.remove(["b", "missing"])

    assert removed == 1
    assert results.ids() == ["a", "c"]
    assert "b" not in results


def test_on_append_only_for_new_records():
    seen = []
    results = ResultAggregator(on_append=lambda r: seen.append(r.id))

    results.append(_rec("a"))
    results.append(_rec("a"))

    assert seen == ["a"]
