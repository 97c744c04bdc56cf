"""Tests for the SQLite cache module."""

from gmail_sweeper.cache import ScanCache
from gmail_sweeper.models import ScanOutcome


def test_save_and_load(tmp_path, one_click_record, plain_record):
    """Save a scan and load it back."""
    db_path = tmp_path / "test_cache.db"
    outcome = ScanOutcome(query="test query", pages_fetched=1, messages_fetched=2)

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(outcome, [one_click_record, plain_record])
        loaded = cache.load_latest_scan()

    assert loaded is not None
    loaded_outcome, records = loaded
    assert loaded_outcome.query == "test query"
    assert loaded_outcome.pages_fetched == 1
    assert loaded_outcome.messages_fetched == 2
    assert loaded_outcome.stopped is False
    assert records == [one_click_record, plain_record]


def test_selection_round_trip(tmp_path, one_click_record, plain_record):
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query=""), [one_click_record, plain_record])
        cache.save_selection(["m_plain"])
        assert cache.load_selection() == ["m_plain"]

        cache.save_selection([])
        assert cache.load_selection() == []


def test_new_scan_starts_with_empty_selection(tmp_path, one_click_record):
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query="first"), [one_click_record])
        cache.save_selection(["m_oneclick"])
        cache.save_scan(ScanOutcome(query="second"), [one_click_record])

        assert cache.load_selection() == []


def test_remove_messages(tmp_path, one_click_record, plain_record):
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query=""), [one_click_record, plain_record])
        cache.save_selection(["m_oneclick", "m_plain"])

        cache.remove_messages(["m_oneclick"])

        _, records = cache.load_latest_scan()
        assert [r.id for r in records] == ["m_plain"]
        assert cache.load_selection() == ["m_plain"]


def test_clear(tmp_path):
    """Clearing cache should remove all data."""
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query=""), [])
        assert cache.load_latest_scan() is not None
        cache.clear()
        assert cache.load_latest_scan() is None


def test_get_info(tmp_path, one_click_record, plain_record):
    """Cache info should return correct stats."""
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query="q"), [one_click_record, plain_record])
        cache.save_selection(["m_plain"])
        info = cache.get_info()

    assert info["sender_count"] == 2
    assert info["message_count"] == 2
    assert info["selected_count"] == 1
    assert info["last_query"] == "q"
    assert info["last_scan_date"] is not None
    assert info["db_file_size"] > 0


def test_load_latest_scan_with_query(tmp_path):
    """Loading with query filter should return matching scan."""
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        cache.save_scan(ScanOutcome(query="older_than:90d", messages_fetched=5), [])
        cache.save_scan(ScanOutcome(query="", messages_fetched=10), [])

        latest_all = cache.load_latest_scan()
        assert latest_all is not None
        assert latest_all[0].messages_fetched == 10

        latest_query = cache.load_latest_scan(query="older_than:90d")
        assert latest_query is not None
        assert latest_query[0].messages_fetched == 5


def test_empty_cache(tmp_path):
    """Empty cache should return None."""
    db_path = tmp_path / "test_cache.db"

    with ScanCache(db_path=db_path) as cache:
        assert cache.load_latest_scan() is None
        assert cache.load_selection() == []
        assert cache.get_info()["message_count"] == 0
