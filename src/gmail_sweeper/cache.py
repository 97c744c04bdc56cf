"""SQLite cache for scan results and the current selection."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterable

from gmail_sweeper import constants
from gmail_sweeper.models import Directive, MessageRecord, ScanOutcome

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS scan_metadata (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    query TEXT,
    pages_fetched INTEGER,
    messages_fetched INTEGER,
    stopped INTEGER,
    scan_date TEXT
);

CREATE TABLE IF NOT EXISTS messages (
    scan_id INTEGER,
    position INTEGER,
    message_id TEXT,
    sender TEXT,
    email TEXT,
    domain TEXT,
    subject TEXT,
    snippet TEXT,
    date TEXT,
    timestamp INTEGER,
    directives_json TEXT,
    one_click INTEGER,
    FOREIGN KEY (scan_id) REFERENCES scan_metadata(id)
);

CREATE TABLE IF NOT EXISTS selection (
    scan_id INTEGER,
    message_id TEXT,
    FOREIGN KEY (scan_id) REFERENCES scan_metadata(id)
);
"""


def _directives_to_json(directives: tuple[Directive, ...]) -> str:
    return json.dumps([{"kind": d.kind, "url": d.url} for d in directives])


def _directives_from_json(raw: str | None) -> tuple[Directive, ...]:
    return tuple(Directive(kind=d["kind"], url=d["url"]) for d in json.loads(raw or "[]"))


class ScanCache:
    """Persistent SQLite cache for scan results."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or constants.CACHE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(_CREATE_TABLES_SQL)

    def _latest_scan_id(self) -> int | None:
        row = self._conn.execute("SELECT id FROM scan_metadata ORDER BY id DESC LIMIT 1").fetchone()
        return row["id"] if row else None

    # --- public API ---

    def save_scan(self, outcome: ScanOutcome, records: Iterable[MessageRecord]) -> int:
        """Save a scan and its records in a single transaction. Returns the scan id."""
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO scan_metadata (query, pages_fetched, messages_fetched, stopped, scan_date) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    outcome.query,
                    outcome.pages_fetched,
                    outcome.messages_fetched,
                    int(outcome.stopped),
                    outcome.scan_date,
                ),
            )
            scan_id = cursor.lastrowid

            self._conn.executemany(
                "INSERT INTO messages (scan_id, position, message_id, sender, email, domain, subject, "
                "snippet, date, timestamp, directives_json, one_click) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        scan_id,
                        position,
                        r.id,
                        r.sender,
                        r.email,
                        r.domain,
                        r.subject,
                        r.snippet,
                        r.date,
                        r.timestamp,
                        _directives_to_json(r.directives),
                        int(r.one_click),
                    )
                    for position, r in enumerate(records)
                ],
            )
        return scan_id

    def load_latest_scan(self, query: str | None = None) -> tuple[ScanOutcome, list[MessageRecord]] | None:
        """Load the most recent scan and its records, optionally filtered by query."""
        if query is not None:
            row = self._conn.execute(
                "SELECT * FROM scan_metadata WHERE query = ? ORDER BY id DESC LIMIT 1",
                (query,),
            ).fetchone()
        else:
            row = self._conn.execute(
                "SELECT * FROM scan_metadata ORDER BY id DESC LIMIT 1"
            ).fetchone()

        if row is None:
            return None

        message_rows = self._conn.execute(
            "SELECT * FROM messages WHERE scan_id = ? ORDER BY position", (row["id"],)
        ).fetchall()

        records = [
            MessageRecord(
                id=m["message_id"],
                sender=m["sender"],
                email=m["email"],
                domain=m["domain"],
                subject=m["subject"],
                snippet=m["snippet"],
                date=m["date"],
                timestamp=m["timestamp"],
                directives=_directives_from_json(m["directives_json"]),
                one_click=bool(m["one_click"]),
            )
            for m in message_rows
        ]

        outcome = ScanOutcome(
            query=row["query"] or "",
            pages_fetched=row["pages_fetched"],
            messages_fetched=row["messages_fetched"],
            stopped=bool(row["stopped"]),
            scan_date=row["scan_date"],
        )
        return outcome, records

    def load_selection(self) -> list[str]:
        """Return the selected message ids of the latest scan."""
        scan_id = self._latest_scan_id()
        if scan_id is None:
            return []
        rows = self._conn.execute(
            "SELECT message_id FROM selection WHERE scan_id = ?", (scan_id,)
        ).fetchall()
        return [r["message_id"] for r in rows]

    def save_selection(self, message_ids: Iterable[str]) -> None:
        """Replace the selection of the latest scan."""
        scan_id = self._latest_scan_id()
        if scan_id is None:
            return
        with self._conn:
            self._conn.execute("DELETE FROM selection WHERE scan_id = ?", (scan_id,))
            self._conn.executemany(
                "INSERT INTO selection (scan_id, message_id) VALUES (?, ?)",
                [(scan_id, message_id) for message_id in message_ids],
            )

    def remove_messages(self, message_ids: Iterable[str]) -> None:
        """Forget messages of the latest scan, e.g. after they were trashed."""
        scan_id = self._latest_scan_id()
        if scan_id is None:
            return
        params = [(scan_id, message_id) for message_id in message_ids]
        with self._conn:
            self._conn.executemany("DELETE FROM messages WHERE scan_id = ? AND message_id = ?", params)
            self._conn.executemany("DELETE FROM selection WHERE scan_id = ? AND message_id = ?", params)

    def clear(self) -> None:
        """Drop and recreate all tables."""
        self._conn.executescript(
            "DROP TABLE IF EXISTS selection;"
            "DROP TABLE IF EXISTS messages;"
            "DROP TABLE IF EXISTS scan_metadata;"
        )
        self._create_tables()

    def get_info(self) -> dict:
        """Return cache statistics."""
        file_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        last_scan_row = self._conn.execute(
            "SELECT scan_date, query FROM scan_metadata ORDER BY id DESC LIMIT 1"
        ).fetchone()
        scan_id = self._latest_scan_id()

        message_count = self._conn.execute(
            "SELECT COUNT(*) AS c FROM messages WHERE scan_id = ?", (scan_id,)
        ).fetchone()["c"]
        sender_count = self._conn.execute(
            "SELECT COUNT(DISTINCT email) AS c FROM messages WHERE scan_id = ?", (scan_id,)
        ).fetchone()["c"]
        selected_count = self._conn.execute(
            "SELECT COUNT(*) AS c FROM selection WHERE scan_id = ?", (scan_id,)
        ).fetchone()["c"]

        return {
            "db_file_size": file_size,
            "last_scan_date": last_scan_row["scan_date"] if last_scan_row else None,
            "last_query": last_scan_row["query"] if last_scan_row else None,
            "sender_count": sender_count,
            "message_count": message_count,
            "selected_count": selected_count,
        }

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> ScanCache:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
