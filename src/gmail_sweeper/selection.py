"""Grouping views over scanned messages and the id selection set."""

from __future__ import annotations

import time
from typing import Iterable

from .aggregator import ResultAggregator
from .constants import MS_PER_DAY
from .models import MessageRecord


def group_by(records: Iterable[MessageRecord], key: str) -> dict[str, list[MessageRecord]]:
    """Partition records by attribute *key*, keeping first-seen order."""
    groups: dict[str, list[MessageRecord]] = {}
    for record in records:
        groups.setdefault(getattr(record, key), []).append(record)
    return groups


def group_by_sender(records: Iterable[MessageRecord]) -> dict[str, list[MessageRecord]]:
    return group_by(records, "email")


def group_by_domain(records: Iterable[MessageRecord]) -> dict[str, list[MessageRecord]]:
    return group_by(records, "domain")


def last_activity_by_sender(records: Iterable[MessageRecord]) -> dict[str, int]:
    """Latest known timestamp per sender; 0 means no known activity."""
    latest: dict[str, int] = {}
    for record in records:
        latest[record.email] = max(latest.get(record.email, 0), record.timestamp or 0)
    return latest


class Selection:
    """The set of selected message ids over a ResultAggregator.

    Every selected id exists in the aggregator; call :meth:`prune` after
    removing records.
    """

    def __init__(self, results: ResultAggregator, ids: Iterable[str] = ()) -> None:
        self.results = results
        self._ids: set[str] = {i for i in ids if i in results}

    @property
    def ids(self) -> set[str]:
        return set(self._ids)

    def ordered_ids(self) -> list[str]:
        """Selected ids in collection order."""
        return [i for i in self.results.ids() if i in self._ids]

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def toggle(self, message_id: str) -> bool:
        """Flip one id. Returns whether it is selected afterwards."""
        if message_id in self._ids:
            self._ids.discard(message_id)
            return False
        if message_id not in self.results:
            return False
        self._ids.add(message_id)
        return True

    def clear(self) -> None:
        self._ids.clear()

    def prune(self) -> int:
        """Drop ids that are no longer in the collection. Returns how many were dropped."""
        stale = {i for i in self._ids if i not in self.results}
        self._ids -= stale
        return len(stale)

    def toggle_all(self) -> None:
        """Clear when everything is selected, otherwise select everything."""
        if len(self._ids) == len(self.results):
            self._ids.clear()
        else:
            self._ids = set(self.results.ids())

    def _toggle_group(self, members: list[MessageRecord]) -> bool:
        # A partially selected group becomes fully selected.
        if not members:
            return False
        ids = {m.id for m in members}
        if ids <= self._ids:
            self._ids -= ids
            return False
        self._ids |= ids
        return True

    def toggle_sender(self, email: str) -> bool:
        """Select or deselect every message from *email*. Returns whether the group is now selected."""
        return self._toggle_group(group_by_sender(self.results).get(email.lower(), []))

    def toggle_domain(self, domain: str) -> bool:
        return self._toggle_group(group_by_domain(self.results).get(domain.lower(), []))

    def select_inactive_senders(self, days: int, now: float | None = None) -> int:
        """Add every message whose sender has been silent for more than *days*.

        Senders without any parsable date are left alone. Never deselects.
        Returns the number of ids newly added.
        """
        now_ms = int((time.time() if now is None else now) * 1000)
        cutoff = now_ms - days * MS_PER_DAY
        latest = last_activity_by_sender(self.results)

        before = len(self._ids)
        for record in self.results:
            last = latest.get(record.email, 0)
            if 0 < last < cutoff:
                self._ids.add(record.id)
        return len(self._ids) - before
