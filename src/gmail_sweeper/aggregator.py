"""Progressive, id-keyed collection of scanned messages."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

from .models import MessageRecord, ScanProgress


class ResultAggregator:
    """Collects MessageRecords as workers finish, in completion order.

    Only the active scan appends; removal happens after a successful batch
    action. All callers share one event loop, so no locking is needed.
    """

    def __init__(
        self,
        records: Iterable[MessageRecord] = (),
        on_append: Callable[[MessageRecord], None] | None = None,
    ) -> None:
        self._records: dict[str, MessageRecord] = {}
        self.progress = ScanProgress()
        self.on_append = on_append
        for record in records:
            self._records.setdefault(record.id, record)

    def append(self, record: MessageRecord) -> bool:
        """Add *record* unless its id is already present. Returns True when added."""
        if record.id in self._records:
            return False
        self._records[record.id] = record
        self.progress.messages_fetched = len(self._records)
        if self.on_append:
            self.on_append(record)
        return True

    def remove(self, message_ids: Iterable[str]) -> int:
        """Drop records by id; unknown ids are ignored. Returns the number removed."""
        removed = 0
        for message_id in message_ids:
            if self._records.pop(message_id, None) is not None:
                removed += 1
        return removed

    def get(self, message_id: str) -> MessageRecord | None:
        return self._records.get(message_id)

    @property
    def records(self) -> list[MessageRecord]:
        return list(self._records.values())

    def ids(self) -> list[str]:
        return list(self._records)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[MessageRecord]:
        return iter(list(self._records.values()))
