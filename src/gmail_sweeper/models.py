"""Data models for Gmail Sweeper."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

MAILTO = "mailto"
HTTP = "http"


@dataclass(frozen=True)
class Directive:
    """A single unsubscribe mechanism parsed from List-Unsubscribe."""

    kind: str  # MAILTO or HTTP
    url: str  # e.g. "mailto:leave@example.com" or "https://example.com/u"


@dataclass(frozen=True)
class MessageRecord:
    """Metadata extracted from a single Gmail message."""

    id: str
    sender: str  # Full From header value
    email: str  # Lower-cased address extracted from the From header
    domain: str
    subject: str = ""
    snippet: str = ""
    date: str = ""  # Raw Date header
    timestamp: int = 0  # Epoch millis, 0 when the Date header is unparsable
    directives: tuple[Directive, ...] = ()
    one_click: bool = False

    def first_directive(self, kind: str) -> Directive | None:
        for directive in self.directives:
            if directive.kind == kind:
                return directive
        return None


class ScanStage(str, Enum):
    IDLE = "idle"
    LISTING = "listing"
    SCANNING = "scanning"
    DONE = "done"


@dataclass
class ScanProgress:
    """Progress counters for the active scan. Written only by the scanner."""

    stage: ScanStage = ScanStage.IDLE
    pages_fetched: int = 0
    messages_fetched: int = 0


@dataclass
class ScanOutcome:
    """Summary of a finished (or stopped) scan."""

    query: str
    pages_fetched: int = 0
    messages_fetched: int = 0
    stopped: bool = False
    scan_date: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class UnsubscribeTally:
    """Outcome counters of one unsubscribe run."""

    posted: int = 0
    fetched: int = 0
    mailed: int = 0
    missing: int = 0
    errors: int = 0
    dry_run: bool = False

    @property
    def status(self) -> str:
        return "warning" if self.errors else "success"

    @property
    def attempted(self) -> int:
        return self.posted + self.fetched + self.mailed


@dataclass
class ActionResult:
    """Result of a batch delete or archive."""

    action: str  # "delete" or "archive"
    count: int
    dry_run: bool = False
    message_ids: list[str] = field(default_factory=list)
