"""Rich-based display functions for Gmail Sweeper."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from .constants import SNIPPET_DISPLAY_LIMIT
from .models import HTTP, ActionResult, MessageRecord, ScanOutcome, UnsubscribeTally
from .selection import Selection, group_by

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route log records through Rich on the shared console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=True)],
        force=True,
    )
    # googleapiclient logs every discovery lookup at INFO
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)


def create_progress(description: str) -> Progress:
    """Create a Rich progress display for an open-ended scan."""
    return Progress(
        SpinnerColumn(),
        TextColumn(f"[bold blue]{description}"),
        TextColumn("pages: {task.fields[pages]}  messages: {task.completed}"),
        TimeElapsedColumn(),
        console=console,
    )


def _unsubscribe_label(record: MessageRecord) -> str:
    if not record.directives:
        return "[dim]-[/dim]"
    kinds = []
    for directive in record.directives:
        if directive.kind == HTTP:
            kinds.append("one-click" if record.one_click else "link")
        else:
            kinds.append("mailto")
    return ", ".join(dict.fromkeys(kinds))


def _mark(selected: bool) -> str:
    return "[green]x[/green]" if selected else ""


def _format_day(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def display_records(records: list[MessageRecord], selection: Selection) -> None:
    """Display one row per message."""
    table = Table(title="Messages")
    table.add_column("Sel", justify="center")
    table.add_column("ID", style="dim")
    table.add_column("From")
    table.add_column("Subject")
    table.add_column("Date")
    table.add_column("Unsubscribe")

    for record in records:
        table.add_row(
            _mark(record.id in selection),
            record.id,
            f"{escape(record.email)}\n[dim]{escape(record.domain)}[/dim]",
            escape(record.subject or record.snippet[:SNIPPET_DISPLAY_LIMIT]),
            _format_day(record.timestamp) if record.timestamp else escape(record.date),
            _unsubscribe_label(record),
        )

    console.print(table)
    console.print(f"Selected {len(selection)} / {len(records)}")


def display_groups(records: list[MessageRecord], selection: Selection, key: str) -> None:
    """Display records grouped by sender ("email") or by "domain"."""
    groups = group_by(records, key)

    table = Table(title="Senders" if key == "email" else "Domains")
    table.add_column("Sel", justify="center")
    table.add_column("Sender" if key == "email" else "Domain")
    table.add_column("Count", justify="right")
    table.add_column("Selected", justify="right")
    table.add_column("Unsubscribe")
    if key == "email":
        table.add_column("Last seen")

    for name, members in sorted(groups.items(), key=lambda kv: -len(kv[1])):
        selected = sum(1 for m in members if m.id in selection)
        has_unsub = sum(1 for m in members if m.directives)
        row = [
            _mark(selected == len(members)),
            escape(name),
            str(len(members)),
            str(selected),
            f"{has_unsub}/{len(members)}",
        ]
        if key == "email":
            last = max(m.timestamp for m in members)
            row.append(_format_day(last) if last else "[dim]unknown[/dim]")
        table.add_row(*row)

    console.print(table)
    console.print(
        Panel(
            f"Groups: {len(groups)}  |  Messages: {len(records)}  |  Selected: {len(selection)}",
            title="Summary",
        )
    )


def display_scan_outcome(outcome: ScanOutcome) -> None:
    if outcome.stopped:
        console.print(f"[yellow]Stopped. Fetched {outcome.messages_fetched} messages[/yellow]")
    else:
        console.print(
            f"[green]Done. Found {outcome.messages_fetched} messages "
            f"in {outcome.pages_fetched} pages[/green]"
        )


def display_tally(tally: UnsubscribeTally) -> None:
    """Display the unsubscribe summary."""
    if tally.dry_run:
        text = (
            f"[DRY RUN] Would: {tally.posted} POST, {tally.fetched} GET, "
            f"{tally.mailed} mailto; {tally.missing} missing"
        )
    else:
        text = (
            f"Unsubscribe attempted: {tally.posted} POST, {tally.fetched} GET, "
            f"{tally.mailed} mailto; {tally.missing} missing"
        )
        if tally.errors:
            text += f", {tally.errors} errors"
    color = "yellow" if tally.status == "warning" else "green"
    console.print(Panel(f"[{color}]{text}[/{color}]", title="Unsubscribe"))


def display_action_result(result: ActionResult) -> None:
    """Display the outcome of a delete or archive."""
    if result.dry_run:
        console.print(
            f"[yellow][DRY RUN] Would {result.action} {result.count} messages. "
            "Use --execute to apply.[/yellow]"
        )
        return
    verb = "Archived" if result.action == "archive" else "Deleted"
    console.print(Panel(f"[bold green]{verb} {result.count} messages.[/bold green]", title="Done"))


def confirm_action(action: str, count: int) -> bool:
    """Prompt the user to confirm a destructive action."""
    word = action.upper()
    console.print(
        Panel(f"[bold]{count} selected messages will be {action}d.[/bold]", title=f"Confirm {action}")
    )
    answer = Prompt.ask(f'[bold red]Type "{word}" to confirm[/bold red]', console=console)
    return answer == word
