"""CLI entry point for Gmail Sweeper."""

from __future__ import annotations

import asyncio
import signal

import click

from . import __version__
from .actions import apply_batch_action, save_action_log
from .aggregator import ResultAggregator
from .auth import get_mailbox
from .cache import ScanCache
from .constants import (
    CONCURRENCY_LIMIT,
    DEFAULT_CONCURRENCY,
    DEFAULT_INACTIVE_DAYS,
    DEFAULT_MAX_PAGES,
    DEFAULT_QUERY,
    MAX_PAGES_LIMIT,
    QUERY_PRESETS,
    TOKEN_ENV_VAR,
)
from .display import (
    confirm_action,
    console,
    create_progress,
    display_action_result,
    display_groups,
    display_records,
    display_scan_outcome,
    display_tally,
    setup_logging,
)
from .exceptions import BulkActionError, ScanError, SweeperError
from .export import export_records
from .gmail_client import format_api_error
from .models import ScanOutcome
from .scanner import MailboxScanner
from .selection import Selection
from .unsubscriber import UnsubscribeDispatcher

token_option = click.option(
    "--token",
    envvar=TOKEN_ENV_VAR,
    default=None,
    help=f"OAuth access token to use instead of the stored login (or set {TOKEN_ENV_VAR}).",
)
timeout_option = click.option(
    "--timeout", default=None, type=float, help="Per-request timeout in seconds (default: none)."
)


def _get_mailbox(token: str | None, timeout: float | None = None):
    try:
        return get_mailbox(token, timeout=timeout)
    except FileNotFoundError as e:
        raise click.ClickException(str(e)) from e


def _load_session(cache: ScanCache) -> tuple[ScanOutcome, ResultAggregator, Selection]:
    loaded = cache.load_latest_scan()
    if not loaded:
        raise click.ClickException("No cached scan found. Run 'scan' first.")
    outcome, records = loaded
    results = ResultAggregator(records)
    return outcome, results, Selection(results, cache.load_selection())


def _print_selection(selection: Selection) -> None:
    console.print(f"Selected {len(selection)} / {len(selection.results)}")


@click.group()
@click.version_option(version=__version__, prog_name="gmail-sweeper")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Gmail Sweeper - scan your Gmail, then unsubscribe, archive or delete in bulk."""
    setup_logging(verbose)


def _install_interrupt_handler(loop: asyncio.AbstractEventLoop, scanner: MailboxScanner) -> bool:
    """Make the first Ctrl-C stop the scan; the next one raises KeyboardInterrupt."""

    def _on_interrupt() -> None:
        scanner.stop()
        loop.remove_signal_handler(signal.SIGINT)

    try:
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)
    except (NotImplementedError, RuntimeError):
        # Windows loops and non-main threads have no signal handlers
        return False
    return True


async def _run_scan(scanner: MailboxScanner, query: str) -> ScanOutcome:
    loop = asyncio.get_running_loop()
    handles_sigint = _install_interrupt_handler(loop, scanner)

    try:
        with create_progress("Scanning") as progress:
            task = progress.add_task("scan", total=None, pages=0)
            return await scanner.scan(
                query,
                on_record=lambda _record: progress.advance(task),
                on_page=lambda pages: progress.update(task, pages=pages),
            )
    finally:
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)


@cli.command()
@click.option("-q", "--query", default=None, help=f"Gmail search query (default: '{DEFAULT_QUERY}').")
@click.option("-p", "--preset", type=click.Choice(sorted(QUERY_PRESETS)), default=None, help="Use a named query.")
@click.option(
    "--max-pages",
    default=DEFAULT_MAX_PAGES,
    type=click.IntRange(1, MAX_PAGES_LIMIT),
    show_default=True,
    help="Maximum pages of 100 messages to scan.",
)
@click.option(
    "--concurrency",
    default=DEFAULT_CONCURRENCY,
    type=click.IntRange(1, CONCURRENCY_LIMIT),
    show_default=True,
    help="Parallel detail requests.",
)
@timeout_option
@token_option
def scan(
    query: str | None,
    preset: str | None,
    max_pages: int,
    concurrency: int,
    timeout: float | None,
    token: str | None,
) -> None:
    """Scan messages matching a query.

    Press Ctrl-C once to stop after the requests in flight, twice to abort.
    Without --timeout a stalled request can only be aborted.
    """
    if query is not None and preset is not None:
        raise click.UsageError("Use either --query or --preset, not both.")
    if preset is not None:
        query = QUERY_PRESETS[preset]
    elif query is None:
        query = DEFAULT_QUERY

    mailbox = _get_mailbox(token, timeout)
    scanner = MailboxScanner(mailbox, max_pages=max_pages, concurrency=concurrency)

    try:
        outcome = asyncio.run(_run_scan(scanner, query))
    except ScanError as e:
        # keep what was fetched before the failure
        partial = ScanOutcome(
            query=query,
            pages_fetched=e.pages_fetched,
            messages_fetched=e.messages_fetched,
            stopped=True,
        )
        with ScanCache() as cache:
            cache.save_scan(partial, scanner.results.records)
        raise click.ClickException(str(e)) from e

    with ScanCache() as cache:
        cache.save_scan(outcome, scanner.results.records)

    display_scan_outcome(outcome)


@cli.command(name="list")
@click.option(
    "--by",
    type=click.Choice(["sender", "domain", "message"]),
    default="sender",
    show_default=True,
    help="How to group the cached messages.",
)
def list_cmd(by: str) -> None:
    """Show the messages of the last scan."""
    with ScanCache() as cache:
        outcome, results, selection = _load_session(cache)

    console.print(f"[dim]Scan from {outcome.scan_date}: {outcome.query}[/dim]")
    if by == "message":
        display_records(results.records, selection)
    else:
        display_groups(results.records, selection, "email" if by == "sender" else "domain")


@cli.group(name="select")
def select_group() -> None:
    """Change which messages are selected."""


@select_group.command(name="sender")
@click.argument("emails", nargs=-1, required=True)
def select_sender(emails: tuple[str, ...]) -> None:
    """Toggle all messages from the given sender addresses."""
    with ScanCache() as cache:
        _, _, selection = _load_session(cache)
        for email in emails:
            selection.toggle_sender(email)
        cache.save_selection(selection.ids)
    _print_selection(selection)


@select_group.command(name="domain")
@click.argument("domains", nargs=-1, required=True)
def select_domain(domains: tuple[str, ...]) -> None:
    """Toggle all messages from the given domains."""
    with ScanCache() as cache:
        _, _, selection = _load_session(cache)
        for domain in domains:
            selection.toggle_domain(domain)
        cache.save_selection(selection.ids)
    _print_selection(selection)


@select_group.command(name="id")
@click.argument("message_ids", nargs=-1, required=True)
def select_id(message_ids: tuple[str, ...]) -> None:
    """Toggle single messages by id."""
    with ScanCache() as cache:
        _, results, selection = _load_session(cache)
        for message_id in message_ids:
            if message_id not in results:
                console.print(f"[yellow]Unknown message id: {message_id}[/yellow]")
                continue
            selection.toggle(message_id)
        cache.save_selection(selection.ids)
    _print_selection(selection)


@select_group.command(name="inactive")
@click.option(
    "--days",
    default=DEFAULT_INACTIVE_DAYS,
    type=click.IntRange(min=0),
    show_default=True,
    help="Senders silent for longer than this are selected.",
)
def select_inactive(days: int) -> None:
    """Add every message from senders inactive for DAYS."""
    with ScanCache() as cache:
        _, _, selection = _load_session(cache)
        added = selection.select_inactive_senders(days)
        cache.save_selection(selection.ids)
    console.print(f"Selected {added} more messages from senders inactive for >={days} days")
    _print_selection(selection)


@select_group.command(name="all")
def select_all() -> None:
    """Select everything, or clear when everything is already selected."""
    with ScanCache() as cache:
        _, _, selection = _load_session(cache)
        selection.toggle_all()
        cache.save_selection(selection.ids)
    _print_selection(selection)


@select_group.command(name="clear")
def select_clear() -> None:
    """Clear the selection."""
    with ScanCache() as cache:
        _, _, selection = _load_session(cache)
        selection.clear()
        cache.save_selection(selection.ids)
    _print_selection(selection)


@cli.command()
@click.option("--execute", is_flag=True, help="Actually send unsubscribe requests (default is dry-run).")
@click.option("--open-browser", is_flag=True, help="Also open unsubscribe links in the browser.")
@timeout_option
def unsubscribe(execute: bool, open_browser: bool, timeout: float | None) -> None:
    """Unsubscribe from the senders of the selected messages."""
    with ScanCache() as cache:
        _, results, selection = _load_session(cache)

    if not len(selection):
        raise click.ClickException("Select at least one message.")

    dispatcher = UnsubscribeDispatcher(dry_run=not execute, open_links=open_browser, timeout=timeout)
    tally = asyncio.run(dispatcher.dispatch(r for r in results if r.id in selection))
    display_tally(tally)


def _run_batch_action(archive_only: bool, execute: bool, yes: bool, token: str | None) -> None:
    action = "archive" if archive_only else "delete"
    with ScanCache() as cache:
        _, results, selection = _load_session(cache)
        if not len(selection):
            raise click.ClickException("Select at least one message.")

        mailbox = None
        if execute:
            if not yes and not confirm_action(action, len(selection)):
                console.print("[dim]Cancelled.[/dim]")
                return
            mailbox = _get_mailbox(token)

        before = set(results.ids())
        try:
            result = asyncio.run(
                apply_batch_action(mailbox, selection, archive_only=archive_only, dry_run=not execute)
            )
        except BulkActionError as e:
            cache.remove_messages(before - set(results.ids()))
            raise click.ClickException(str(e)) from e
        except SweeperError as e:
            raise click.ClickException(str(e)) from e

        if not result.dry_run:
            cache.remove_messages(result.message_ids)
            save_action_log(result)

    display_action_result(result)


@cli.command()
@click.option("--execute", is_flag=True, help="Actually move messages to trash (default is dry-run).")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@token_option
def delete(execute: bool, yes: bool, token: str | None) -> None:
    """Move the selected messages to trash."""
    _run_batch_action(False, execute, yes, token)


@cli.command()
@click.option("--execute", is_flag=True, help="Actually archive messages (default is dry-run).")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@token_option
def archive(execute: bool, yes: bool, token: str | None) -> None:
    """Remove the selected messages from the inbox."""
    _run_batch_action(True, execute, yes, token)


@cli.command(name="export")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["csv", "json"]),
    default="csv",
    help="Output format.",
)
@click.option("-o", "--output", required=True, help="Output file path.")
def export_cmd(fmt: str, output: str) -> None:
    """Export the last scan to CSV or JSON."""
    with ScanCache() as cache:
        _, results, selection = _load_session(cache)

    export_records(results.records, format=fmt, output_path=output, selected_ids=selection.ids)
    console.print(f"Results saved to {output}")


@cli.command()
def presets() -> None:
    """List the named queries usable with 'scan --preset'."""
    for name, query in QUERY_PRESETS.items():
        console.print(f"[bold]{name}[/bold]: {query}", highlight=False)


@cli.command()
@token_option
def auth(token: str | None) -> None:
    """Check Gmail authentication."""
    mailbox = _get_mailbox(token)
    try:
        profile = asyncio.run(mailbox.get_profile())
    except Exception as e:
        raise click.ClickException(f"Authentication failed: {format_api_error(e)}") from e
    console.print(f"Authenticated as {profile['emailAddress']}")


@cli.group(name="cache")
def cache_group() -> None:
    """Manage the scan cache."""


@cache_group.command(name="info")
def cache_info() -> None:
    """Show cache statistics."""
    with ScanCache() as cache:
        info = cache.get_info()

    if info["last_scan_date"] is None:
        console.print("[dim]Cache is empty.[/dim]")
        return

    console.print(f"[bold]Database size:[/bold] {info['db_file_size'] / 1024:.1f} KB")
    console.print(f"[bold]Last scan:[/bold] {info['last_scan_date']}")
    console.print(f"[bold]Query:[/bold] {info['last_query']}")
    console.print(f"[bold]Senders:[/bold] {info['sender_count']}")
    console.print(f"[bold]Messages:[/bold] {info['message_count']}")
    console.print(f"[bold]Selected:[/bold] {info['selected_count']}")


@cache_group.command(name="clear")
def cache_clear() -> None:
    """Clear the scan cache."""
    with ScanCache() as cache:
        cache.clear()
    console.print("[green]Cache cleared.[/green]")
