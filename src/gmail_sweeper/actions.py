"""Batch delete and archive of selected messages."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from .constants import ACTION_LOG_PATH, BATCH_MODIFY_LIMIT, INBOX_LABEL, TRASH_LABEL
from .exceptions import BulkActionError, NothingSelectedError
from .gmail_client import format_api_error
from .models import ActionResult
from .selection import Selection

logger = logging.getLogger(__name__)


def save_action_log(result: ActionResult, log_path: Path | None = None) -> None:
    """Append an executed action to the audit log."""
    log_path = Path(log_path or ACTION_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    log: list = []
    if log_path.exists():
        with open(log_path) as f:
            try:
                log = json.load(f)
            except json.JSONDecodeError:
                log = []

    log.append(
        {
            "date": datetime.now().isoformat(),
            "action": result.action,
            "total_messages": result.count,
            "message_ids": result.message_ids,
        }
    )

    with open(log_path, "w") as f:
        json.dump(log, f, indent=2)


async def apply_batch_action(
    mailbox,
    selection: Selection,
    archive_only: bool = False,
    dry_run: bool = True,
    callback: Callable[[int, int], None] | None = None,
) -> ActionResult:
    """Trash (or archive) every selected message.

    Archive removes the INBOX label; delete adds TRASH. On success the ids
    are dropped from the scan results and the selection without asking the
    server again. On failure the local state is left as it was for the ids
    of the failing call, and BulkActionError is raised.
    """
    action = "archive" if archive_only else "delete"
    message_ids = selection.ordered_ids()
    if not message_ids:
        raise NothingSelectedError()

    if dry_run:
        logger.info("[dry-run] Would %s %d messages", action, len(message_ids))
        return ActionResult(action=action, count=len(message_ids), dry_run=True, message_ids=message_ids)

    add_labels = [] if archive_only else [TRASH_LABEL]
    remove_labels = [INBOX_LABEL] if archive_only else []

    total_batches = (len(message_ids) + BATCH_MODIFY_LIMIT - 1) // BATCH_MODIFY_LIMIT
    applied: list[str] = []

    for batch_num in range(total_batches):
        chunk = message_ids[batch_num * BATCH_MODIFY_LIMIT:(batch_num + 1) * BATCH_MODIFY_LIMIT]
        try:
            await mailbox.batch_modify(chunk, add_labels=add_labels, remove_labels=remove_labels)
        except Exception as exc:
            logger.debug("batchModify failed", exc_info=True)
            _forget(selection, applied)
            raise BulkActionError(
                f"{action.capitalize()} failed: {format_api_error(exc)}", applied=len(applied)
            ) from exc
        applied.extend(chunk)

        if callback:
            callback(batch_num + 1, total_batches)

    _forget(selection, applied)
    logger.info("%s %d messages", "Archived" if archive_only else "Deleted", len(applied))
    return ActionResult(action=action, count=len(applied), message_ids=applied)


def _forget(selection: Selection, message_ids: list[str]) -> None:
    if message_ids:
        selection.results.remove(message_ids)
        selection.prune()
