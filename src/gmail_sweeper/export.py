"""Export scanned messages to CSV or JSON."""

import csv
import json

from .models import MessageRecord

_FIELDNAMES = [
    "id",
    "email",
    "domain",
    "sender",
    "subject",
    "date",
    "timestamp",
    "one_click",
    "unsubscribe",
    "selected",
]


def _row(record: MessageRecord, selected: bool) -> dict:
    return {
        "id": record.id,
        "email": record.email,
        "domain": record.domain,
        "sender": record.sender,
        "subject": record.subject,
        "date": record.date,
        "timestamp": record.timestamp,
        "one_click": record.one_click,
        "unsubscribe": [d.url for d in record.directives],
        "selected": selected,
    }


def export_records(
    records: list[MessageRecord],
    format: str,
    output_path: str,
    selected_ids: set[str] | None = None,
) -> None:
    """Export scanned messages to a file.

    Args:
        records: The messages to export.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
        selected_ids: Ids to flag as selected.
    """
    selected_ids = selected_ids or set()
    rows = [_row(r, r.id in selected_ids) for r in records]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=_FIELDNAMES)
            writer.writeheader()
            for row in rows:
                writer.writerow({**row, "unsubscribe": " ".join(row["unsubscribe"])})
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)
    else:
        raise ValueError(f"Unsupported export format: {format}")
