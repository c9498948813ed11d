"""Export the domain inventory to CSV or JSON."""

import csv
import json

from .constants import ACTION_DELETION, ACTION_UNSUBSCRIBE
from .models import DomainRecord
from .view import sort_records


def _row(record: DomainRecord) -> dict:
    return {
        "domain": record.domain,
        "message_count": record.message_count,
        "senders": list(record.email_counts),
        "first_seen": record.first_seen.isoformat() if record.first_seen else "",
        "last_seen": record.last_seen.isoformat() if record.last_seen else "",
        "sample_subjects": record.sample_subjects,
        "unsubscribe": ACTION_UNSUBSCRIBE in record.ai,
        "deletion": ACTION_DELETION in record.ai,
    }


def export_inventory(records: list[DomainRecord], format: str, output_path: str, sort: str) -> int:
    """Export records to a file, returning the number of rows written.

    Args:
        records: The inventory to export.
        format: Output format, either 'csv' or 'json'.
        output_path: Path to write the output file.
        sort: One of the view sort modes.
    """
    rows = [_row(r) for r in sort_records(records, sort)]

    if format == "csv":
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(
                f,
                fieldnames=[
                    "domain",
                    "message_count",
                    "senders",
                    "first_seen",
                    "last_seen",
                    "sample_subjects",
                    "unsubscribe",
                    "deletion",
                ],
            )
            writer.writeheader()
            for row in rows:
                writer.writerow(
                    {
                        **row,
                        "senders": "; ".join(row["senders"]),
                        "sample_subjects": "; ".join(row["sample_subjects"]),
                    }
                )
    elif format == "json":
        with open(output_path, "w") as f:
            json.dump(rows, f, indent=2)
    else:
        raise ValueError(f"Unsupported export format: {format!r}")

    return len(rows)
