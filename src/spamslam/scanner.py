"""Scan orchestration - lists signup-like mail, fetches headers, groups by domain."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .classifier import build_scan_query, classify_message
from .constants import BATCH_PAUSE_SECONDS, FETCH_BATCH_SIZE, MAX_SCAN_RESULTS
from .display import console, create_progress
from .gmail_client import fetch_message_headers, list_candidate_message_ids
from .session import Session

logger = logging.getLogger(__name__)


def scan_mailbox(
    service,
    session: Session,
    query: str | None = None,
    max_results: int = MAX_SCAN_RESULTS,
    on_batch: Callable[[int, int], None] | None = None,
    pause: float = BATCH_PAUSE_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    """Run a full scan, replacing the session's inventory.

    Messages that fail to fetch are skipped.  Responses that arrive after a
    newer scan has reset the aggregator are dropped.  Returns a summary dict
    with keys: listed, attributed, skipped, stale.
    """
    session.require_signed_in()
    aggregator = session.aggregator
    generation = aggregator.reset()
    session.view_state.page = 1
    session.view_state.select_all = False
    query = query or build_scan_query()
    stats = {"listed": 0, "attributed": 0, "skipped": 0, "stale": 0}

    def _on_message(msg_id: str, headers: dict) -> None:
        message = classify_message(headers.get("from"), headers.get("subject"), headers.get("internal_date"))
        if aggregator.attribute_message(message, generation=generation):
            stats["attributed"] += 1
        else:
            stats["stale"] += 1

    def _on_error(msg_id: str, exc: Exception) -> None:
        stats["skipped"] += 1
        logger.warning("Skipping message %s: %s", msg_id, exc)

    def _after_batch(batch_num: int, total: int) -> None:
        if on_batch:
            on_batch(batch_num, total)
        if batch_num < total and pause:
            sleep(pause)

    ids = list_candidate_message_ids(service, query=query, max_results=max_results)
    stats["listed"] = len(ids)

    if ids:
        fetch_message_headers(
            service,
            ids,
            on_message=_on_message,
            on_error=_on_error,
            callback=_after_batch,
            batch_size=FETCH_BATCH_SIZE,
        )

    if generation == aggregator.generation:
        session.save()
    return stats


def run_scan_with_progress(service, session: Session) -> dict:
    """Interactive wrapper around scan_mailbox with a rich progress bar."""
    console.print("[bold]Scanning inbox[/bold] - this may take a minute")
    with create_progress("Fetching messages") as progress:
        task = progress.add_task("fetching", total=None)

        def on_batch(batch_num: int, total: int) -> None:
            progress.update(
                task,
                completed=batch_num,
                total=total,
                description=f"{session.aggregator.record_count()} companies so far",
            )

        stats = scan_mailbox(service, session, on_batch=on_batch)

    if not stats["listed"]:
        console.print("[yellow]No signup-like messages found in the last 365 days.[/yellow]")
    else:
        console.print(
            f"Scan complete - found [bold]{session.aggregator.record_count()}[/bold] companies "
            f"in {stats['attributed']} messages"
            + (f" ([dim]{stats['skipped']} skipped[/dim])" if stats["skipped"] else "")
        )
    return stats
