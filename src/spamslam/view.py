"""Search, sort and pagination of the domain inventory."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from .constants import PAGE_SIZE, SORT_ALPHABETICAL, SORT_BY_FREQUENCY, SORT_BY_RECENCY
from .models import DomainRecord, PageView, ViewState

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def filter_records(records: list[DomainRecord], query: str | None) -> list[DomainRecord]:
    """Keep records whose domain, sender addresses or sample subjects contain the query."""
    q = (query or "").strip().lower()
    if not q:
        return list(records)

    def _matches(record: DomainRecord) -> bool:
        if q in record.domain.lower():
            return True
        if any(q in address.lower() for address in record.email_counts):
            return True
        return q in " ".join(record.sample_subjects).lower()

    return [r for r in records if _matches(r)]


def _recency_key(record: DomainRecord) -> datetime:
    ts = record.last_seen
    if not isinstance(ts, datetime):
        return _EARLIEST
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def sort_records(records: list[DomainRecord], mode: str) -> list[DomainRecord]:
    """Sort records for display. Ties keep their incoming order."""
    if mode == SORT_BY_FREQUENCY:
        return sorted(records, key=lambda r: r.message_count, reverse=True)
    if mode == SORT_BY_RECENCY:
        return sorted(records, key=_recency_key, reverse=True)
    if mode == SORT_ALPHABETICAL:
        return sorted(records, key=lambda r: r.domain.casefold())
    return list(records)


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(page, pages))


def project(records: list[DomainRecord], state: ViewState, signed_in: bool) -> PageView:
    """Project the inventory into the page the user is looking at.

    The clamped page number is written back to ``state`` so a narrowed search
    never leaves the view pointing past the last page.  Guests always get an
    empty page, whatever is held in memory.
    """
    if not signed_in:
        state.page = 1
        return PageView(records=[], page=1, total_pages=1, filtered_count=0, guest=True)

    items = sort_records(filter_records(records, state.query), state.sort)
    pages = total_pages(len(items), state.page_size)
    state.page = clamp_page(state.page, pages)

    start = (state.page - 1) * state.page_size
    return PageView(
        records=items[start:start + state.page_size],
        page=state.page,
        total_pages=pages,
        filtered_count=len(items),
    )
