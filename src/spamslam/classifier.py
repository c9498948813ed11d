"""Sender extraction and the inbox query policy for signup-like mail."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from .constants import SCAN_NEWER_THAN_DAYS, SIGNUP_MARKERS
from .models import ClassifiedMessage

_ADDRESS_RE = re.compile(r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}")


def build_scan_query(
    markers: list[str] | None = None,
    newer_than_days: int = SCAN_NEWER_THAN_DAYS,
) -> str:
    """Build the Gmail search query that decides which messages are scanned.

    Inclusion is decided here and only here; the classifier never drops a
    message, it only attributes it to a domain.
    """
    markers = markers if markers is not None else SIGNUP_MARKERS
    return f"({' OR '.join(markers)}) newer_than:{newer_than_days}d"


def extract_sender_address(from_value: str | None) -> str:
    """Return the lowercased sender address from a From header.

    Handles formats like:
      "Netflix <info@netflix.com>" -> "info@netflix.com"
      "info@netflix.com"           -> "info@netflix.com"
      "Mailer Daemon"              -> "mailer daemon"
    """
    if not from_value or not isinstance(from_value, str):
        return ""
    m = _ADDRESS_RE.search(from_value)
    if m:
        return m.group(0).lower()
    return from_value.strip().lower()


def derive_domain(address: str) -> str:
    """Return the grouping domain for an address.

    Without an '@' the whole string is the domain.
    """
    if "@" in address:
        domain = address.split("@", 1)[1]
    else:
        domain = address
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


def parse_internal_date(value) -> datetime | None:
    """Convert Gmail's internalDate (epoch milliseconds) to an aware datetime."""
    if value is None or value == "":
        return None
    try:
        millis = int(value)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def classify_message(
    from_value: str | None,
    subject: str | None,
    internal_date=None,
) -> ClassifiedMessage:
    """Extract sender identity from one message's headers. Never raises."""
    address = extract_sender_address(from_value)
    return ClassifiedMessage(
        domain=derive_domain(address),
        address=address,
        subject=(subject or "").strip() if isinstance(subject, str) else "",
        timestamp=parse_internal_date(internal_date),
    )
