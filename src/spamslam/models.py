"""Data models for SpamSlam."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from .constants import ACTION_DELETION, ACTION_KINDS, PAGE_SIZE, SAMPLE_SUBJECTS_LIMIT, SORT_BY_FREQUENCY


def parse_timestamp(value) -> datetime | None:
    """Parse a stored ISO timestamp, returning None for anything unusable."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value:
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class ClassifiedMessage:
    """Sender identity extracted from a single message."""

    domain: str
    address: str
    subject: str = ""
    timestamp: datetime | None = None


@dataclass
class DeletionEmail:
    """A generated data deletion request."""

    subject: str
    body: str

    def to_dict(self) -> dict:
        return {"subject": self.subject, "body": self.body}


@dataclass
class DomainRecord:
    """Aggregated inventory entry for a single sending domain."""

    domain: str
    email_counts: dict[str, int] = field(default_factory=dict)
    message_count: int = 0
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    sample_subjects: list[str] = field(default_factory=list)
    selected: bool = False
    ai: dict[str, str | dict] = field(default_factory=dict)

    @property
    def primary_address(self) -> str | None:
        return next(iter(self.email_counts), None)

    @property
    def actioned(self) -> bool:
        return bool(self.ai)

    def to_dict(self) -> dict:
        return {
            "domain": self.domain,
            "email_counts": dict(self.email_counts),
            "message_count": self.message_count,
            "first_seen": self.first_seen.isoformat() if self.first_seen else None,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "sample_subjects": list(self.sample_subjects),
            "selected": self.selected,
            "ai": dict(self.ai),
        }

    @classmethod
    def from_dict(cls, data) -> DomainRecord | None:
        """Build a record from persisted data.

        Bad fields are dropped or defaulted; message_count is recomputed from
        email_counts.  Returns None when nothing usable is left.
        """
        if not isinstance(data, dict):
            return None
        domain = data.get("domain")
        if not isinstance(domain, str) or not domain.strip():
            return None

        email_counts: dict[str, int] = {}
        raw_counts = data.get("email_counts")
        if isinstance(raw_counts, dict):
            for address, count in raw_counts.items():
                if isinstance(address, str) and isinstance(count, int) and not isinstance(count, bool) and count > 0:
                    email_counts[address.lower()] = email_counts.get(address.lower(), 0) + count
        message_count = sum(email_counts.values())
        if message_count == 0:
            return None

        first_seen = parse_timestamp(data.get("first_seen"))
        last_seen = parse_timestamp(data.get("last_seen"))
        if first_seen and last_seen and first_seen > last_seen:
            first_seen, last_seen = last_seen, first_seen

        raw_subjects = data.get("sample_subjects")
        subjects = []
        if isinstance(raw_subjects, list):
            subjects = [s for s in raw_subjects if isinstance(s, str) and s][:SAMPLE_SUBJECTS_LIMIT]

        ai: dict[str, str | dict] = {}
        raw_ai = data.get("ai")
        if isinstance(raw_ai, dict):
            for kind, artifact in raw_ai.items():
                if kind not in ACTION_KINDS:
                    continue
                if isinstance(artifact, str):
                    ai[kind] = artifact
                elif kind == ACTION_DELETION and isinstance(artifact, dict):
                    ai[kind] = {"subject": str(artifact.get("subject", "")), "body": str(artifact.get("body", ""))}

        return cls(
            domain=domain.strip().lower(),
            email_counts=email_counts,
            message_count=message_count,
            first_seen=first_seen,
            last_seen=last_seen,
            sample_subjects=subjects,
            selected=data.get("selected") is True,
            ai=ai,
        )


@dataclass
class UserProfile:
    """Signed-in identity. No profile means guest mode."""

    email: str
    display_name: str = ""
    avatar_url: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.email


@dataclass
class ViewState:
    """Transient UI state used to project the inventory."""

    query: str = ""
    sort: str = SORT_BY_FREQUENCY
    page: int = 1
    page_size: int = PAGE_SIZE
    select_all: bool = False


@dataclass
class PageView:
    """One rendered page of the inventory."""

    records: list[DomainRecord]
    page: int = 1
    total_pages: int = 1
    filtered_count: int = 0
    guest: bool = False

    @property
    def empty_state(self) -> str | None:
        """Return 'guest', 'no-matches' or None when there is something to show."""
        if self.guest:
            return "guest"
        if not self.records:
            return "no-matches"
        return None

    @property
    def domains(self) -> list[str]:
        return [r.domain for r in self.records]

    def page_numbers(self) -> list[tuple[int, bool]]:
        """Return (page number, is current) pairs for pager controls."""
        return [(n, n == self.page) for n in range(1, self.total_pages + 1)]


@dataclass
class Summary:
    """Headline counts. All zero in guest mode."""

    domain_count: int = 0
    message_count: int = 0
    actioned_count: int = 0

    @property
    def progress(self) -> int:
        if not self.domain_count:
            return 0
        return round(self.actioned_count * 100 / self.domain_count)


@dataclass
class ActionResult:
    """Outcome of one AI action for one domain."""

    domain: str
    ok: bool
    artifact: str | dict | None = None
    error: str | None = None
