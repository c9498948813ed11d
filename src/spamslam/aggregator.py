"""Domain aggregation - groups classified messages into DomainRecords."""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Iterable

from .constants import SAMPLE_SUBJECTS_LIMIT
from .models import ClassifiedMessage, DomainRecord


class DomainAggregator:
    """Owns the per-domain inventory for the current scan.

    Every scan starts with reset(), which opens a new generation.  Callers
    that pass the generation token to attribute() get late updates from a
    superseded scan dropped instead of merged.
    """

    def __init__(self) -> None:
        self._records: dict[str, DomainRecord] = {}
        self._generations = itertools.count(1)
        self._generation = next(self._generations)

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self) -> int:
        """Clear all records and return the token of the new generation."""
        self._records = {}
        self._generation = next(self._generations)
        return self._generation

    def load_records(self, records: Iterable[DomainRecord]) -> None:
        """Replace the inventory with previously saved records."""
        self.reset()
        for record in records:
            self._records[record.domain] = record

    def attribute(
        self,
        domain: str,
        address: str,
        subject: str | None = None,
        timestamp: datetime | None = None,
        generation: int | None = None,
    ) -> bool:
        """Count one message against its domain, creating the record if needed.

        Returns False when the update belongs to a superseded generation and
        was discarded.
        """
        if generation is not None and generation != self._generation:
            return False

        record = self._records.get(domain)
        if record is None:
            record = DomainRecord(domain=domain)
            self._records[domain] = record

        record.message_count += 1
        record.email_counts[address] = record.email_counts.get(address, 0) + 1

        if timestamp is not None:
            if record.first_seen is None or timestamp < record.first_seen:
                record.first_seen = timestamp
            if record.last_seen is None or timestamp > record.last_seen:
                record.last_seen = timestamp

        if subject and len(record.sample_subjects) < SAMPLE_SUBJECTS_LIMIT:
            record.sample_subjects.append(subject)

        return True

    def attribute_message(self, message: ClassifiedMessage, generation: int | None = None) -> bool:
        return self.attribute(
            message.domain,
            message.address,
            message.subject,
            message.timestamp,
            generation=generation,
        )

    # --- queries ---

    def get(self, domain: str) -> DomainRecord | None:
        return self._records.get(domain)

    def records(self) -> list[DomainRecord]:
        return list(self._records.values())

    def record_count(self) -> int:
        return len(self._records)

    def total_message_count(self) -> int:
        return sum(r.message_count for r in self._records.values())

    def __contains__(self, domain: object) -> bool:
        return domain in self._records

    def __len__(self) -> int:
        return len(self._records)
