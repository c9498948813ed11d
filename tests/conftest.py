"""Shared fixtures for tests."""

from __future__ import annotations

import pytest

from helpers import ts
from spamslam.models import DomainRecord, UserProfile
from spamslam.session import Session
from spamslam.store import InventoryStore


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(email="me@example.com", display_name="Michael", avatar_url="https://example.com/me.png")


@pytest.fixture
def store(tmp_path):
    with InventoryStore(db_path=tmp_path / "inventory.db") as s:
        yield s


@pytest.fixture
def netflix_record() -> DomainRecord:
    return DomainRecord(
        domain="netflix.com",
        email_counts={"info@netflix.com": 10, "news@netflix.com": 8},
        message_count=18,
        first_seen=ts("2023-02-01"),
        last_seen=ts("2025-11-10"),
        sample_subjects=["Welcome to Netflix", "Account update"],
    )


@pytest.fixture
def spotify_record() -> DomainRecord:
    return DomainRecord(
        domain="spotify.com",
        email_counts={"no-reply@spotify.com": 9},
        message_count=9,
        first_seen=ts("2024-01-12"),
        last_seen=ts("2025-07-02"),
        sample_subjects=["Your Weekly Mix", "Try Premium"],
    )


@pytest.fixture
def signed_in_session(store, profile, netflix_record, spotify_record) -> Session:
    session = Session(store)
    session.sign_in(lambda: profile)
    session.aggregator.load_records([netflix_record, spotify_record])
    session.save()
    return session
