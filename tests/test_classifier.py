"""Tests for sender extraction and the scan query policy."""

from datetime import datetime, timezone

from spamslam.classifier import (
    build_scan_query,
    classify_message,
    derive_domain,
    extract_sender_address,
    parse_internal_date,
)


def test_extract_address_from_display_name():
    assert extract_sender_address("Netflix <Info@Netflix.com>") == "info@netflix.com"


def test_extract_bare_address():
    assert extract_sender_address("no-reply@spotify.com") == "no-reply@spotify.com"


def test_extract_falls_back_to_raw_header():
    """Without an address pattern the raw header, lowercased, is the address."""
    assert extract_sender_address("Mailer Daemon") == "mailer daemon"


def test_extract_empty_and_malformed():
    assert extract_sender_address("") == ""
    assert extract_sender_address(None) == ""
    assert extract_sender_address(42) == ""


def test_derive_domain_strips_www():
    assert derive_domain("hello@www.Example.COM") == "example.com"


def test_derive_domain_keeps_subdomains():
    assert derive_domain("news@mail.store1.example.com") == "mail.store1.example.com"


def test_derive_domain_without_at():
    assert derive_domain("mailer daemon") == "mailer daemon"
    assert derive_domain("www.example.com") == "example.com"
    assert derive_domain("") == ""


def test_parse_internal_date():
    assert parse_internal_date("1700000000000") == datetime.fromtimestamp(1700000000, tz=timezone.utc)
    assert parse_internal_date(1700000000000) == datetime.fromtimestamp(1700000000, tz=timezone.utc)


def test_parse_internal_date_bad_values():
    assert parse_internal_date(None) is None
    assert parse_internal_date("") is None
    assert parse_internal_date("yesterday") is None


def test_classify_message():
    msg = classify_message('"Uber Receipts" <uber.us@uber.com>', "  Your trip  ", "1700000000000")
    assert msg.address == "uber.us@uber.com"
    assert msg.domain == "uber.com"
    assert msg.subject == "Your trip"
    assert msg.timestamp is not None


def test_classify_message_never_raises_on_garbage():
    msg = classify_message(None, None, "not-a-date")
    assert msg.address == ""
    assert msg.domain == ""
    assert msg.subject == ""
    assert msg.timestamp is None


def test_scan_query_policy():
    query = build_scan_query()
    assert query.startswith("(welcome OR ")
    assert "unsubscribe" in query
    assert '"verify your"' in query
    assert query.endswith("newer_than:365d")


def test_scan_query_custom_markers():
    assert build_scan_query(["a", "b"], newer_than_days=30) == "(a OR b) newer_than:30d"
