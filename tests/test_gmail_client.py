"""Tests for the Gmail API helpers."""

import base64
from email import message_from_bytes

import pytest

from helpers import FakeGmailService, http_error
from spamslam import gmail_client
from spamslam.errors import MailGatewayError
from spamslam.gmail_client import build_raw_message, create_draft, fetch_message_headers, list_candidate_message_ids


def test_list_handles_pagination():
    service = FakeGmailService({f"m{i}": {"from": "a@b.com"} for i in range(5)}, page_size=2)
    assert list_candidate_message_ids(service, "welcome") == ["m0", "m1", "m2", "m3", "m4"]
    assert len(service.list_calls) == 3
    assert all(call["q"] == "welcome" for call in service.list_calls)


def test_list_respects_max_results():
    service = FakeGmailService({f"m{i}": {"from": "a@b.com"} for i in range(5)}, page_size=2)
    assert list_candidate_message_ids(service, "welcome", max_results=3) == ["m0", "m1", "m2"]


def test_fetch_headers_reports_errors():
    service = FakeGmailService(
        {"m1": {"from": "A <a@a.com>", "subject": "Hi", "date": "1000"}, "m2": {"from": "b@b.com"}},
        failing={"m2"},
    )
    got, errors = {}, []
    fetch_message_headers(service, ["m1", "m2"], on_message=got.__setitem__, on_error=lambda i, e: errors.append(i))

    assert got == {"m1": {"from": "A <a@a.com>", "subject": "Hi", "internal_date": "1000"}}
    assert errors == ["m2"]


def test_build_raw_message():
    raw = build_raw_message("support@netflix.com", "Delete my data", "Please delete {name}.")
    msg = message_from_bytes(base64.urlsafe_b64decode(raw))
    assert msg["To"] == "support@netflix.com"
    assert msg["Subject"] == "Delete my data"
    assert "Please delete {name}." in msg.get_payload(decode=True).decode()


def test_create_draft():
    service = FakeGmailService({})
    assert create_draft(service, "support@netflix.com", "Delete", "Body") == "d1"
    assert "raw" in service.created_drafts[0]["message"]


def test_create_draft_wraps_http_error(monkeypatch):
    def _fail(service, raw):
        raise http_error(403, b"forbidden")

    monkeypatch.setattr(gmail_client, "_execute_create_draft", _fail)
    with pytest.raises(MailGatewayError):
        create_draft(FakeGmailService({}), "a@b.com", "S", "B")


def test_list_wraps_http_error():
    service = FakeGmailService({"m1": {"from": "a@b.com"}})
    service.list_error = http_error(403, b"forbidden")
    with pytest.raises(MailGatewayError, match="list"):
        list_candidate_message_ids(service, "welcome")


def test_fetch_headers_wraps_batch_failure():
    service = FakeGmailService({"m1": {"from": "a@b.com"}})
    service.batch_error = http_error(403, b"forbidden")
    with pytest.raises(MailGatewayError):
        fetch_message_headers(service, ["m1"], on_message=lambda i, h: None)
