"""Test doubles for the Gmail and AI gateways."""

from __future__ import annotations

from datetime import datetime, timezone

from googleapiclient.errors import HttpError


def ts(day: str) -> datetime:
    return datetime.fromisoformat(day).replace(tzinfo=timezone.utc)


def millis(day: str) -> str:
    return str(int(ts(day).timestamp() * 1000))


class _HttpResponse(dict):
    def __init__(self, status: int) -> None:
        super().__init__(status=str(status))
        self.status = status
        self.reason = "error"


def http_error(status: int, content: bytes = b"error") -> HttpError:
    return HttpError(_HttpResponse(status), content)


class FakeAI:
    """AI gateway double: fixed replies per domain, exceptions for failing ones."""

    def __init__(self, replies: dict[str, str] | None = None, failing: set[str] | None = None) -> None:
        self.replies = replies or {}
        self.failing = failing or set()
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        for domain in self.failing:
            if f"for {domain}." in prompt or f"support@{domain}." in prompt:
                raise RuntimeError(f"proxy down for {domain}")
        for domain, reply in self.replies.items():
            if f"for {domain}." in prompt or f"support@{domain}." in prompt:
                return reply
        return "Open account settings and turn off marketing email."


class _Request:
    def __init__(self, func) -> None:
        self._func = func

    def execute(self):
        return self._func()


class FakeBatch:
    def __init__(self, service: FakeGmailService) -> None:
        self.service = service
        self._entries = []

    def add(self, request, callback) -> None:
        self._entries.append((request, callback))

    def execute(self) -> None:
        if self.service.batch_error is not None:
            raise self.service.batch_error
        entries = list(self._entries)
        if self.service.reverse_batches:
            entries.reverse()
        for i, (request, callback) in enumerate(entries):
            try:
                response = request.execute()
            except Exception as exc:  # noqa: BLE001
                callback(str(i), None, exc)
            else:
                callback(str(i), response, None)


class FakeGmailService:
    """Just enough of the Gmail discovery client for listing, fetching and drafting."""

    def __init__(self, messages: dict[str, dict], failing: set[str] | None = None, page_size: int = 2) -> None:
        self.inbox = messages
        self.failing = failing or set()
        self.page_size = page_size
        self.reverse_batches = False
        self.list_calls: list[dict] = []
        self.created_drafts: list[dict] = []
        self.batches = 0
        self.list_error: Exception | None = None
        self.batch_error: Exception | None = None

    # discovery-style chaining
    def users(self):
        return self

    def drafts(self):
        return _Drafts(self)

    def new_batch_http_request(self):
        self.batches += 1
        return FakeBatch(self)

    # users().messages()
    def messages(self):
        return _Messages(self)


class _Messages:
    def __init__(self, service: FakeGmailService) -> None:
        self.service = service

    def list(self, **kwargs):
        self.service.list_calls.append(kwargs)
        if self.service.list_error is not None:
            error = self.service.list_error

            def _fail():
                raise error

            return _Request(_fail)
        ids = list(self.service.inbox)
        start = int(kwargs.get("pageToken") or 0)
        end = start + self.service.page_size
        resp = {"messages": [{"id": i} for i in ids[start:end]]}
        if end < len(ids):
            resp["nextPageToken"] = str(end)
        return _Request(lambda: resp)

    def get(self, userId, id, format, metadataHeaders):  # noqa: A002, N803
        def _fetch():
            if id in self.service.failing:
                raise RuntimeError(f"fetch failed for {id}")
            msg = self.service.inbox[id]
            headers = [{"name": "From", "value": msg["from"]}, {"name": "Subject", "value": msg.get("subject", "")}]
            return {"id": id, "internalDate": msg.get("date"), "payload": {"headers": headers}}

        return _Request(_fetch)


class _Drafts:
    def __init__(self, service: FakeGmailService) -> None:
        self.service = service

    def create(self, userId, body):  # noqa: N803
        self.service.created_drafts.append(body)
        return _Request(lambda: {"id": f"d{len(self.service.created_drafts)}"})
