"""Tests for the AI proxy client."""

import pytest
import requests

from spamslam.ai_client import AIClient, extract_reply
from spamslam.errors import AIGatewayError


class _Response:
    def __init__(self, status_code: int, body=None, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class _Session:
    def __init__(self, responses) -> None:
        self.responses = list(responses)
        self.calls = []

    def post(self, url, json, timeout):  # noqa: A002
        self.calls.append((url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_generate_posts_chat_completion():
    session = _Session([_Response(200, {"choices": [{"message": {"content": "Step 1: log in"}}]})])
    client = AIClient(worker_url="https://proxy.example.dev/", session=session)

    assert client.generate("How do I unsubscribe?") == "Step 1: log in"
    url, payload = session.calls[0]
    assert url == "https://proxy.example.dev/v1/chat/completions"
    assert payload["model"] == "gpt-4o-mini"
    assert payload["temperature"] == 0.2
    assert payload["messages"] == [{"role": "user", "content": "How do I unsubscribe?"}]


def test_generate_without_worker_url():
    with pytest.raises(AIGatewayError):
        AIClient(worker_url="").generate("hi")


def test_generate_client_error():
    client = AIClient(worker_url="https://proxy.example.dev", session=_Session([_Response(400, text="bad request")]))
    with pytest.raises(AIGatewayError, match="400"):
        client.generate("hi")


def test_generate_transport_error(monkeypatch):
    monkeypatch.setattr(AIClient._post.retry, "sleep", lambda _: None)
    session = _Session([requests.ConnectionError("refused")] * 3)
    with pytest.raises(AIGatewayError, match="unreachable"):
        AIClient(worker_url="https://proxy.example.dev", session=session).generate("hi")
    assert len(session.calls) == 3


def test_generate_retries_server_errors(monkeypatch):
    monkeypatch.setattr(AIClient._post.retry, "sleep", lambda _: None)
    session = _Session([_Response(503, text="busy"), _Response(200, {"choices": [{"text": "ok"}]})])
    assert AIClient(worker_url="https://proxy.example.dev", session=session).generate("hi") == "ok"


def test_generate_non_json():
    session = _Session([_Response(200, None, text="<html>")])
    with pytest.raises(AIGatewayError, match="non-JSON"):
        AIClient(worker_url="https://proxy.example.dev", session=session).generate("hi")


def test_extract_reply_fallbacks():
    assert extract_reply({"choices": [{"message": {"content": "a"}}]}) == "a"
    assert extract_reply({"choices": [{"text": "b"}]}) == "b"
    assert '"error"' in extract_reply({"error": "nope"})
