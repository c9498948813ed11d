"""Client for the OpenAI-compatible proxy that writes unsubscribe and deletion text."""

from __future__ import annotations

import json
import logging

import requests
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential

from spamslam.constants import AI_MODEL, AI_TEMPERATURE, AI_TIMEOUT_SECONDS, WORKER_URL
from spamslam.errors import AIGatewayError

logger = logging.getLogger(__name__)


class _RetryableStatus(Exception):
    def __init__(self, status: int, text: str) -> None:
        super().__init__(f"AI proxy returned {status}: {text}")
        self.status = status
        self.text = text


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, (_RetryableStatus, requests.ConnectionError, requests.Timeout))


def extract_reply(payload) -> str:
    """Pull the reply text out of a chat-completions response body."""
    try:
        choice = payload["choices"][0]
    except (KeyError, IndexError, TypeError):
        return json.dumps(payload, indent=2)
    message = choice.get("message") or {}
    return message.get("content") or choice.get("text") or json.dumps(payload, indent=2)


class AIClient:
    """Sends prompts to ``<worker_url>/v1/chat/completions``."""

    def __init__(
        self,
        worker_url: str | None = None,
        model: str = AI_MODEL,
        temperature: float = AI_TEMPERATURE,
        timeout: float = AI_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.worker_url = (worker_url if worker_url is not None else WORKER_URL).rstrip("/")
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.worker_url)

    @retry(
        retry=retry_if_exception(_is_retryable),
        wait=wait_exponential(multiplier=1, min=1, max=20),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _post(self, payload: dict) -> dict:
        resp = self._session.post(
            f"{self.worker_url}/v1/chat/completions",
            json=payload,
            timeout=self.timeout,
        )
        if resp.status_code == 429 or resp.status_code >= 500:
            raise _RetryableStatus(resp.status_code, resp.text)
        if not resp.ok:
            raise AIGatewayError(f"AI proxy error: {resp.status_code} {resp.text}")
        return resp.json()

    def generate(self, prompt: str) -> str:
        """Return the model's reply to ``prompt``.

        Raises AIGatewayError for a missing worker URL, transport failures,
        error statuses and non-JSON responses.
        """
        if not self.configured:
            raise AIGatewayError("No AI worker URL configured. Set SPAMSLAM_WORKER_URL or pass --worker-url.")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        try:
            body = self._post(payload)
        except _RetryableStatus as exc:
            raise AIGatewayError(f"AI proxy error: {exc.status} {exc.text}") from exc
        except ValueError as exc:
            raise AIGatewayError("AI proxy returned a non-JSON response") from exc
        except requests.RequestException as exc:
            raise AIGatewayError(f"AI proxy unreachable: {exc}") from exc

        reply = extract_reply(body)
        logger.debug("AI reply (%d chars)", len(reply))
        return reply
