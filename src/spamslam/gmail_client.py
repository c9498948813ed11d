"""Gmail API client functions for listing, fetching and drafting messages."""

from __future__ import annotations

import base64
import logging
from email.message import EmailMessage
from typing import Callable

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import BatchHttpRequest
from tenacity import before_sleep_log, retry, retry_if_exception, stop_after_attempt, wait_exponential

from spamslam.constants import FETCH_BATCH_SIZE, LIST_PAGE_SIZE, METADATA_HEADERS
from spamslam.errors import MailGatewayError
from spamslam.models import UserProfile

logger = logging.getLogger(__name__)


def _is_retryable_http_error(exc: BaseException) -> bool:
    return isinstance(exc, HttpError) and exc.resp.status in (429, 500, 503)


def list_candidate_message_ids(
    service,
    query: str,
    max_results: int | None = None,
) -> list[str]:
    """List message IDs matching the query, handling pagination."""
    ids: list[str] = []
    page_token: str | None = None

    while True:
        page_size = LIST_PAGE_SIZE
        if max_results:
            page_size = min(page_size, max_results - len(ids))
        kwargs: dict = {"userId": "me", "q": query, "maxResults": page_size, "fields": "messages/id,nextPageToken"}
        if page_token:
            kwargs["pageToken"] = page_token

        try:
            resp = service.users().messages().list(**kwargs).execute()
        except HttpError as exc:
            raise MailGatewayError(f"Could not list messages: {exc}") from exc
        for msg in resp.get("messages", []):
            ids.append(msg["id"])
            if max_results and len(ids) >= max_results:
                return ids[:max_results]

        page_token = resp.get("nextPageToken")
        if not page_token:
            break

    return ids


@retry(
    retry=retry_if_exception(_is_retryable_http_error),
    wait=wait_exponential(multiplier=1, min=1, max=60),
    stop=stop_after_attempt(5),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
def _execute_batch(batch: BatchHttpRequest) -> None:
    batch.execute()


def _headers_of(response: dict) -> dict[str, str]:
    headers = {}
    for h in response.get("payload", {}).get("headers", []):
        headers[h.get("name", "").lower()] = h.get("value", "")
    return headers


def fetch_message_headers(
    service,
    message_ids: list[str],
    on_message: Callable[[str, dict], None],
    on_error: Callable[[str, Exception], None] | None = None,
    callback: Callable[[int, int], None] | None = None,
    batch_size: int = FETCH_BATCH_SIZE,
) -> None:
    """Fetch From/Subject/internalDate for messages in batches.

    ``on_message(msg_id, {"from", "subject", "internal_date"})`` is called as
    each response arrives; responses within a batch complete in any order.
    A message that fails to fetch is reported to ``on_error`` and skipped.
    ``callback(batch_num, total_batches)`` runs after every batch.
    """
    total_batches = (len(message_ids) + batch_size - 1) // batch_size

    for batch_num in range(total_batches):
        chunk = message_ids[batch_num * batch_size:(batch_num + 1) * batch_size]
        batch = service.new_batch_http_request()

        def _make_callback(msg_id: str):
            def _cb(request_id, response, exception):
                if exception is not None:
                    if on_error:
                        on_error(msg_id, exception)
                    return
                headers = _headers_of(response or {})
                on_message(
                    msg_id,
                    {
                        "from": headers.get("from", ""),
                        "subject": headers.get("subject", ""),
                        "internal_date": (response or {}).get("internalDate"),
                    },
                )

            return _cb

        for msg_id in chunk:
            batch.add(
                service.users().messages().get(
                    userId="me",
                    id=msg_id,
                    format="metadata",
                    metadataHeaders=METADATA_HEADERS,
                ),
                callback=_make_callback(msg_id),
            )

        try:
            _execute_batch(batch)
        except HttpError as exc:
            raise MailGatewayError(f"Batch {batch_num + 1} of {total_batches} failed: {exc}") from exc

        if callback:
            callback(batch_num + 1, total_batches)


def build_raw_message(to: str, subject: str, body: str) -> str:
    """Return a base64url-encoded RFC 2822 message for the Gmail API."""
    message = EmailMessage()
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii")


@retry(
    retry=retry_if_exception(_is_retryable_http_error),
    wait=wait_exponential(multiplier=1, min=1, max=60),
    stop=stop_after_attempt(3),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
def _execute_create_draft(service, raw: str) -> dict:
    return service.users().drafts().create(userId="me", body={"message": {"raw": raw}}).execute()


def create_draft(service, to: str, subject: str, body: str) -> str:
    """Create a Gmail draft and return its ID."""
    try:
        resp = _execute_create_draft(service, build_raw_message(to, subject, body))
    except HttpError as exc:
        raise MailGatewayError(f"Draft creation failed: {exc}") from exc
    return resp.get("id", "")


def get_user_profile(creds) -> UserProfile:
    """Fetch the signed-in user's profile from the OAuth2 userinfo endpoint."""
    try:
        info = build("oauth2", "v2", credentials=creds).userinfo().get().execute()
    except HttpError as exc:
        raise MailGatewayError(f"Failed to fetch profile: {exc}") from exc
    email = info.get("email")
    if not email:
        raise MailGatewayError("Profile response has no email address.")
    return UserProfile(
        email=email.lower(),
        display_name=info.get("name", ""),
        avatar_url=info.get("picture", ""),
    )
