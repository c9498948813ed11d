"""Selection and bulk AI actions - unsubscribe steps, deletion requests, drafts."""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Callable, Protocol

from .constants import ACTION_DELETION, ACTION_KINDS, ACTION_UNSUBSCRIBE, AI_THROTTLE_SECONDS
from .errors import (
    ArtifactMissingError,
    ArtifactUnparseableError,
    NotConnectedError,
    NothingSelectedError,
    UnknownActionError,
    UnknownDomainError,
)
from .models import ActionResult, DeletionEmail, PageView
from .session import Session

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


def build_prompt(kind: str, domain: str) -> str:
    """Return the prompt sent to the AI proxy for one domain."""
    if kind == ACTION_UNSUBSCRIBE:
        return (
            f"Provide short step-by-step unsubscribe instructions for {domain}. "
            f"If none exist, suggest contacting support@{domain} or visiting "
            f"{domain}/account -> email preferences."
        )
    if kind == ACTION_DELETION:
        return (
            f"Create a polite GDPR-style data deletion request to support@{domain}. "
            'Output JSON with keys "subject" and "body". Use placeholders {name} and {email}.'
        )
    raise UnknownActionError(kind)


def parse_deletion_reply(text) -> DeletionEmail | None:
    """Parse a deletion reply into subject/body, or None if it is not usable JSON."""
    if isinstance(text, dict):
        data = text
    elif isinstance(text, str):
        raw = text.strip()
        m = _FENCE_RE.match(raw)
        if m:
            raw = m.group(1)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return None
    else:
        return None

    if not isinstance(data, dict):
        return None
    subject, body = data.get("subject"), data.get("body")
    if not isinstance(subject, str) or not isinstance(body, str) or not subject or not body:
        return None
    return DeletionEmail(subject=subject, body=body)


def draft_recipient(record) -> str:
    return record.primary_address or f"support@{record.domain}"


class SelectionCoordinator:
    """Drives selection and side-effecting actions against the session's records."""

    def __init__(
        self,
        session: Session,
        ai_client: TextGenerator | None = None,
        create_draft: Callable[[str, str, str], str] | None = None,
        throttle: float = AI_THROTTLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.ai_client = ai_client
        self._create_draft = create_draft
        self.throttle = throttle
        self._sleep = sleep

    def _record(self, domain: str):
        record = self.session.get_record(domain)
        if record is None:
            raise UnknownDomainError(domain)
        return record

    # --- selection ---

    def toggle(self, domain: str, selected: bool | None = None) -> bool:
        """Set (or flip) the selection of exactly one domain. Returns the new state."""
        self.session.require_signed_in()
        record = self._record(domain)
        record.selected = (not record.selected) if selected is None else selected
        return record.selected

    def select_page(self, page: PageView, checked: bool) -> list[str]:
        """Apply select-all to the records on the given page only."""
        self.session.require_signed_in()
        for record in page.records:
            record.selected = checked
        self.session.view_state.select_all = checked
        return page.domains

    def page_selection_state(self, page: PageView) -> str:
        """Return 'all', 'some' or 'none' for the select-all control."""
        if not page.records:
            return "none"
        checked = sum(1 for r in page.records if r.selected)
        if checked == len(page.records):
            return "all"
        return "some" if checked else "none"

    def selected_domains(self) -> list[str]:
        if not self.session.signed_in:
            return []
        return [r.domain for r in self.session.aggregator.records() if r.selected]

    def clear_selection(self) -> None:
        for record in self.session.aggregator.records():
            record.selected = False
        self.session.view_state.select_all = False

    # --- AI actions ---

    def run_action(self, kind: str, domains: list[str] | None = None) -> dict[str, ActionResult]:
        """Generate unsubscribe steps or deletion requests for each domain.

        Defaults to the selected domains.  Every domain is attempted; a
        failure is recorded for that domain alone.
        """
        self.session.require_signed_in()
        if kind not in ACTION_KINDS:
            raise UnknownActionError(kind)
        domains = list(domains) if domains is not None else self.selected_domains()
        if not domains:
            raise NothingSelectedError()

        results: dict[str, ActionResult] = {}
        for i, domain in enumerate(domains):
            if i and self.throttle:
                self._sleep(self.throttle)
            results[domain] = self._run_one(kind, domain)

        self.session.save()
        return results

    def _run_one(self, kind: str, domain: str) -> ActionResult:
        record = self.session.get_record(domain)
        if record is None:
            return ActionResult(domain=domain, ok=False, error=f"Unknown domain: {domain}")
        if self.ai_client is None:
            return ActionResult(domain=domain, ok=False, error="AI error: no AI client configured")

        try:
            reply = self.ai_client.generate(build_prompt(kind, record.domain))
        except Exception as exc:
            logger.warning("AI %s failed for %s: %s", kind, domain, exc)
            return ActionResult(domain=domain, ok=False, error=f"AI error: {exc}")

        artifact: str | dict = reply
        if kind == ACTION_DELETION:
            parsed = parse_deletion_reply(reply)
            if parsed is not None:
                artifact = parsed.to_dict()
        record.ai[kind] = artifact
        return ActionResult(domain=domain, ok=True, artifact=artifact)

    # --- drafts ---

    def create_draft_for(self, domain: str) -> str:
        """Create a Gmail draft from the stored deletion request. Returns the recipient."""
        self.session.require_signed_in()
        record = self._record(domain)
        artifact = record.ai.get(ACTION_DELETION)
        if artifact is None:
            raise ArtifactMissingError(record.domain)
        email = parse_deletion_reply(artifact)
        if email is None:
            raise ArtifactUnparseableError(record.domain)
        if self._create_draft is None:
            raise NotConnectedError()

        to = draft_recipient(record)
        self._create_draft(to, email.subject, email.body)
        return to
