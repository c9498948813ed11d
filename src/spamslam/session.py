"""Session state: identity, inventory and view state held in one owned object."""

from __future__ import annotations

import logging
from typing import Callable

from .aggregator import DomainAggregator
from .constants import SORT_MODES
from .errors import NotSignedInError
from .models import DomainRecord, PageView, Summary, UserProfile, ViewState
from .store import InventoryStore
from .view import project

logger = logging.getLogger(__name__)


class Session:
    """Everything one dashboard session owns.

    The aggregator is the only writer of domain counts; view state is only
    written through the set_* methods.  Guest mode (no profile) renders as
    zero counts and an empty page even if records are loaded.
    """

    def __init__(self, store: InventoryStore | None = None) -> None:
        self.store = store
        self.profile: UserProfile | None = None
        self.aggregator = DomainAggregator()
        self.view_state = ViewState()

    @property
    def signed_in(self) -> bool:
        return self.profile is not None

    def require_signed_in(self) -> UserProfile:
        if self.profile is None:
            raise NotSignedInError()
        return self.profile

    # --- identity ---

    def sign_in(self, fetch_profile: Callable[[], UserProfile]) -> UserProfile:
        """Establish an identity and restore its saved inventory.

        If the profile fetch fails the session stays in guest mode and the
        error propagates.
        """
        try:
            profile = fetch_profile()
        except Exception:
            self.sign_out()
            raise
        self.profile = profile
        self.view_state = ViewState()
        self.aggregator.load_records(self._load_saved(profile.email))
        if self.store is not None:
            self.store.set_active_identity(profile.email)
            self.save()
        logger.info("Signed in as %s", profile.email)
        return profile

    def resume(self) -> bool:
        """Restore the last active identity from the store, if any."""
        if self.store is None:
            return False
        identity = self.store.get_active_identity()
        if not identity:
            return False
        self.profile = self.store.load_profile(identity) or UserProfile(email=identity)
        self.aggregator.load_records(self._load_saved(identity))
        return True

    def sign_out(self) -> None:
        """Return to guest mode. The saved inventory is kept for the next sign-in."""
        self.profile = None
        self.aggregator.reset()
        self.view_state = ViewState()
        if self.store is not None:
            self.store.clear_active_identity()

    def _load_saved(self, identity: str) -> list[DomainRecord]:
        if self.store is None:
            return []
        return self.store.load(identity) or []

    def save(self) -> None:
        """Snapshot the full inventory for the current identity."""
        if self.store is None or self.profile is None:
            return
        self.store.save(self.profile.email, self.aggregator.records(), profile=self.profile)

    # --- view inputs ---

    def set_query(self, query: str) -> None:
        self.view_state.query = (query or "").strip()
        self.view_state.page = 1

    def set_sort(self, mode: str) -> None:
        if mode not in SORT_MODES:
            raise ValueError(f"Unknown sort mode: {mode!r}")
        self.view_state.sort = mode
        self.view_state.page = 1

    def set_page(self, page: int) -> None:
        self.view_state.page = page

    # --- render outputs ---

    def summary(self) -> Summary:
        if not self.signed_in:
            return Summary()
        records = self.aggregator.records()
        return Summary(
            domain_count=self.aggregator.record_count(),
            message_count=self.aggregator.total_message_count(),
            actioned_count=sum(1 for r in records if r.actioned),
        )

    def page(self) -> PageView:
        return project(self.aggregator.records(), self.view_state, self.signed_in)

    def get_record(self, domain: str) -> DomainRecord | None:
        if not self.signed_in:
            return None
        return self.aggregator.get(domain.strip().lower())
