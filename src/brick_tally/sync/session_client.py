"""One collaborator's live view of a shared session.

Each client runs two paths on a single event loop:

* the action path: compute a clamped value, apply it to the local
  ledger immediately (optimistic), then send the delta to the
  repository;
* the delivery path: remote changes arrive through the realtime
  channel and go through the client's :class:`SyncReconciler`.

A failed write is reported to the caller and logged, but the
optimistic local value is kept; ``refresh()`` reloads the stored
state when the caller wants to repair a divergence.
"""

import logging
import secrets
from typing import Callable, Optional

from brick_tally.config import Config
from brick_tally.core.counter import clear_delta, complete_delta, next_value
from brick_tally.core.ledger import PartLedger, non_spare
from brick_tally.core.view import Projection, ViewState, has_similar, project
from brick_tally.database.models import RecentSession, Session, SessionPart
from brick_tally.database.repository import Repository
from brick_tally.errors import PersistenceError, ProviderError, SessionNotFound
from brick_tally.sync.channel import RealtimeChannel, Subscription
from brick_tally.sync.reconciler import SyncReconciler
from brick_tally.utils.formatters import progress_percent
from brick_tally.utils.recents import RecentSessions

logger = logging.getLogger(__name__)


def generate_slug(length: Optional[int] = None) -> str:
    """Unguessable URL-safe session token (possession is the only check)."""
    length = length or Config.SLUG_LENGTH
    token = ""
    while len(token) < length:
        token += secrets.token_urlsafe(length)
    return token[:length]


def create_session(provider, repo: Repository, set_num: str,
                   slug: Optional[str] = None) -> Session:
    """Fetch a set's manifest, build its ledger, and persist it atomically.

    Provider and validation errors propagate before anything is stored.
    """
    manifest = provider.fetch(set_num)
    ledger = PartLedger.build_from_manifest(manifest.entries)
    session = repo.create_session(
        slug or generate_slug(), manifest.set_meta, ledger.items()
    )

    if not repo.get_part_categories():
        try:
            repo.upsert_part_categories(provider.fetch_part_categories())
        except ProviderError as e:
            # Labels fall back to "Category <id>"
            logger.warning(f"Could not fetch part categories: {e}")
    return session


class SessionClient:
    """Local ledger + reconciler + subscription for one viewer."""

    def __init__(self, repo: Repository, channel: RealtimeChannel, slug: str,
                 recents: Optional[RecentSessions] = None):
        self.repo = repo
        self.channel = channel
        self.slug = slug
        self.recents = recents
        self.session: Optional[Session] = None
        self.ledger = PartLedger()
        self.reconciler = SyncReconciler(self.ledger, self._on_remote_applied)
        self.category_names: dict[str, str] = {}
        self._subscription: Optional[Subscription] = None
        self._change_seq = 0
        self._listeners: list[Callable[[], None]] = []

    # ── Lifecycle ───────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._subscription is not None

    def open(self) -> "SessionClient":
        """Load the session and start receiving remote changes."""
        self._load()
        if self._subscription is None:
            self._prune_change_log()
            # Resume from the load point so a peer write that lands
            # between load and subscribe is still delivered
            self._subscription = self.channel.subscribe(
                self.session.id, self.reconciler, since=self._change_seq
            )
        self._remember()
        return self

    def _prune_change_log(self):
        try:
            self.repo.prune_changes(
                Config.CHANGE_LOG_RETENTION_DAYS, self.session.id
            )
        except PersistenceError as e:
            logger.warning(f"Change log cleanup for {self.slug} failed: {e}")

    def close(self):
        """Stop receiving remote changes. Safe to call twice."""
        if self._subscription is not None:
            self.channel.unsubscribe(self._subscription)
            self._subscription = None
            self._remember()

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def refresh(self):
        """Reload every item from the store, replacing local values."""
        self._load()
        self._notify()

    def _load(self):
        data = self.repo.load_session(self.slug)
        if data is None:
            raise SessionNotFound(f"Session {self.slug} not found")
        self.session = data.session
        self._change_seq = data.change_seq
        self.ledger = PartLedger(data.parts)
        self.reconciler.ledger = self.ledger
        self.category_names = self.repo.get_part_categories()

    # ── Listeners ───────────────────────────────────────────────

    def add_listener(self, callback: Callable[[], None]):
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self):
        for callback in list(self._listeners):
            callback()

    def _on_remote_applied(self, item: SessionPart):
        self._notify()

    # ── Actions ─────────────────────────────────────────────────

    def _require_item(self, item_id: int) -> SessionPart:
        item = self.ledger.get(item_id)
        if item is None:
            raise KeyError(f"Unknown item {item_id}")
        return item

    def increment(self, item_id: int, delta: int = 1) -> int:
        """Apply ``delta`` locally (clamped), then persist it.

        Returns the optimistic local value.  Raises PersistenceError if
        the store rejects the write; the local value is not rolled back.
        """
        item = self._require_item(item_id)
        value = next_value(item.qty_found, delta, item.qty_needed)
        self.ledger.apply(item_id, value)
        self._notify()
        try:
            self.repo.update_found(self.slug, item_id, delta)
        except PersistenceError as e:
            logger.error(f"Update of item {item_id} ({delta:+d}) not saved: {e}")
            raise
        return value

    def clear(self, item_id: int) -> int:
        item = self._require_item(item_id)
        return self.increment(item_id, clear_delta(item.qty_found))

    def complete(self, item_id: int) -> int:
        item = self._require_item(item_id)
        return self.increment(
            item_id, complete_delta(item.qty_found, item.qty_needed)
        )

    def reset_all(self) -> int:
        """Zero every found count locally, then in the store."""
        for item in self.ledger:
            self.ledger.apply(item.id, 0)
        self._notify()
        try:
            return self.repo.reset_session(self.slug)
        except PersistenceError as e:
            logger.error(f"Reset of session {self.slug} not saved: {e}")
            raise

    # ── Queries ─────────────────────────────────────────────────

    def progress(self) -> tuple[int, int, int]:
        """(found, needed, percent) over non-spare items."""
        needed, found = self.ledger.totals(non_spare)
        return found, needed, progress_percent(found, needed)

    def projection(self, state: ViewState) -> Projection:
        return project(self.ledger.snapshot(), state, self.category_names)

    def has_similar(self, part_num: str) -> bool:
        return has_similar(self.ledger, part_num)

    def _remember(self):
        if self.recents is None or self.session is None:
            return
        found, needed, _ = self.progress()
        self.recents.upsert(RecentSession(
            slug=self.session.slug,
            set_num=self.session.set_num,
            set_name=self.session.set_name,
            set_img_url=self.session.set_img_url,
            total_found=found,
            total_needed=needed,
        ))
