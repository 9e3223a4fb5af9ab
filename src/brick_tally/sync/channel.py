"""Realtime channels push item changes to every viewer of a session.

A channel delivers ``(item_id, qty_found)`` pairs to the handlers
subscribed to a session.  Delivery failures are logged and swallowed so
one bad handler never stops the others or the delivery loop.

``LocalChannel``   in-process hub; ``publish`` delivers synchronously.
``PollingChannel`` reads the ``part_changes`` log of a shared database.
                   The host calls ``poll()`` on its event loop (a QTimer
                   in the desktop shell).
"""

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from brick_tally.database.repository import Repository
from brick_tally.errors import PersistenceError

logger = logging.getLogger(__name__)

ItemChangedHandler = Callable[[int, int], object]

_subscription_ids = itertools.count(1)


@dataclass(eq=False)
class Subscription:
    session_id: int
    handler: ItemChangedHandler
    id: int = 0
    active: bool = True
    cursor: int = 0  # last change-log seq delivered (polling only)

    def __post_init__(self):
        if not self.id:
            self.id = next(_subscription_ids)


class RealtimeChannel(ABC):
    """Subscribe handlers to item changes of a session."""

    def __init__(self):
        self._subscriptions: dict[int, Subscription] = {}

    def subscribe(self, session_id: int, on_item_changed: ItemChangedHandler,
                  since: Optional[int] = None) -> Subscription:
        """Start delivering changes of a session to ``on_item_changed``.

        ``since`` is a change-log position the caller has already seen;
        transports that keep history deliver everything after it.
        """
        sub = Subscription(session_id=session_id, handler=on_item_changed)
        self._prepare(sub, since)
        self._subscriptions[sub.id] = sub
        logger.debug(f"Subscription {sub.id} opened for session {session_id}")
        return sub

    def unsubscribe(self, subscription: Subscription):
        """Stop delivery to a subscription. Safe to call twice."""
        subscription.active = False
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug(f"Subscription {subscription.id} closed")

    def subscriptions(self, session_id: int) -> list[Subscription]:
        return [
            s for s in self._subscriptions.values()
            if s.session_id == session_id and s.active
        ]

    def _prepare(self, subscription: Subscription, since: Optional[int]):
        """Hook for transports that need per-subscription state."""

    def _deliver(self, subscription: Subscription,
                 item_id: int, qty_found: int) -> bool:
        if not subscription.active:
            return False
        try:
            subscription.handler(item_id, qty_found)
        except Exception:
            logger.exception(
                f"Handler for subscription {subscription.id} failed "
                f"on item {item_id}"
            )
            return False
        return True

    @abstractmethod
    def close(self):
        """Release all subscriptions."""


class LocalChannel(RealtimeChannel):
    """Synchronous in-process broadcast hub."""

    def publish(self, session_id: int, item_id: int, qty_found: int) -> int:
        """Deliver a change to every subscriber. Returns deliveries made."""
        delivered = 0
        for sub in self.subscriptions(session_id):
            if self._deliver(sub, item_id, qty_found):
                delivered += 1
        return delivered

    def close(self):
        for sub in list(self._subscriptions.values()):
            self.unsubscribe(sub)


class PollingChannel(RealtimeChannel):
    """Change-log reader over a database shared by several clients.

    A subscription starts at ``since`` when given, else at the newest
    change present when it is opened.
    """

    def __init__(self, repo: Repository):
        super().__init__()
        self.repo = repo

    def _prepare(self, subscription: Subscription, since: Optional[int]):
        if since is None:
            since = self.repo.latest_change_seq(subscription.session_id)
        subscription.cursor = since

    def poll(self) -> int:
        """Deliver pending changes to all subscriptions, oldest first."""
        delivered = 0
        for sub in list(self._subscriptions.values()):
            try:
                changes = self.repo.get_changes_since(
                    sub.session_id, sub.cursor
                )
            except PersistenceError as e:
                logger.warning(f"Polling session {sub.session_id} failed: {e}")
                continue
            for change in changes:
                if not sub.active:
                    break
                sub.cursor = change.seq
                if self._deliver(sub, change.part_id, change.qty_found):
                    delivered += 1
        return delivered

    def close(self):
        for sub in list(self._subscriptions.values()):
            self.unsubscribe(sub)
