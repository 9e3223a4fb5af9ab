"""Apply remote found-count changes to the local ledger.

Rule: last writer wins per item, by arrival order.  A notification
overwrites the local ``qty_found`` unconditionally; concurrent deltas
are not merged.  Two collaborators tapping "+1" on the same item at
the same moment can therefore lose one increment when the later
broadcast lands on top of an optimistic local value.  Users see the
count and re-tap, so this is accepted rather than solved with version
vectors.

Notifications carry no sequence number.  The transport must deliver
changes for one item in order; a transport that can reorder would
need a version field added to the notification itself.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from brick_tally.core.ledger import PartLedger
from brick_tally.database.models import SessionPart
from brick_tally.errors import SyncError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemChanged:
    """Remote notification: item ``item_id`` now has ``qty_found``."""
    item_id: int
    qty_found: int


class SyncReconciler:
    """Single handler through which every remote notification flows."""

    def __init__(self, ledger: PartLedger,
                 on_applied: Optional[Callable[[SessionPart], None]] = None):
        self.ledger = ledger
        self.on_applied = on_applied
        self.applied = 0
        self.dropped = 0

    def apply_remote(self, item_id: int, qty_found: int) -> SessionPart:
        """Overwrite one item's found count. Raises SyncError if impossible."""
        if isinstance(qty_found, bool) or not isinstance(qty_found, int):
            raise SyncError(
                f"Item {item_id}: non-integer qty_found {qty_found!r}"
            )
        if item_id not in self.ledger:
            raise SyncError(f"Unknown item {item_id}")
        try:
            return self.ledger.apply(item_id, qty_found)
        except ValueError as e:
            raise SyncError(str(e)) from e

    def handle(self, item_id: int, qty_found: int) -> bool:
        """Channel callback: apply, or log and drop. Never raises SyncError."""
        try:
            item = self.apply_remote(item_id, qty_found)
        except SyncError as e:
            self.dropped += 1
            logger.warning(f"Dropped remote change: {e}")
            return False
        self.applied += 1
        if self.on_applied is not None:
            self.on_applied(item)
        return True

    def handle_message(self, message: ItemChanged) -> bool:
        return self.handle(message.item_id, message.qty_found)

    def __call__(self, item_id: int, qty_found: int) -> bool:
        return self.handle(item_id, qty_found)
