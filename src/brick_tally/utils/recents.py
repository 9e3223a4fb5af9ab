"""Recently opened sessions, kept in a best-effort local JSON cache.

The cache is advisory only: every read or write failure is logged at
debug level and otherwise ignored.
"""

import json
import logging
import time
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional

from brick_tally.config import Config
from brick_tally.database.models import RecentSession

logger = logging.getLogger(__name__)

_FIELDS = {f.name for f in fields(RecentSession)}


class RecentSessions:
    """Most-recent-first list of sessions, deduplicated by slug."""

    def __init__(self, path: str | Path | None = None,
                 max_items: Optional[int] = None):
        self.path = Path(path) if path else Path(Config.RECENTS_PATH)
        self.max_items = max_items or Config.MAX_RECENT_SESSIONS

    def list(self) -> list[RecentSession]:
        try:
            if not self.path.exists():
                return []
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return [
                RecentSession(**{k: v for k, v in item.items() if k in _FIELDS})
                for item in raw
            ]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.debug(f"Ignoring unreadable recents cache: {e}")
            return []

    def upsert(self, entry: RecentSession):
        """Put ``entry`` at the top of the list, stamped with the time now."""
        try:
            entry = RecentSession(**{**asdict(entry), "timestamp": time.time()})
            items = [s for s in self.list() if s.slug != entry.slug]
            items.insert(0, entry)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps([asdict(s) for s in items[: self.max_items]],
                           indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Could not update recents cache: {e}")

    def remove(self, slug: str):
        try:
            items = [s for s in self.list() if s.slug != slug]
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps([asdict(s) for s in items], indent=2),
                encoding="utf-8",
            )
        except (OSError, TypeError, ValueError) as e:
            logger.debug(f"Could not update recents cache: {e}")
