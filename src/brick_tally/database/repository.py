"""Repository layer for session and ledger persistence.

The repository is the persistence gateway shared by every collaborator
of a session.  ``update_found`` applies the same clamp as the local
counter, inside a single write transaction, so two interleaved updates
from different clients can never push ``qty_found`` out of
``[0, qty_needed]``.  Each committed change is appended to
``part_changes``, which the polling realtime channel reads back.
"""

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterable, Optional

from brick_tally.errors import PersistenceError

from .connection import DatabaseConnection
from .models import PartChange, Session, SessionData, SessionPart, SetMeta

logger = logging.getLogger(__name__)


def _row_to_part(row) -> SessionPart:
    data = dict(row)
    data["is_spare"] = bool(data["is_spare"])
    return SessionPart(**data)


class Repository:
    """Provides all database operations for the application."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    @contextmanager
    def _transaction(self, action: str):
        """Yield a connection; sqlite failures become PersistenceError."""
        try:
            with self.db.get_connection() as conn:
                yield conn
        except sqlite3.Error as e:
            logger.error(f"{action} failed: {e}")
            raise PersistenceError(f"{action} failed: {e}") from e

    # ── Sessions ────────────────────────────────────────────────

    def create_session(self, slug: str, set_meta: SetMeta,
                       parts: Iterable[SessionPart]) -> Session:
        """Insert a session and all of its parts in one transaction."""
        with self._transaction("Create session") as conn:
            cursor = conn.execute(
                "INSERT INTO sessions (slug, set_num, set_name, set_img_url) "
                "VALUES (?, ?, ?, ?)",
                (slug, set_meta.set_num, set_meta.name, set_meta.set_img_url),
            )
            session_id = cursor.lastrowid
            conn.executemany(
                "INSERT INTO session_parts (session_id, part_num, part_name, "
                "part_img_url, color_id, color_name, color_rgb, element_id, "
                "category, qty_needed, qty_found, is_spare) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)",
                [
                    (session_id, p.part_num, p.part_name, p.part_img_url,
                     p.color_id, p.color_name, p.color_rgb, p.element_id,
                     p.category, p.qty_needed, int(p.is_spare))
                    for p in parts
                ],
            )
            row = conn.execute(
                "SELECT * FROM sessions WHERE id = ?", (session_id,)
            ).fetchone()
        logger.info(f"Created session {slug} for set {set_meta.set_num}")
        return Session(**dict(row))

    def get_session_by_slug(self, slug: str) -> Optional[Session]:
        rows = self.db.execute(
            "SELECT * FROM sessions WHERE slug = ?", (slug,)
        )
        return Session(**dict(rows[0])) if rows else None

    def list_sessions(self) -> list[Session]:
        rows = self.db.execute(
            "SELECT * FROM sessions ORDER BY created_at DESC, id DESC"
        )
        return [Session(**dict(r)) for r in rows]

    def load_session(self, slug: str) -> Optional[SessionData]:
        """Load a session and its parts, or None for an unknown slug.

        ``change_seq`` is read before the parts: any change missing from
        the loaded rows has a greater seq and can be replayed from there.
        """
        with self._transaction("Load session") as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE slug = ?", (slug,)
            ).fetchone()
            if row is None:
                return None
            session = Session(**dict(row))
            change_seq = conn.execute(
                "SELECT COALESCE(MAX(seq), 0) AS seq FROM part_changes "
                "WHERE session_id = ?",
                (session.id,),
            ).fetchone()["seq"]
            part_rows = conn.execute(
                "SELECT * FROM session_parts WHERE session_id = ? "
                "ORDER BY color_name, part_name, id",
                (session.id,),
            ).fetchall()
        return SessionData(
            session=session,
            parts=[_row_to_part(r) for r in part_rows],
            change_seq=change_seq,
        )

    def delete_session(self, slug: str) -> bool:
        """Delete a session; its parts and change log cascade with it."""
        with self._transaction("Delete session") as conn:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE slug = ?", (slug,)
            )
            return cursor.rowcount > 0

    # ── Parts ───────────────────────────────────────────────────

    def get_part_by_id(self, part_id: int) -> Optional[SessionPart]:
        rows = self.db.execute(
            "SELECT * FROM session_parts WHERE id = ?", (part_id,)
        )
        return _row_to_part(rows[0]) if rows else None

    def update_found(self, slug: str, part_id: int, delta: int) -> int:
        """Add ``delta`` to a part's found count, clamped to its needed count.

        Returns the stored value after the clamp.
        """
        with self._transaction("Update found count") as conn:
            cursor = conn.execute(
                "UPDATE session_parts "
                "SET qty_found = MAX(0, MIN(qty_found + ?, qty_needed)) "
                "WHERE id = ? AND session_id = "
                "(SELECT id FROM sessions WHERE slug = ?)",
                (delta, part_id, slug),
            )
            if cursor.rowcount == 0:
                raise PersistenceError(
                    f"Part {part_id} not found in session {slug}"
                )
            row = conn.execute(
                "SELECT session_id, qty_found FROM session_parts WHERE id = ?",
                (part_id,),
            ).fetchone()
            conn.execute(
                "INSERT INTO part_changes (session_id, part_id, qty_found) "
                "VALUES (?, ?, ?)",
                (row["session_id"], part_id, row["qty_found"]),
            )
            return row["qty_found"]

    def reset_session(self, slug: str) -> int:
        """Set every part's found count to zero. Returns parts changed."""
        with self._transaction("Reset session") as conn:
            session = conn.execute(
                "SELECT id FROM sessions WHERE slug = ?", (slug,)
            ).fetchone()
            if session is None:
                raise PersistenceError(f"Session {slug} not found")
            changed = conn.execute(
                "SELECT id FROM session_parts "
                "WHERE session_id = ? AND qty_found > 0",
                (session["id"],),
            ).fetchall()
            conn.execute(
                "UPDATE session_parts SET qty_found = 0 WHERE session_id = ?",
                (session["id"],),
            )
            conn.executemany(
                "INSERT INTO part_changes (session_id, part_id, qty_found) "
                "VALUES (?, ?, 0)",
                [(session["id"], r["id"]) for r in changed],
            )
            return len(changed)

    # ── Change log ──────────────────────────────────────────────

    def get_changes_since(self, session_id: int, seq: int) -> list[PartChange]:
        """Changes recorded after ``seq``, oldest first."""
        with self._transaction("Read change log") as conn:
            rows = conn.execute(
                "SELECT * FROM part_changes WHERE session_id = ? AND seq > ? "
                "ORDER BY seq",
                (session_id, seq),
            ).fetchall()
        return [PartChange(**dict(r)) for r in rows]

    def latest_change_seq(self, session_id: int) -> int:
        rows = self.db.execute(
            "SELECT COALESCE(MAX(seq), 0) AS seq FROM part_changes "
            "WHERE session_id = ?",
            (session_id,),
        )
        return rows[0]["seq"]

    def prune_changes(self, older_than_days: int,
                      session_id: Optional[int] = None) -> int:
        """Delete change-log rows older than ``older_than_days``.

        A subscriber that has not polled for that long may miss a change
        and keeps its last value until the item changes again or the
        session is refreshed.  Returns the number of rows removed.
        """
        sql = (
            "DELETE FROM part_changes "
            "WHERE changed_at < datetime('now', ?)"
        )
        params: tuple = (f"-{int(older_than_days)} days",)
        if session_id is not None:
            sql += " AND session_id = ?"
            params += (session_id,)
        with self._transaction("Prune change log") as conn:
            removed = conn.execute(sql, params).rowcount
        if removed:
            logger.info(f"Pruned {removed} change-log rows")
        return removed

    # ── Part categories ─────────────────────────────────────────

    def upsert_part_categories(self, categories: dict[str, str]) -> int:
        with self._transaction("Save part categories") as conn:
            conn.executemany(
                "INSERT OR REPLACE INTO part_categories (id, name) "
                "VALUES (?, ?)",
                [(str(k), v) for k, v in categories.items()],
            )
        return len(categories)

    def get_part_categories(self) -> dict[str, str]:
        rows = self.db.execute("SELECT id, name FROM part_categories")
        return {r["id"]: r["name"] for r in rows}
