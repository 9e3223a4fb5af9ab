"""The authoritative line items of one session.

Every line item is unique by its (part, color, spare) triple.  Found
counts only ever change through :meth:`PartLedger.apply`, which takes
an already-clamped value (see :mod:`brick_tally.core.counter`).
"""

from dataclasses import replace
from typing import Callable, Iterable, Iterator, Optional

from brick_tally.database.models import SessionPart
from brick_tally.errors import ValidationError
from brick_tally.io.validators import (
    normalize_manifest_entry,
    validate_manifest_entry,
)


def merge_manifest(entries: Iterable[dict]) -> list[dict]:
    """Validate raw entries and merge duplicate triples by summing quantity.

    Raises ValidationError listing every malformed entry; the merged
    result keeps the first-seen order of each triple.
    """
    errors = []
    merged: dict[tuple, dict] = {}
    for index, raw in enumerate(entries, start=1):
        entry_errors = validate_manifest_entry(raw, index)
        if entry_errors:
            errors.extend(entry_errors)
            continue
        entry = normalize_manifest_entry(raw)
        key = (entry["part_num"], entry["color_id"], entry["is_spare"])
        existing = merged.get(key)
        if existing is None:
            merged[key] = entry
        else:
            existing["qty_needed"] += entry["qty_needed"]
    if errors:
        raise ValidationError(errors)
    return list(merged.values())


class PartLedger:
    """In-memory collection of a session's line items, keyed by item id."""

    def __init__(self, parts: Iterable[SessionPart] = ()):
        self._items: dict[int, SessionPart] = {}
        seen = set()
        for part in parts:
            if part.id in self._items:
                raise ValueError(f"Duplicate item id {part.id}")
            if part.identity in seen:
                raise ValueError(f"Duplicate line item {part.identity}")
            if not 0 <= part.qty_found <= part.qty_needed:
                raise ValueError(
                    f"Item {part.id}: qty_found {part.qty_found} outside "
                    f"[0, {part.qty_needed}]"
                )
            seen.add(part.identity)
            self._items[part.id] = replace(part)

    @classmethod
    def build_from_manifest(cls, entries: Iterable[dict]) -> "PartLedger":
        """Build a fresh ledger (nothing found yet) from raw manifest entries.

        Items receive provisional ids 1..n in manifest order; the store
        assigns the durable ids when the session is persisted.
        """
        parts = [
            SessionPart(id=i, qty_found=0, **entry)
            for i, entry in enumerate(merge_manifest(entries), start=1)
        ]
        return cls(parts)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[SessionPart]:
        return iter(self._items.values())

    def __contains__(self, item_id) -> bool:
        return item_id in self._items

    def get(self, item_id: int) -> Optional[SessionPart]:
        return self._items.get(item_id)

    def items(self) -> list[SessionPart]:
        return list(self._items.values())

    def snapshot(self) -> tuple[SessionPart, ...]:
        """Detached copies of every item, safe to hand to the projector."""
        return tuple(replace(p) for p in self._items.values())

    def apply(self, item_id: int, qty_found: int) -> SessionPart:
        """Replace one item's found count.

        No clamping happens here. A value outside ``[0, qty_needed]`` is
        rejected so the bound can never be broken; an unknown id raises
        KeyError.
        """
        item = self._items[item_id]
        if not 0 <= qty_found <= item.qty_needed:
            raise ValueError(
                f"Item {item_id}: qty_found {qty_found} outside "
                f"[0, {item.qty_needed}]"
            )
        item.qty_found = qty_found
        return item

    def totals(
        self, predicate: Optional[Callable[[SessionPart], bool]] = None,
    ) -> tuple[int, int]:
        """Return (sum needed, sum found) over items matching ``predicate``."""
        needed = found = 0
        for item in self._items.values():
            if predicate is None or predicate(item):
                needed += item.qty_needed
                found += item.qty_found
        return needed, found


def non_spare(item: SessionPart) -> bool:
    return not item.is_spare
