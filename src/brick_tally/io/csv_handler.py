"""CSV export of the parts still missing from a session."""

import csv
from pathlib import Path
from typing import Iterable

from brick_tally.database.models import SessionPart

MISSING_CSV_COLUMNS = [
    "Part", "Color", "Quantity", "Part Name", "Color Name", "Element",
]


def missing_parts(items: Iterable[SessionPart]) -> list[SessionPart]:
    """Non-spare items with something left to find, in catalog order."""
    missing = [p for p in items if not p.is_spare and p.qty_missing > 0]
    missing.sort(key=lambda p: (p.part_num, p.color_id))
    return missing


def missing_row(part: SessionPart) -> list:
    return [
        part.part_num,
        part.color_id,
        part.qty_missing,
        part.part_name,
        part.color_name,
        part.element_id or "",
    ]


def export_missing_csv(items: Iterable[SessionPart],
                       filepath: str | Path) -> int:
    """Write missing parts as a Rebrickable-importable wanted list.

    The first three columns are the ones Rebrickable reads. Returns the
    number of rows written.
    """
    parts = missing_parts(items)
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(MISSING_CSV_COLUMNS)
        for part in parts:
            writer.writerow(missing_row(part))
    return len(parts)
