"""Excel (XLSX) export of the parts still missing from a session."""

from pathlib import Path
from typing import Iterable

from openpyxl import Workbook

from brick_tally.database.models import SessionPart
from brick_tally.io.csv_handler import (
    MISSING_CSV_COLUMNS,
    export_missing_csv,
    missing_parts,
    missing_row,
)


def export_missing_excel(items: Iterable[SessionPart], filepath: str | Path,
                         title: str = "Missing Parts") -> int:
    """Export missing parts to an Excel workbook. Returns row count."""
    parts = missing_parts(items)
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    # Sheet titles are limited to 31 characters
    ws.title = title[:31]

    ws.append(MISSING_CSV_COLUMNS)
    for part in parts:
        ws.append(missing_row(part))

    # Auto-fit column widths (approximate)
    for col in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col)
        ws.column_dimensions[col[0].column_letter].width = min(max_len + 2, 40)

    wb.save(filepath)
    return len(parts)


def export_missing(items: Iterable[SessionPart], filepath: str | Path) -> int:
    """Pick CSV or XLSX from the file extension."""
    if Path(filepath).suffix.lower() == ".xlsx":
        return export_missing_excel(items, filepath)
    return export_missing_csv(items, filepath)
