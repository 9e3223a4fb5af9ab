"""Export the parts still missing from a session (CSV or XLSX by extension)."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_tally.config import Config
from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.repository import Repository
from brick_tally.database.schema import initialize_database
from brick_tally.io.excel_handler import export_missing
from brick_tally.utils.qr_generator import slug_from_share_url


def main():
    if len(sys.argv) < 3:
        print("Usage: python export_missing.py <slug|link> <output.csv|.xlsx>")
        sys.exit(1)

    slug = slug_from_share_url(sys.argv[1])
    filepath = sys.argv[2]

    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)
    data = Repository(db).load_session(slug)
    if data is None:
        print(f"Session not found: {slug}")
        sys.exit(1)

    count = export_missing(data.parts, filepath)
    print(f"Exported {count} missing parts of {data.session.set_num} to {filepath}")


if __name__ == "__main__":
    main()
