"""Timestamped backup of the session database."""

import sqlite3
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from brick_tally.config import Config
from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.repository import Repository

KEEP_BACKUPS = 10


def backup_database(db_path: Path = None, backup_dir: Path = None) -> Path | None:
    """Copy the database into the backup directory. Returns the new file.

    Uses SQLite's online backup so a copy taken while collaborators are
    writing is still consistent.
    """
    db_path = Path(db_path or Config.DATABASE_PATH)
    backup_dir = Path(backup_dir or Config.BACKUP_PATH)
    backup_dir.mkdir(parents=True, exist_ok=True)

    if not db_path.exists():
        print(f"Database not found at {db_path}")
        return None

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_file = backup_dir / f"brick_tally_{timestamp}.db"
    src = sqlite3.connect(str(db_path))
    dst = sqlite3.connect(str(backup_file))
    try:
        src.backup(dst)
    finally:
        dst.close()
        src.close()
    print(f"Backup created: {backup_file}")

    removed = Repository(DatabaseConnection(db_path)).prune_changes(
        Config.CHANGE_LOG_RETENTION_DAYS
    )
    if removed:
        print(f"Pruned {removed} old change-log rows")

    backups = sorted(backup_dir.glob("brick_tally_*.db"), reverse=True)
    for old in backups[KEEP_BACKUPS:]:
        old.unlink()
        print(f"Removed old backup: {old.name}")
    return backup_file


if __name__ == "__main__":
    backup_database()
