"""Application entry point."""

import logging
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication

from brick_tally.config import Config
from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.schema import initialize_database
from brick_tally.utils.constants import APP_NAME, APP_ORGANIZATION


def _load_theme(app: QApplication, theme: str | None = None):
    """Apply ``ui/styles/<theme>.qss`` if it exists.

    Falls back to ``Config.APP_THEME`` when *theme* is None.
    """
    theme = (theme or Config.APP_THEME).lower()
    qss_file = Path(__file__).parent / "ui" / "styles" / f"{theme}.qss"
    if qss_file.exists():
        app.setStyleSheet(qss_file.read_text(encoding="utf-8"))


def main():
    """Launch the Brick-Tally application."""
    logging.basicConfig(
        level=Config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = DatabaseConnection(Config.DATABASE_PATH)
    initialize_database(db)

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setOrganizationName(APP_ORGANIZATION)
    _load_theme(app)

    # Import after QApplication exists
    from brick_tally.ui.main_window import MainWindow

    window = MainWindow(db)
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
