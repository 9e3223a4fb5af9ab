"""Main application window: the home page plus at most one open session."""

import logging

from PySide6.QtWidgets import QMainWindow, QStackedWidget, QStatusBar

from brick_tally.database.connection import DatabaseConnection
from brick_tally.database.repository import Repository
from brick_tally.errors import SessionNotFound
from brick_tally.sync.channel import PollingChannel
from brick_tally.ui.pages.home_page import HomePage
from brick_tally.ui.pages.session_page import SessionPage
from brick_tally.ui.widgets.toast_widget import ToastManager
from brick_tally.utils.constants import (
    APP_NAME,
    DEFAULT_WINDOW_HEIGHT,
    DEFAULT_WINDOW_WIDTH,
    MIN_WINDOW_HEIGHT,
    MIN_WINDOW_WIDTH,
)
from brick_tally.utils.recents import RecentSessions

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Primary application window."""

    def __init__(self, db: DatabaseConnection, provider=None,
                 recents: RecentSessions = None):
        super().__init__()
        self.db = db
        self.repo = Repository(db)
        self.channel = PollingChannel(self.repo)
        self.recents = recents or RecentSessions()
        self.session_page = None

        self.setWindowTitle(APP_NAME)
        self.resize(DEFAULT_WINDOW_WIDTH, DEFAULT_WINDOW_HEIGHT)
        self.setMinimumSize(MIN_WINDOW_WIDTH, MIN_WINDOW_HEIGHT)

        self.stack = QStackedWidget()
        self.setCentralWidget(self.stack)
        self.home_page = HomePage(self.repo, self.recents, provider)
        self.home_page.session_requested.connect(self.open_session)
        self.stack.addWidget(self.home_page)

        self.setStatusBar(QStatusBar())
        self.toast = ToastManager(self)

    def open_session(self, slug: str):
        """Replace any open session with ``slug`` and show it."""
        self.close_session()
        try:
            page = SessionPage(self.repo, self.channel, slug, self.recents)
        except SessionNotFound:
            self.toast.error("Session not found")
            self.home_page.refresh()
            return
        page.back_requested.connect(self.show_home)
        page.persistence_failed.connect(self.toast.error)
        self.session_page = page
        self.stack.addWidget(page)
        self.stack.setCurrentWidget(page)
        session = page.client.session
        self.setWindowTitle(f"{APP_NAME} - {session.set_name}")
        self.statusBar().showMessage(f"Session {slug}")
        logger.info(f"Opened session {slug} ({session.set_num})")

    def close_session(self):
        if self.session_page is None:
            return
        page = self.session_page
        self.session_page = None
        page.close_session()
        self.stack.removeWidget(page)
        page.deleteLater()

    def show_home(self):
        self.close_session()
        self.home_page.refresh()
        self.stack.setCurrentWidget(self.home_page)
        self.setWindowTitle(APP_NAME)
        self.statusBar().clearMessage()

    def closeEvent(self, event):
        self.close_session()
        self.channel.close()
        super().closeEvent(event)
