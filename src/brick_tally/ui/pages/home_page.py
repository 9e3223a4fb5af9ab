"""Home page: start a session from a set number or rejoin a recent one."""

from PySide6.QtCore import Qt, QThread, Signal
from PySide6.QtWidgets import (
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from brick_tally.database.repository import Repository
from brick_tally.errors import BrickTallyError, ValidationError
from brick_tally.provider.rebrickable import RebrickableClient
from brick_tally.sync.session_client import create_session
from brick_tally.ui.dialogs.settings_dialog import SettingsDialog
from brick_tally.utils.constants import APP_NAME
from brick_tally.utils.formatters import format_progress, time_ago
from brick_tally.utils.qr_generator import slug_from_share_url
from brick_tally.utils.recents import RecentSessions


class CreateSessionWorker(QThread):
    """Fetches the set from the catalog and stores the new session."""

    created = Signal(str)  # slug
    failed = Signal(str)   # user-facing message

    def __init__(self, provider, repo: Repository, set_num: str):
        super().__init__()
        self.provider = provider
        self.repo = repo
        self.set_num = set_num

    def run(self):
        try:
            session = create_session(self.provider, self.repo, self.set_num)
        except ValidationError as e:
            self.failed.emit(f"The catalog returned invalid data: {e}")
            return
        except BrickTallyError as e:
            self.failed.emit(str(e))
            return
        self.created.emit(session.slug)


class HomePage(QWidget):
    """Set-number entry, open-by-link, and the recent sessions list."""

    session_requested = Signal(str)  # slug

    def __init__(self, repo: Repository, recents: RecentSessions,
                 provider=None, parent=None):
        super().__init__(parent)
        self.repo = repo
        self.recents = recents
        self._own_provider = provider is None
        self.provider = provider or RebrickableClient()
        self._worker = None
        self._setup_ui()
        self.refresh()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        header = QHBoxLayout()
        title = QLabel(APP_NAME)
        title.setObjectName("PageTitle")
        header.addWidget(title, 1)
        self.settings_btn = QPushButton("Settings")
        self.settings_btn.clicked.connect(self._on_settings)
        header.addWidget(self.settings_btn)
        layout.addLayout(header)
        layout.addWidget(QLabel("Collaborative set inventory checklist"))

        new_row = QHBoxLayout()
        self.set_input = QLineEdit()
        self.set_input.setPlaceholderText("Enter set number (e.g. 42100)")
        self.set_input.returnPressed.connect(self._on_create)
        self.set_input.textChanged.connect(self._update_buttons)
        new_row.addWidget(self.set_input)
        self.go_btn = QPushButton("Go!")
        self.go_btn.clicked.connect(self._on_create)
        new_row.addWidget(self.go_btn)
        layout.addLayout(new_row)

        join_row = QHBoxLayout()
        self.link_input = QLineEdit()
        self.link_input.setPlaceholderText("Paste a shared link to join")
        self.link_input.returnPressed.connect(self._on_join)
        join_row.addWidget(self.link_input)
        self.join_btn = QPushButton("Join")
        self.join_btn.clicked.connect(self._on_join)
        join_row.addWidget(self.join_btn)
        layout.addLayout(join_row)

        self.error_label = QLabel("")
        self.error_label.setObjectName("ErrorLabel")
        self.error_label.setWordWrap(True)
        layout.addWidget(self.error_label)

        recent_group = QGroupBox("Recent Sessions")
        recent_layout = QVBoxLayout(recent_group)
        self.recent_list = QListWidget()
        self.recent_list.itemActivated.connect(self._on_recent_activated)
        self.recent_list.itemDoubleClicked.connect(self._on_recent_activated)
        recent_layout.addWidget(self.recent_list)
        layout.addWidget(recent_group)

        self._update_buttons()

    def refresh(self):
        """Reload the recent sessions list."""
        self.recent_list.clear()
        for entry in self.recents.list():
            item = QListWidgetItem(
                f"{entry.set_name} ({entry.set_num}): "
                f"{format_progress(entry.total_found, entry.total_needed)}"
                f" · {time_ago(entry.timestamp)}"
            )
            item.setData(Qt.UserRole, entry.slug)
            self.recent_list.addItem(item)

    def _update_buttons(self):
        busy = self._worker is not None
        self.go_btn.setEnabled(not busy and bool(self.set_input.text().strip()))
        self.go_btn.setText("Loading..." if busy else "Go!")
        self.set_input.setEnabled(not busy)

    def _on_create(self):
        set_num = self.set_input.text().strip()
        if not set_num or self._worker is not None:
            return
        self.error_label.setText("")
        self._worker = CreateSessionWorker(self.provider, self.repo, set_num)
        self._worker.created.connect(self._on_created)
        self._worker.failed.connect(self._on_failed)
        self._worker.finished.connect(self._on_worker_done)
        self._update_buttons()
        self._worker.start()

    def _on_created(self, slug: str):
        self.set_input.clear()
        self.session_requested.emit(slug)

    def _on_failed(self, message: str):
        self.error_label.setText(message)

    def _on_worker_done(self):
        worker, self._worker = self._worker, None
        worker.wait()
        worker.deleteLater()
        self._update_buttons()

    def _on_settings(self):
        if SettingsDialog(self).exec() and self._own_provider:
            # Rebuild so a new API key or base URL takes effect
            self.provider = RebrickableClient()

    def _on_join(self):
        text = self.link_input.text().strip()
        if not text:
            return
        slug = slug_from_share_url(text)
        if self.repo.get_session_by_slug(slug) is None:
            self.error_label.setText("Session not found")
            return
        self.error_label.setText("")
        self.link_input.clear()
        self.session_requested.emit(slug)

    def _on_recent_activated(self, item: QListWidgetItem):
        slug = item.data(Qt.UserRole)
        if self.repo.get_session_by_slug(slug) is None:
            self.recents.remove(slug)
            self.error_label.setText("That session no longer exists")
            self.refresh()
            return
        self.session_requested.emit(slug)
