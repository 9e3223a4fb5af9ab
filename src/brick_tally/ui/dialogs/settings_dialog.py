"""Settings dialog for the parts catalog, sharing, sync and theme."""

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QLabel,
    QLineEdit,
    QSpinBox,
    QVBoxLayout,
)

from brick_tally.config import Config

THEMES = ["dark", "light"]


class SettingsDialog(QDialog):
    """Edit and persist the runtime settings kept in settings.json."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setMinimumWidth(440)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        catalog_group = QGroupBox("Rebrickable")
        catalog_form = QFormLayout(catalog_group)
        self.api_key_input = QLineEdit(Config.REBRICKABLE_API_KEY)
        self.api_key_input.setEchoMode(QLineEdit.Password)
        self.api_key_input.setPlaceholderText("Your Rebrickable API key")
        catalog_form.addRow("API Key:", self.api_key_input)
        self.base_url_input = QLineEdit(Config.REBRICKABLE_BASE_URL)
        catalog_form.addRow("Base URL:", self.base_url_input)
        self.timeout_spin = QSpinBox()
        self.timeout_spin.setRange(5, 120)
        self.timeout_spin.setSuffix(" s")
        self.timeout_spin.setValue(Config.REBRICKABLE_TIMEOUT)
        catalog_form.addRow("Timeout:", self.timeout_spin)
        layout.addWidget(catalog_group)

        session_group = QGroupBox("Sessions")
        session_form = QFormLayout(session_group)
        self.share_url_input = QLineEdit(Config.SHARE_BASE_URL)
        session_form.addRow("Share Link Prefix:", self.share_url_input)
        self.poll_spin = QSpinBox()
        self.poll_spin.setRange(250, 60000)
        self.poll_spin.setSingleStep(250)
        self.poll_spin.setSuffix(" ms")
        self.poll_spin.setValue(Config.SYNC_POLL_INTERVAL_MS)
        session_form.addRow("Sync Interval:", self.poll_spin)
        layout.addWidget(session_group)

        look_form = QFormLayout()
        self.theme_combo = QComboBox()
        self.theme_combo.addItems(THEMES)
        if Config.APP_THEME in THEMES:
            self.theme_combo.setCurrentText(Config.APP_THEME)
        look_form.addRow("Theme:", self.theme_combo)
        layout.addLayout(look_form)

        self.status_label = QLabel("")
        self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

        buttons = QDialogButtonBox(
            QDialogButtonBox.Save | QDialogButtonBox.Cancel
        )
        buttons.accepted.connect(self._on_save)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _on_save(self):
        base_url = self.base_url_input.text().strip()
        share_url = self.share_url_input.text().strip()

        if not base_url:
            self.status_label.setText("Base URL cannot be empty.")
            self.status_label.setStyleSheet("color: #f38ba8;")
            return
        if not share_url:
            self.status_label.setText("Share link prefix cannot be empty.")
            self.status_label.setStyleSheet("color: #f38ba8;")
            return

        Config.update_rebrickable_settings(
            self.api_key_input.text().strip(), base_url,
            self.timeout_spin.value(),
        )
        Config.update_share_base_url(share_url)
        Config.update_sync_interval(self.poll_spin.value())
        Config.update_theme(self.theme_combo.currentText())
        # Sync interval applies to sessions opened from now on; theme on restart
        self.accept()
