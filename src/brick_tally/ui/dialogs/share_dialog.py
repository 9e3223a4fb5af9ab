"""Share dialog with the session link, a copy button and a QR code."""

from PySide6.QtCore import Qt
from PySide6.QtGui import QGuiApplication, QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from brick_tally.utils.qr_generator import (
    build_share_url,
    make_share_qr,
    save_share_qr,
)

QR_DISPLAY_SIZE = 200


class ShareDialog(QDialog):
    """Shows the link that lets someone else join this session."""

    def __init__(self, slug: str, set_name: str = "", parent=None):
        super().__init__(parent)
        self.slug = slug
        self.share_url = build_share_url(slug)
        self.setWindowTitle(f"Share {set_name}".strip())
        self.setMinimumWidth(360)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        row = QHBoxLayout()
        self.url_edit = QLineEdit(self.share_url)
        self.url_edit.setReadOnly(True)
        row.addWidget(self.url_edit)
        self.copy_btn = QPushButton("Copy")
        self.copy_btn.clicked.connect(self._copy)
        row.addWidget(self.copy_btn)
        layout.addLayout(row)

        pixmap = QPixmap()
        pixmap.loadFromData(make_share_qr(self.share_url).getvalue(), "PNG")
        self.qr_label = QLabel()
        self.qr_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.qr_label.setPixmap(pixmap.scaled(
            QR_DISPLAY_SIZE, QR_DISPLAY_SIZE,
            Qt.AspectRatioMode.KeepAspectRatio,
        ))
        layout.addWidget(self.qr_label)

        hint = QLabel("Scan to join this session")
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(hint)

        buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Close)
        buttons.accepted.connect(self._save_qr)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _copy(self):
        QGuiApplication.clipboard().setText(self.share_url)
        self.copy_btn.setText("Copied!")

    def _save_qr(self):
        filepath, _ = QFileDialog.getSaveFileName(
            self, "Save QR Code", f"session_{self.slug}.png",
            "PNG Images (*.png)",
        )
        if not filepath:
            return
        try:
            save_share_qr(self.share_url, filepath)
        except OSError as e:
            QMessageBox.warning(self, "Save Failed", str(e))
