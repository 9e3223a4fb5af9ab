"""Toast notifications: transient, non-blocking status messages.

Used to report failed saves and dropped sync messages without
interrupting whoever is checking parts off.
"""

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget


_SEVERITY_COLORS = {
    "info": "#89b4fa",
    "success": "#a6e3a1",
    "warning": "#f9e2af",
    "error": "#f38ba8",
}

TOAST_WIDTH = 320
TOAST_MARGIN = 20
TOAST_SPACING = 8


class Toast(QWidget):
    """A single message bubble that closes itself after ``duration_ms``."""

    def __init__(self, message: str, severity: str = "info",
                 duration_ms: int = 4000, parent=None):
        super().__init__(parent)
        self.setWindowFlags(
            Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground)
        self.setFixedWidth(TOAST_WIDTH)
        self.severity = severity

        border_color = _SEVERITY_COLORS.get(severity, _SEVERITY_COLORS["info"])

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.label = QLabel(message)
        self.label.setWordWrap(True)
        self.label.setStyleSheet(
            f"QLabel {{ background: #1e1e2e; color: #cdd6f4; "
            f"border-left: 4px solid {border_color}; border-radius: 6px; "
            f"padding: 8px 12px; font-size: 12px; }}"
        )
        layout.addWidget(self.label)
        self.adjustSize()

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(duration_ms)
        self._timer.timeout.connect(self.close)

    def show_at(self, x: int, y: int):
        self.move(x, y)
        self.show()
        self._timer.start()

    def closeEvent(self, event):
        self.deleteLater()
        super().closeEvent(event)


class ToastManager:
    """Stacks toasts in the bottom-right corner of a parent window."""

    def __init__(self, parent_window: QWidget):
        self._parent = parent_window
        self._active_toasts: list[Toast] = []

    def show_toast(self, message: str, severity: str = "info",
                   duration_ms: int = 4000) -> Toast:
        toast = Toast(message, severity, duration_ms)

        parent_geo = self._parent.geometry()
        x = parent_geo.right() - toast.width() - TOAST_MARGIN
        y = parent_geo.bottom() - toast.height() - 2 * TOAST_MARGIN

        for t in self._active_toasts:
            if t.isVisible():
                y -= t.height() + TOAST_SPACING

        self._active_toasts.append(toast)
        toast.destroyed.connect(lambda: self._remove_toast(toast))
        toast.show_at(x, y)
        return toast

    def error(self, message: str) -> Toast:
        return self.show_toast(message, "error", 6000)

    def info(self, message: str) -> Toast:
        return self.show_toast(message, "info")

    def _remove_toast(self, toast: Toast):
        if toast in self._active_toasts:
            self._active_toasts.remove(toast)
