"""Save the missing-parts list as CSV or Excel."""

from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFileDialog,
    QFormLayout,
    QLabel,
    QMessageBox,
    QVBoxLayout,
)

from brick_tally.io.csv_handler import export_missing_csv, missing_parts
from brick_tally.io.excel_handler import export_missing_excel


class ExportDialog(QDialog):
    """Export the parts still missing from a session."""

    def __init__(self, items, set_num: str = "", parent=None):
        super().__init__(parent)
        self.items = list(items)
        self.set_num = set_num
        self.setWindowTitle("Export Missing Parts")
        self.setMinimumWidth(400)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        count = len(missing_parts(self.items))
        layout.addWidget(QLabel(f"{count} part/color combinations still missing."))

        form = QFormLayout()
        self.format_type = QComboBox()
        self.format_type.addItems(["CSV (.csv)", "Excel (.xlsx)"])
        form.addRow("Format:", self.format_type)
        layout.addLayout(form)

        buttons = QDialogButtonBox(
            QDialogButtonBox.Save | QDialogButtonBox.Cancel
        )
        buttons.accepted.connect(self._on_export)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _on_export(self):
        fmt = "csv" if "csv" in self.format_type.currentText().lower() else "xlsx"
        ext = f".{fmt}"
        stem = f"{self.set_num}_missing" if self.set_num else "missing_parts"

        filepath, _ = QFileDialog.getSaveFileName(
            self, "Export To", f"{stem}{ext}",
            f"{'CSV' if fmt == 'csv' else 'Excel'} Files (*{ext})",
        )
        if not filepath:
            return

        try:
            if fmt == "csv":
                count = export_missing_csv(self.items, filepath)
            else:
                count = export_missing_excel(self.items, filepath)
            QMessageBox.information(
                self, "Export Complete",
                f"Exported {count} rows to {filepath}",
            )
            self.accept()
        except OSError as e:
            QMessageBox.warning(self, "Export Failed", str(e))
