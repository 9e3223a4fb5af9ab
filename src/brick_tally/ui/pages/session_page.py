"""The grouped, filterable checklist for one set."""

import logging

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QBrush, QColor, QIcon, QPixmap
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMenu,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from brick_tally.config import Config
from brick_tally.core.group_order import GroupOrderController
from brick_tally.core.view import ViewState
from brick_tally.database.models import SessionPart
from brick_tally.database.repository import Repository
from brick_tally.errors import PersistenceError
from brick_tally.sync.channel import PollingChannel, RealtimeChannel
from brick_tally.sync.session_client import SessionClient
from brick_tally.ui.dialogs.export_dialog import ExportDialog
from brick_tally.ui.dialogs.share_dialog import ShareDialog
from brick_tally.utils.constants import (
    FILTER_LABELS,
    FILTER_MODES,
    GROUP_MODE_LABELS,
    GROUP_MODES,
    SPARES_GROUP,
    SPARES_LABEL,
)
from brick_tally.utils.formatters import format_color_swatch, format_progress
from brick_tally.utils.recents import RecentSessions

logger = logging.getLogger(__name__)

SWATCH_SIZE = 12
COMPLETE_COLOR = "#6c7086"


def _swatch_icon(rgb: str) -> QIcon:
    pixmap = QPixmap(SWATCH_SIZE, SWATCH_SIZE)
    pixmap.fill(QColor(format_color_swatch(rgb)))
    return QIcon(pixmap)


class GroupTree(QTreeWidget):
    """Tree whose top-level group rows can be dropped onto each other.

    A drop never moves items itself. It emits ``group_dropped`` with the
    dragged and target group labels and the page rebuilds the tree.
    """

    group_dropped = Signal(str, str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setDragEnabled(True)
        self.setAcceptDrops(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.InternalMove)

    @staticmethod
    def group_label(item: QTreeWidgetItem):
        """Label of the group an item belongs to, None for spares."""
        if item is None:
            return None
        if item.parent() is not None:
            item = item.parent()
        kind, label = item.data(0, Qt.UserRole)
        return label if label != SPARES_GROUP else None

    def dropEvent(self, event):
        source = self.currentItem()
        target = self.itemAt(event.position().toPoint())
        event.ignore()
        if source is None or source.parent() is not None:
            return
        from_label = self.group_label(source)
        to_label = self.group_label(target)
        if from_label and to_label and from_label != to_label:
            self.group_dropped.emit(from_label, to_label)


class SessionPage(QWidget):
    """Checklist view over a :class:`SessionClient`.

    Tree items carry ``("group", label)`` or ``("part", item_id)`` in
    ``Qt.UserRole`` so selection survives a full rebuild.
    """

    back_requested = Signal()
    persistence_failed = Signal(str)

    def __init__(self, repo: Repository, channel: RealtimeChannel, slug: str,
                 recents: RecentSessions = None, parent=None):
        super().__init__(parent)
        self.channel = channel
        self.client = SessionClient(repo, channel, slug, recents).open()
        self.state = ViewState()
        self.groups = GroupOrderController(self.state.group_by)
        self._projection = None
        self._building = False

        self._setup_ui()
        self.client.add_listener(self.refresh)
        self.refresh()

        self._poll_timer = QTimer(self)
        if isinstance(channel, PollingChannel):
            self._poll_timer.timeout.connect(self._poll)
            self._poll_timer.start(Config.SYNC_POLL_INTERVAL_MS)

    @property
    def slug(self) -> str:
        return self.client.slug

    # ── Layout ──────────────────────────────────────────────────

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        session = self.client.session

        header = QHBoxLayout()
        back_btn = QPushButton("Back")
        back_btn.clicked.connect(self.back_requested.emit)
        header.addWidget(back_btn)
        self.title_label = QLabel(f"{session.set_name} ({session.set_num})")
        self.title_label.setObjectName("PageTitle")
        header.addWidget(self.title_label, 1)

        self.share_btn = QPushButton("Share")
        self.share_btn.clicked.connect(self._on_share)
        header.addWidget(self.share_btn)
        self.export_btn = QPushButton("Export")
        self.export_btn.clicked.connect(self._on_export)
        header.addWidget(self.export_btn)
        self.reset_btn = QPushButton("Reset")
        self.reset_btn.clicked.connect(self._on_reset)
        header.addWidget(self.reset_btn)
        layout.addLayout(header)

        progress_row = QHBoxLayout()
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        progress_row.addWidget(self.progress_bar, 1)
        self.progress_label = QLabel()
        progress_row.addWidget(self.progress_label)
        layout.addLayout(progress_row)

        controls = QHBoxLayout()
        controls.addWidget(QLabel("Group by:"))
        self.group_combo = QComboBox()
        for mode in GROUP_MODES:
            self.group_combo.addItem(GROUP_MODE_LABELS[mode], mode)
        self.group_combo.currentIndexChanged.connect(self._on_group_changed)
        controls.addWidget(self.group_combo)

        controls.addWidget(QLabel("Show:"))
        self.filter_combo = QComboBox()
        for mode in FILTER_MODES:
            self.filter_combo.addItem(FILTER_LABELS[mode], mode)
        self.filter_combo.currentIndexChanged.connect(self._on_filter_changed)
        controls.addWidget(self.filter_combo)
        controls.addStretch()

        self.collapse_btn = QPushButton("Collapse All")
        self.collapse_btn.clicked.connect(self._on_toggle_all)
        controls.addWidget(self.collapse_btn)
        layout.addLayout(controls)

        self.similar_banner = QFrame()
        self.similar_banner.setObjectName("SimilarBanner")
        banner_layout = QHBoxLayout(self.similar_banner)
        banner_layout.setContentsMargins(6, 2, 6, 2)
        self.similar_label = QLabel()
        banner_layout.addWidget(self.similar_label, 1)
        clear_similar_btn = QPushButton("Clear")
        clear_similar_btn.clicked.connect(lambda: self.show_similar(None))
        banner_layout.addWidget(clear_similar_btn)
        self.similar_banner.setVisible(False)
        layout.addWidget(self.similar_banner)

        self.tree = GroupTree()
        self.tree.setHeaderLabels(["Part", "Color", "Found"])
        self.tree.setColumnWidth(0, 320)
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._on_context_menu)
        self.tree.itemDoubleClicked.connect(self._on_double_click)
        self.tree.itemExpanded.connect(self._on_item_expanded)
        self.tree.itemCollapsed.connect(self._on_item_collapsed)
        self.tree.itemSelectionChanged.connect(self._update_buttons)
        self.tree.group_dropped.connect(self._on_group_dropped)
        layout.addWidget(self.tree, 1)

        actions = QHBoxLayout()
        self.minus_btn = QPushButton("−")
        self.minus_btn.clicked.connect(lambda: self._on_increment(-1))
        actions.addWidget(self.minus_btn)
        self.plus_btn = QPushButton("+")
        self.plus_btn.clicked.connect(lambda: self._on_increment(1))
        actions.addWidget(self.plus_btn)
        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(self._on_clear)
        actions.addWidget(self.clear_btn)
        self.complete_btn = QPushButton("Complete")
        self.complete_btn.clicked.connect(self._on_complete)
        actions.addWidget(self.complete_btn)
        self.similar_btn = QPushButton("Show All Colors")
        self.similar_btn.clicked.connect(self._on_show_similar)
        actions.addWidget(self.similar_btn)
        actions.addStretch()
        self.up_btn = QPushButton("Move Group Up")
        self.up_btn.clicked.connect(lambda: self._on_move_group(-1))
        actions.addWidget(self.up_btn)
        self.down_btn = QPushButton("Move Group Down")
        self.down_btn.clicked.connect(lambda: self._on_move_group(1))
        actions.addWidget(self.down_btn)
        layout.addLayout(actions)

    # ── Rendering ───────────────────────────────────────────────

    def refresh(self):
        """Recompute the projection and rebuild the tree."""
        selected = self._selected_data()
        self._projection = self.client.projection(self.state)
        projection = self._projection

        found, needed, pct = self.client.progress()
        self.progress_bar.setValue(pct)
        self.progress_label.setText(format_progress(found, needed))

        if projection.similar_label:
            self.similar_label.setText(
                f"Showing all colors of {projection.similar_label}"
            )
        self.similar_banner.setVisible(self.state.similar_part_num is not None)

        self._building = True
        try:
            self.tree.clear()
            for group in self.groups.resolve(projection.groups):
                top = QTreeWidgetItem([
                    group.label, "", format_progress(group.found, group.needed),
                ])
                top.setData(0, Qt.UserRole, ("group", group.label))
                if group.color_rgb:
                    top.setIcon(0, _swatch_icon(group.color_rgb))
                self.tree.addTopLevelItem(top)
                for part in group.parts:
                    top.addChild(self._part_item(part))
                top.setExpanded(not self.groups.is_collapsed(group.label))

            if projection.spares:
                spares = QTreeWidgetItem([SPARES_LABEL, "", ""])
                spares.setData(0, Qt.UserRole, ("group", SPARES_GROUP))
                spares.setFlags(spares.flags() & ~Qt.ItemIsDragEnabled)
                self.tree.addTopLevelItem(spares)
                for part in projection.spares:
                    spares.addChild(self._part_item(part))
                spares.setExpanded(not self.groups.is_collapsed(SPARES_GROUP))

            if selected is not None:
                self._select(selected)
        finally:
            self._building = False

        self.collapse_btn.setText(
            "Expand All" if self.groups.all_collapsed(self._collapsible())
            else "Collapse All"
        )
        self._update_buttons()

    def _part_item(self, part: SessionPart) -> QTreeWidgetItem:
        item = QTreeWidgetItem([
            f"{part.part_name} ({part.part_num})",
            part.color_name,
            f"{part.qty_found}/{part.qty_needed}",
        ])
        item.setData(0, Qt.UserRole, ("part", part.id))
        item.setFlags(item.flags() & ~Qt.ItemIsDragEnabled)
        item.setIcon(1, _swatch_icon(part.color_rgb))
        if part.is_complete:
            for col in range(3):
                item.setForeground(col, QBrush(QColor(COMPLETE_COLOR)))
        return item

    def _collapsible(self) -> list[str]:
        # Spares take part in Collapse All / Expand All
        labels = list(self._projection.labels) if self._projection else []
        if self._projection and self._projection.spares:
            labels.append(SPARES_GROUP)
        return labels

    def _select(self, data):
        for i in range(self.tree.topLevelItemCount()):
            top = self.tree.topLevelItem(i)
            if top.data(0, Qt.UserRole) == data:
                self.tree.setCurrentItem(top)
                return
            for j in range(top.childCount()):
                child = top.child(j)
                if child.data(0, Qt.UserRole) == data:
                    self.tree.setCurrentItem(child)
                    return

    # ── Selection helpers ───────────────────────────────────────

    def _selected_data(self):
        item = self.tree.currentItem()
        return item.data(0, Qt.UserRole) if item is not None else None

    def _selected_part(self):
        data = self._selected_data()
        if not data or data[0] != "part":
            return None
        return self.client.ledger.get(data[1])

    def _selected_group_label(self):
        return GroupTree.group_label(self.tree.currentItem())

    def _update_buttons(self):
        part = self._selected_part()
        has_part = part is not None
        self.minus_btn.setEnabled(has_part and part.qty_found > 0)
        self.plus_btn.setEnabled(has_part and part.qty_found < part.qty_needed)
        self.clear_btn.setEnabled(has_part and part.qty_found > 0)
        self.complete_btn.setEnabled(has_part and not part.is_complete)
        self.similar_btn.setEnabled(
            has_part and self.client.has_similar(part.part_num)
        )
        group_selected = self._selected_group_label() is not None
        self.up_btn.setEnabled(group_selected)
        self.down_btn.setEnabled(group_selected)

    # ── Counter actions ─────────────────────────────────────────

    def _run(self, action, *args):
        try:
            action(*args)
        except PersistenceError as e:
            self.persistence_failed.emit(f"Change not saved: {e}")

    def _on_increment(self, delta: int):
        part = self._selected_part()
        if part is not None:
            self._run(self.client.increment, part.id, delta)

    def _on_clear(self):
        part = self._selected_part()
        if part is not None:
            self._run(self.client.clear, part.id)

    def _on_complete(self):
        part = self._selected_part()
        if part is not None:
            self._run(self.client.complete, part.id)

    def _on_double_click(self, item: QTreeWidgetItem, column: int):
        kind, value = item.data(0, Qt.UserRole)
        if kind == "part":
            self._run(self.client.increment, value, 1)

    def _on_reset(self):
        reply = QMessageBox.question(
            self, "Reset Progress",
            "Reset every found count in this session to zero?\n"
            "This affects everyone viewing the session.",
            QMessageBox.Yes | QMessageBox.No,
        )
        if reply == QMessageBox.Yes:
            self._run(self.client.reset_all)

    def _on_context_menu(self, pos):
        item = self.tree.itemAt(pos)
        if item is None:
            return
        self.tree.setCurrentItem(item)
        part = self._selected_part()
        menu = QMenu(self)
        if part is not None:
            menu.addAction("Clear", self._on_clear).setEnabled(
                part.qty_found > 0)
            menu.addAction("Complete", self._on_complete).setEnabled(
                not part.is_complete)
            menu.addAction("Show All Colors", self._on_show_similar).setEnabled(
                self.client.has_similar(part.part_num))
        elif self._selected_group_label() is not None:
            menu.addAction("Move Up", lambda: self._on_move_group(-1))
            menu.addAction("Move Down", lambda: self._on_move_group(1))
        if not menu.isEmpty():
            menu.exec(self.tree.viewport().mapToGlobal(pos))

    # ── View state ──────────────────────────────────────────────

    def set_group_by(self, group_by: str):
        if group_by == self.state.group_by:
            return
        self.state = self.state.with_group_by(group_by)
        self.groups.set_group_by(group_by)
        self.refresh()

    def set_filter(self, filter_by: str):
        if filter_by == self.state.filter_by:
            return
        self.state = self.state.with_filter(filter_by)
        self.refresh()

    def show_similar(self, part_num):
        self.state = self.state.narrowed_to(part_num)
        self.refresh()

    def _on_group_changed(self, index: int):
        self.set_group_by(self.group_combo.itemData(index))

    def _on_filter_changed(self, index: int):
        self.set_filter(self.filter_combo.itemData(index))

    def _on_show_similar(self):
        part = self._selected_part()
        if part is not None and self.client.has_similar(part.part_num):
            self.show_similar(part.part_num)

    def _on_move_group(self, offset: int):
        label = self._selected_group_label()
        if label is None or self._projection is None:
            return
        if self.groups.move_by(label, offset, self._projection.labels):
            self.refresh()

    def _on_group_dropped(self, from_label: str, to_label: str):
        if self._projection is None:
            return
        if self.groups.reorder(from_label, to_label, self._projection.labels):
            self._select(("group", from_label))
            self.refresh()

    # ── Collapse ────────────────────────────────────────────────

    def _on_item_expanded(self, item: QTreeWidgetItem):
        self._sync_collapse(item, collapsed=False)

    def _on_item_collapsed(self, item: QTreeWidgetItem):
        self._sync_collapse(item, collapsed=True)

    def _sync_collapse(self, item: QTreeWidgetItem, collapsed: bool):
        if self._building:
            return
        kind, label = item.data(0, Qt.UserRole)
        if kind != "group" or self.groups.is_collapsed(label) == collapsed:
            return
        self.groups.toggle(label)
        self.collapse_btn.setText(
            "Expand All" if self.groups.all_collapsed(self._collapsible())
            else "Collapse All"
        )

    def _on_toggle_all(self):
        self.groups.toggle_all(self._collapsible())
        self.refresh()

    # ── Dialogs ─────────────────────────────────────────────────

    def _on_share(self):
        session = self.client.session
        ShareDialog(session.slug, session.set_name, self).exec()

    def _on_export(self):
        session = self.client.session
        ExportDialog(self.client.ledger.snapshot(), session.set_num, self).exec()

    # ── Sync ────────────────────────────────────────────────────

    def _poll(self):
        self.channel.poll()

    def close_session(self):
        """Stop polling and unsubscribe. Safe to call twice."""
        self._poll_timer.stop()
        self.client.remove_listener(self.refresh)
        self.client.close()

    def closeEvent(self, event):
        self.close_session()
        super().closeEvent(event)
