"""pytest-qt tests for the session checklist page."""

from unittest.mock import patch

from PySide6.QtCore import QMimeData, QPointF, Qt
from PySide6.QtGui import QDropEvent
from PySide6.QtWidgets import QMessageBox

from brick_tally.errors import PersistenceError
from brick_tally.utils.constants import (
    FILTER_COMPLETE,
    GROUP_BY_CATEGORY,
    GROUP_BY_STATUS,
    SPARES_GROUP,
    SPARES_LABEL,
)


def _top_labels(page):
    return [page.tree.topLevelItem(i).text(0)
            for i in range(page.tree.topLevelItemCount())]


def _top(page, label):
    for i in range(page.tree.topLevelItemCount()):
        item = page.tree.topLevelItem(i)
        if item.text(0) == label:
            return item
    raise AssertionError(f"No group {label}")


def _select_part(page, part_num, color_name):
    part = next(
        p for p in page.client.ledger
        if p.part_num == part_num and p.color_name == color_name
        and not p.is_spare
    )
    for i in range(page.tree.topLevelItemCount()):
        top = page.tree.topLevelItem(i)
        for j in range(top.childCount()):
            child = top.child(j)
            if tuple(child.data(0, Qt.UserRole)) == ("part", part.id):
                page.tree.setCurrentItem(child)
                return part
    raise AssertionError(f"{part_num} {color_name} not shown")


class TestSessionPageLayout:
    def test_title(self, session_page):
        assert "Liebherr R 9800" in session_page.title_label.text()
        assert "42100-1" in session_page.title_label.text()

    def test_groups_by_color_with_spares_last(self, session_page):
        assert _top_labels(session_page) == [
            "Blue", "Light Bluish Gray", "Red", SPARES_LABEL,
        ]

    def test_spares_collapsed_by_default(self, session_page):
        assert not _top(session_page, SPARES_LABEL).isExpanded()
        assert _top(session_page, "Red").isExpanded()

    def test_progress_shown(self, session_page):
        assert session_page.progress_bar.value() == 0
        assert session_page.progress_label.text() == "0/13 (0%)"

    def test_buttons_disabled_without_selection(self, session_page):
        assert not session_page.plus_btn.isEnabled()
        assert not session_page.up_btn.isEnabled()


class TestSessionPageActions:
    def test_plus_increments_and_keeps_selection(self, session_page, repo):
        part = _select_part(session_page, "3020", "Red")
        session_page.plus_btn.click()
        assert session_page.client.ledger.get(part.id).qty_found == 1
        assert repo.get_part_by_id(part.id).qty_found == 1
        assert tuple(session_page.tree.currentItem().data(0, Qt.UserRole)) \
            == ("part", part.id)
        assert session_page.progress_label.text() == "1/13 (8%)"

    def test_complete_then_clear(self, session_page):
        part = _select_part(session_page, "3020", "Red")
        session_page.complete_btn.click()
        assert session_page.client.ledger.get(part.id).qty_found == 6
        assert not session_page.plus_btn.isEnabled()
        session_page.clear_btn.click()
        assert session_page.client.ledger.get(part.id).qty_found == 0

    def test_double_click_increments(self, session_page):
        part = _select_part(session_page, "3001", "Blue")
        item = session_page.tree.currentItem()
        session_page.tree.itemDoubleClicked.emit(item, 0)
        assert session_page.client.ledger.get(part.id).qty_found == 1

    def test_reset_after_confirm(self, session_page):
        part = _select_part(session_page, "3020", "Red")
        session_page.complete_btn.click()
        with patch.object(QMessageBox, "question",
                          return_value=QMessageBox.Yes):
            session_page.reset_btn.click()
        assert session_page.client.ledger.get(part.id).qty_found == 0

    def test_reset_cancelled(self, session_page):
        part = _select_part(session_page, "3020", "Red")
        session_page.complete_btn.click()
        with patch.object(QMessageBox, "question",
                          return_value=QMessageBox.No):
            session_page.reset_btn.click()
        assert session_page.client.ledger.get(part.id).qty_found == 6

    def test_persistence_failure_signalled(self, qtbot, session_page, repo):
        _select_part(session_page, "3020", "Red")
        with patch.object(repo, "update_found",
                          side_effect=PersistenceError("offline")):
            with qtbot.waitSignal(session_page.persistence_failed) as blocker:
                session_page.plus_btn.click()
        assert "offline" in blocker.args[0]

    def test_remote_change_rerenders(self, session_page, channel,
                                     sample_session):
        part = _select_part(session_page, "3020", "Red")
        channel.publish(sample_session.id, part.id, 6)
        assert session_page.progress_label.text() == "6/13 (46%)"


class TestSessionPageView:
    def test_group_by_category(self, session_page, repo):
        session_page.group_combo.setCurrentIndex(
            session_page.group_combo.findData(GROUP_BY_CATEGORY))
        assert session_page.state.group_by == GROUP_BY_CATEGORY
        assert _top_labels(session_page) == [
            "Category 11", "Category 14", "Other", SPARES_LABEL,
        ]

    def test_filter_complete(self, session_page):
        _select_part(session_page, "3020", "Red")
        session_page.complete_btn.click()
        session_page.filter_combo.setCurrentIndex(
            session_page.filter_combo.findData(FILTER_COMPLETE))
        assert _top_labels(session_page) == ["Red"]
        assert _top(session_page, "Red").childCount() == 1

    def test_show_all_colors(self, session_page):
        _select_part(session_page, "3001", "Red")
        assert session_page.similar_btn.isEnabled()
        session_page.similar_btn.click()
        assert session_page.state.similar_part_num == "3001"
        assert not session_page.similar_banner.isHidden()
        assert _top_labels(session_page) == ["Blue", "Red"]
        session_page.show_similar(None)
        assert session_page.similar_banner.isHidden()

    def test_show_all_colors_unavailable(self, session_page):
        _select_part(session_page, "3020", "Red")
        assert not session_page.similar_btn.isEnabled()

    def test_move_group_up(self, session_page):
        session_page.tree.setCurrentItem(_top(session_page, "Red"))
        session_page.up_btn.click()
        assert _top_labels(session_page)[:3] == [
            "Blue", "Red", "Light Bluish Gray",
        ]

    def test_drop_group_onto_another(self, qtbot, session_page):
        session_page.resize(800, 600)
        session_page.show()
        qtbot.waitExposed(session_page)
        tree = session_page.tree
        tree.setCurrentItem(_top(session_page, "Red"))
        target = tree.visualItemRect(_top(session_page, "Blue")).center()
        mime = QMimeData()
        event = QDropEvent(QPointF(target), Qt.MoveAction, mime,
                           Qt.LeftButton, Qt.NoModifier)
        tree.dropEvent(event)
        assert _top_labels(session_page) == [
            "Red", "Blue", "Light Bluish Gray", SPARES_LABEL,
        ]

    def test_group_dropped_reorders(self, session_page):
        session_page.tree.group_dropped.emit("Red", "Blue")
        assert _top_labels(session_page)[:3] == [
            "Red", "Blue", "Light Bluish Gray",
        ]
        session_page.tree.group_dropped.emit("Light Bluish Gray", "Red")
        assert _top_labels(session_page)[:3] == [
            "Light Bluish Gray", "Red", "Blue",
        ]

    def test_only_group_rows_draggable(self, session_page):
        assert _top(session_page, "Red").flags() & Qt.ItemIsDragEnabled
        assert not (_top(session_page, SPARES_LABEL).flags()
                    & Qt.ItemIsDragEnabled)
        child = _top(session_page, "Red").child(0)
        assert not (child.flags() & Qt.ItemIsDragEnabled)

    def test_drop_on_spares_ignored(self, qtbot, session_page):
        session_page.resize(800, 600)
        session_page.show()
        qtbot.waitExposed(session_page)
        before = _top_labels(session_page)
        tree = session_page.tree
        tree.setCurrentItem(_top(session_page, "Red"))
        target = tree.visualItemRect(_top(session_page, SPARES_LABEL)).center()
        mime = QMimeData()
        tree.dropEvent(QDropEvent(QPointF(target), Qt.MoveAction, mime,
                                  Qt.LeftButton, Qt.NoModifier))
        assert _top_labels(session_page) == before

    def test_mode_change_drops_custom_order(self, session_page):
        session_page.tree.setCurrentItem(_top(session_page, "Red"))
        session_page.up_btn.click()
        session_page.set_group_by(GROUP_BY_STATUS)
        session_page.set_group_by("color")
        assert _top_labels(session_page)[:3] == [
            "Blue", "Light Bluish Gray", "Red",
        ]

    def test_collapsing_a_group_is_remembered(self, session_page, channel,
                                              sample_session):
        _top(session_page, "Blue").setExpanded(False)
        assert session_page.groups.is_collapsed("Blue")
        part = next(p for p in session_page.client.ledger
                    if p.part_num == "3020")
        channel.publish(sample_session.id, part.id, 1)
        assert not _top(session_page, "Blue").isExpanded()

    def test_expanding_spares(self, session_page):
        _top(session_page, SPARES_LABEL).setExpanded(True)
        assert not session_page.groups.is_collapsed(SPARES_GROUP)

    def test_collapse_all_then_expand_all(self, session_page):
        session_page.collapse_btn.click()
        assert all(
            not session_page.tree.topLevelItem(i).isExpanded()
            for i in range(session_page.tree.topLevelItemCount())
        )
        assert session_page.collapse_btn.text() == "Expand All"
        session_page.collapse_btn.click()
        assert _top(session_page, SPARES_LABEL).isExpanded()

    def test_collapse_all_includes_spares(self, session_page):
        _top(session_page, SPARES_LABEL).setExpanded(True)
        session_page.collapse_btn.click()
        assert not _top(session_page, SPARES_LABEL).isExpanded()
        assert session_page.groups.is_collapsed(SPARES_GROUP)


class TestSessionPageLifecycle:
    def test_close_session_unsubscribes(self, session_page, channel,
                                        sample_session):
        session_page.close_session()
        assert channel.subscriptions(sample_session.id) == []
        assert not session_page.client.is_open
