"""Tests for last-writer-wins reconciliation of remote changes."""

import logging

import pytest

from factories import make_part

from brick_tally.core.ledger import PartLedger
from brick_tally.errors import SyncError
from brick_tally.sync.reconciler import ItemChanged, SyncReconciler


@pytest.fixture
def ledger():
    return PartLedger([
        make_part(7, "3001", "Red", needed=5, found=1),
        make_part(8, "3020", "Red", needed=2, found=0),
    ])


class TestApplyRemote:
    def test_overwrites_regardless_of_local_value(self, ledger):
        reconciler = SyncReconciler(ledger)
        ledger.apply(7, 3)
        reconciler.apply_remote(7, 4)
        assert ledger.get(7).qty_found == 4

    def test_can_lower_value(self, ledger):
        SyncReconciler(ledger).apply_remote(7, 0)
        assert ledger.get(7).qty_found == 0

    def test_other_items_untouched(self, ledger):
        SyncReconciler(ledger).apply_remote(7, 4)
        assert ledger.get(8).qty_found == 0

    def test_unknown_item(self, ledger):
        with pytest.raises(SyncError):
            SyncReconciler(ledger).apply_remote(99, 1)

    def test_out_of_range(self, ledger):
        with pytest.raises(SyncError):
            SyncReconciler(ledger).apply_remote(8, 3)

    @pytest.mark.parametrize("value", ["2", 1.5, None, True])
    def test_non_integer(self, ledger, value):
        with pytest.raises(SyncError):
            SyncReconciler(ledger).apply_remote(7, value)


class TestHandle:
    def test_applied_change_notifies(self, ledger):
        seen = []
        reconciler = SyncReconciler(ledger, seen.append)
        assert reconciler.handle(7, 2) is True
        assert [p.id for p in seen] == [7]
        assert reconciler.applied == 1

    def test_unknown_item_is_noop(self, ledger, caplog):
        seen = []
        reconciler = SyncReconciler(ledger, seen.append)
        before = [(p.id, p.qty_found) for p in ledger]
        with caplog.at_level(logging.WARNING):
            assert reconciler.handle(99, 1) is False
        assert [(p.id, p.qty_found) for p in ledger] == before
        assert seen == []
        assert reconciler.dropped == 1
        assert "Unknown item 99" in caplog.text

    def test_bad_value_keeps_last_known_good(self, ledger):
        reconciler = SyncReconciler(ledger)
        reconciler.handle(7, 3)
        reconciler.handle(7, 50)
        assert ledger.get(7).qty_found == 3

    def test_message_form(self, ledger):
        reconciler = SyncReconciler(ledger)
        assert reconciler.handle_message(ItemChanged(item_id=7, qty_found=4))
        assert ledger.get(7).qty_found == 4

    def test_callable(self, ledger):
        reconciler = SyncReconciler(ledger)
        assert reconciler(8, 2)
        assert ledger.get(8).qty_found == 2

    def test_in_order_delivery_last_wins(self, ledger):
        reconciler = SyncReconciler(ledger)
        for value in (1, 2, 5, 3):
            reconciler(7, value)
        assert ledger.get(7).qty_found == 3
