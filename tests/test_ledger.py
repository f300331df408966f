"""
tests/test_ledger.py — Reputation Ledger Tests
===============================================

Tests for rating mutations, leaderboard ordering, dirty tracking, and
the save/load cycle against a temp-file store.
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from creditbridge.engine.ledger import ReputationLedger
from creditbridge.storage.models import UserRecord
from creditbridge.storage.store import JsonStore, StoreWriteError


def _make_ledger(ratings: dict[str, int], store=None) -> ReputationLedger:
    ledger = ReputationLedger(store or MagicMock(spec=JsonStore))
    for uid, rating in ratings.items():
        ledger.adjust_rating(uid, rating)
    return ledger


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
class TestMutations:
    def test_ensure_user_creates_zero_record(self, ledger):
        assert ledger.ensure_user("1") is True
        assert ledger.snapshot() == {"1": UserRecord(id="1", rating=0)}
        assert ledger.dirty

    def test_ensure_existing_user_is_noop(self, ledger):
        ledger.adjust_rating("1", 5)
        ledger.save_if_dirty()

        assert ledger.ensure_user("1") is False
        assert ledger.get_rating("1") == 5
        assert not ledger.dirty

    def test_adjust_creates_unknown_user(self, ledger):
        assert ledger.adjust_rating("1", 10) == 10
        assert ledger.get_rating("1") == 10

    def test_adjust_accumulates(self, ledger):
        ledger.adjust_rating("1", 10)
        assert ledger.adjust_rating("1", -15) == -5

    def test_negative_ratings_allowed(self, ledger):
        assert ledger.adjust_rating("1", -7) == -7

    def test_zero_delta_still_marks_dirty(self, ledger):
        ledger.ensure_user("1")
        ledger.save_if_dirty()
        ledger.adjust_rating("1", 0)
        assert ledger.dirty

    def test_concurrent_adjustments_are_not_lost(self, ledger):
        def worker():
            for _ in range(500):
                ledger.adjust_rating("1", 1)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert ledger.get_rating("1") == 4000


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
class TestQueries:
    def test_unknown_rating_is_zero_and_not_created(self, ledger):
        assert ledger.get_rating("nobody") == 0
        assert len(ledger) == 0
        assert not ledger.dirty

    def test_top_n_orders_by_rating_desc(self):
        ledger = _make_ledger({"A": 10, "B": 30, "C": 20, "D": 5, "E": 40, "F": 1})
        assert [r.id for r in ledger.top_n(5)] == ["E", "B", "C", "A", "D"]

    def test_top_n_fewer_users_than_n(self):
        ledger = _make_ledger({"A": 1, "B": 2})
        assert [r.id for r in ledger.top_n(5)] == ["B", "A"]

    def test_top_n_breaks_ties_by_id(self):
        ledger = _make_ledger({"c": 5, "a": 5, "b": 5, "z": 9})
        assert [r.id for r in ledger.top_n(4)] == ["z", "a", "b", "c"]

    @pytest.mark.parametrize("n", [0, -1])
    def test_top_n_non_positive_is_empty(self, n):
        ledger = _make_ledger({"A": 1})
        assert ledger.top_n(n) == []

    def test_top_n_empty_ledger(self, ledger):
        assert ledger.top_n(5) == []

    def test_is_admin(self, ledger):
        assert ledger.is_admin("900")
        assert not ledger.is_admin("901")


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
class TestPersistence:
    def test_new_ledger_is_clean(self, ledger):
        assert not ledger.dirty
        assert ledger.save_if_dirty() is False

    def test_save_writes_file_and_clears_dirty(self, ledger, store):
        ledger.adjust_rating("1", 3)
        assert ledger.save_if_dirty() is True
        assert not ledger.dirty
        assert store.load() == {"1": UserRecord(id="1", rating=3)}

    def test_clean_save_does_not_touch_file(self, ledger, ledger_path):
        ledger.adjust_rating("1", 3)
        ledger.save_if_dirty()
        before = ledger_path.stat().st_mtime_ns

        assert ledger.save_if_dirty() is False
        assert ledger_path.stat().st_mtime_ns == before

    def test_failed_save_stays_dirty(self):
        store = MagicMock(spec=JsonStore)
        store.save.side_effect = StoreWriteError("disk full")
        ledger = _make_ledger({"1": 1}, store=store)

        with pytest.raises(StoreWriteError):
            ledger.save_if_dirty()
        assert ledger.dirty

    def test_mutation_during_save_stays_dirty(self):
        """A change that lands while the file is being written is not lost."""
        store = MagicMock(spec=JsonStore)
        ledger = _make_ledger({"1": 1}, store=store)
        store.save.side_effect = lambda records: ledger.adjust_rating("2", 5)

        assert ledger.save_if_dirty() is True
        written = store.save.call_args.args[0]
        assert "2" not in written
        assert ledger.dirty

    def test_load_round_trip(self, ledger, store):
        ledger.adjust_rating("1", 3)
        ledger.adjust_rating("2", -4)
        ledger.save_if_dirty()

        fresh = ReputationLedger(store)
        assert fresh.load() == 2
        assert fresh.snapshot() == ledger.snapshot()
        assert not fresh.dirty

    def test_load_replaces_memory(self, ledger, store):
        store.save({"9": UserRecord(id="9", rating=9)})
        ledger.adjust_rating("1", 1)
        ledger.load()
        assert ledger.snapshot() == {"9": UserRecord(id="9", rating=9)}
        assert not ledger.dirty
