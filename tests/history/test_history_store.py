"""Tests for the outcome history store."""

import pytest

from conftest import issue_id
from history.store import HistoryStore, OutcomeRecord, QueryOrder
from shared_types import Category


class TestOutcomeRecord:
    def test_category(self):
        assert OutcomeRecord(issue_id="1", value=4).category == Category.LOW
        assert OutcomeRecord(issue_id="1", value=5).category == Category.HIGH

    @pytest.mark.parametrize("value", [-1, 10, True, "3", 2.0])
    def test_rejects_bad_value(self, value):
        with pytest.raises(ValueError):
            OutcomeRecord(issue_id="1", value=value)

    def test_rejects_empty_id(self):
        with pytest.raises(ValueError):
            OutcomeRecord(issue_id="", value=1)


class TestHistoryStore:
    def test_append_and_find(self, db_path):
        store = HistoryStore(db_path)
        assert store.append_if_absent(OutcomeRecord(issue_id=issue_id(1), value=7))

        found = store.find_by_id(issue_id(1))
        assert found.value == 7
        assert found.category == Category.HIGH
        assert store.find_by_id(issue_id(2)) is None

    def test_duplicate_is_noop(self, db_path):
        store = HistoryStore(db_path)
        store.append_if_absent(OutcomeRecord(issue_id=issue_id(1), value=7))

        assert not store.append_if_absent(OutcomeRecord(issue_id=issue_id(1), value=2))
        assert store.count() == 1
        # First write wins
        assert store.find_by_id(issue_id(1)).value == 7

    def test_query_orders(self, db_path, make_records):
        store = HistoryStore(db_path)
        for record in make_records(5):
            store.append_if_absent(record)

        newest = store.query(limit=3)
        assert [r.issue_id for r in newest] == [issue_id(5), issue_id(4), issue_id(3)]

        oldest = store.query(limit=3, order=QueryOrder.OLDEST_FIRST)
        assert [r.issue_id for r in oldest] == [issue_id(3), issue_id(4), issue_id(5)]

    def test_query_order_follows_issue_id_not_insert_order(self, db_path, make_records):
        store = HistoryStore(db_path)
        records = make_records(4)
        for record in reversed(records):
            store.append_if_absent(record)

        assert store.query(limit=1)[0].issue_id == issue_id(4)

    def test_query_empty(self, db_path):
        assert HistoryStore(db_path).query() == []

    def test_persists_across_instances(self, db_path, make_records):
        HistoryStore(db_path).append_if_absent(make_records(1)[0])
        assert HistoryStore(db_path).count() == 1

    def test_creates_parent_dir(self, tmp_path):
        store = HistoryStore(tmp_path / "nested" / "dir" / "h.db")
        assert store.count() == 0
