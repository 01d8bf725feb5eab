"""Tests for the in-memory session store."""

from __future__ import annotations

import threading

import pytest

from coordinator import InputMode, KeypadState
from engine import UnknownOperationError
from store import SessionLimitError, SessionNotFoundError, SessionStore


class TestCreate:

    def test_create_returns_fresh_keypad(self, store):
        session = store.create()
        assert session.id
        assert session.keypad == KeypadState()

    def test_create_sets_timestamps(self, store):
        session = store.create()
        assert session.created_at is not None
        assert session.updated_at == session.created_at

    def test_create_increments_count(self, store):
        assert store.count() == 0
        store.create()
        store.create()
        assert store.count() == 2

    def test_ids_are_unique(self, store):
        ids = {store.create().id for _ in range(20)}
        assert len(ids) == 20

    def test_limit(self):
        store = SessionStore(max_sessions=1)
        store.create()
        with pytest.raises(SessionLimitError) as info:
            store.create()
        assert info.value.limit == 1
        assert store.count() == 1

    def test_limit_frees_on_delete(self):
        store = SessionStore(max_sessions=1)
        store.delete(store.create().id)
        assert store.create().id


class TestGet:

    def test_get_existing(self, store):
        session = store.create()
        assert store.get(session.id) == session

    def test_get_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError, match="nope"):
            store.get("nope")


class TestList:

    def test_list_empty(self, store):
        assert store.list() == []

    def test_list_newest_first(self, store):
        first = store.create()
        second = store.create()
        ids = [s.id for s in store.list()]
        assert set(ids) == {first.id, second.id}
        assert ids[0] == second.id or second.created_at == first.created_at


class TestPress:

    def test_press_applies_keys(self, store):
        session = store.create()
        updated = store.press(session.id, ["3", "enter", "4", "+"])
        assert updated.keypad.calculator.stack.x == 7
        assert updated.keypad.mode is InputMode.POST_OPERATION
        assert store.get(session.id) == updated

    def test_press_bumps_updated_at(self, store):
        session = store.create()
        updated = store.press(session.id, ["1"])
        assert updated.updated_at >= session.updated_at
        assert updated.created_at == session.created_at

    def test_press_is_incremental(self, store):
        session = store.create()
        store.press(session.id, ["3", "enter"])
        updated = store.press(session.id, ["4", "*"])
        assert updated.keypad.calculator.stack.x == 12

    def test_unknown_key_leaves_session_unchanged(self, store):
        session = store.press(store.create().id, ["5"])
        with pytest.raises(UnknownOperationError):
            store.press(session.id, ["1", "bogus"])
        assert store.get(session.id).keypad == session.keypad

    def test_division_by_zero_is_not_an_error(self, store):
        session = store.create()
        updated = store.press(session.id, ["8", "enter", "0", "/"])
        assert updated.keypad.error == "Division by zero"
        assert updated.keypad.calculator.stack.y == 8

    def test_press_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.press("nope", ["1"])

    def test_sessions_are_independent(self, store):
        a = store.create()
        b = store.create()
        store.press(a.id, ["9"])
        assert store.get(b.id).keypad == KeypadState()

    def test_concurrent_presses_serialise(self, store):
        session = store.create()

        def worker():
            for _ in range(25):
                store.press(session.id, ["1", "+"])

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get(session.id).keypad.calculator.stack.x == 200


class TestResetAndDelete:

    def test_reset(self, store):
        session = store.create()
        store.press(session.id, ["3", "enter", "4"])
        reset = store.reset(session.id)
        assert reset.keypad == KeypadState()
        assert reset.id == session.id

    def test_reset_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.reset("nope")

    def test_delete_returns_last_state(self, store):
        session = store.create()
        store.press(session.id, ["6"])
        deleted = store.delete(session.id)
        assert deleted.keypad.calculator.stack.x == 6
        assert store.count() == 0

    def test_delete_missing_raises(self, store):
        with pytest.raises(SessionNotFoundError):
            store.delete("nope")

    def test_clear(self, store):
        store.create()
        store.create()
        store.clear()
        assert store.count() == 0
