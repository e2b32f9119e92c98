"""Tests for the in-process session store."""

from unittest.mock import Mock

import pytest

from edubot.sessions import SessionStore


class TestSessionStore:
    def test_get_or_create_reuses_session(self):
        factory = Mock(side_effect=lambda sid: Mock(session_id=sid))
        store = SessionStore(factory=factory)

        first = store.get_or_create("a")
        second = store.get_or_create("a")

        assert first is second
        factory.assert_called_once_with("a")
        assert len(store) == 1

    def test_sessions_are_isolated(self):
        store = SessionStore(factory=lambda sid: Mock(session_id=sid))

        assert store.get_or_create("a") is not store.get_or_create("b")
        assert len(store) == 2

    def test_get_does_not_create(self):
        store = SessionStore(factory=Mock())
        assert store.get("missing") is None
        assert len(store) == 0

    def test_drop(self):
        store = SessionStore(factory=lambda sid: Mock())
        store.get_or_create("a")

        assert store.drop("a") is True
        assert store.drop("a") is False
        assert store.get("a") is None


class TestSessionLimits:
    """The store never grows without bound."""

    def test_least_recently_used_evicted(self):
        store = SessionStore(factory=lambda sid: Mock(), max_sessions=2, idle_ttl=0)
        store.get_or_create("a")
        store.get_or_create("b")
        store.get_or_create("a")

        store.get_or_create("c")

        assert len(store) == 2
        assert store.get("b") is None
        assert store.get("a") is not None

    def test_many_ids_stay_bounded(self):
        store = SessionStore(factory=lambda sid: Mock(), max_sessions=100, idle_ttl=0)
        for i in range(10_000):
            store.get_or_create(f"s{i}")

        assert len(store) == 100
        assert store.get("s9999") is not None
        assert store.get("s0") is None

    def test_idle_sessions_expire(self):
        now = [0.0]
        store = SessionStore(
            factory=lambda sid: Mock(), max_sessions=10, idle_ttl=60, clock=lambda: now[0]
        )
        store.get_or_create("old")
        now[0] = 50.0
        store.get_or_create("recent")

        now[0] = 100.0

        assert store.get("old") is None
        assert store.get("recent") is not None
        assert len(store) == 1

    def test_use_refreshes_idle_timer(self):
        now = [0.0]
        store = SessionStore(
            factory=lambda sid: Mock(), max_sessions=10, idle_ttl=60, clock=lambda: now[0]
        )
        first = store.get_or_create("a")
        now[0] = 50.0
        store.get("a")
        now[0] = 100.0

        assert store.get_or_create("a") is first

    def test_zero_ttl_never_expires(self):
        now = [0.0]
        store = SessionStore(
            factory=lambda sid: Mock(), max_sessions=10, idle_ttl=0, clock=lambda: now[0]
        )
        store.get_or_create("a")
        now[0] = 1e9
        assert store.get("a") is not None

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            SessionStore(factory=Mock(), max_sessions=0)
