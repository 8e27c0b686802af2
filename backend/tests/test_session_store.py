"""Tests for the TTL session store and StudySessionState."""

import time

from flashdeck.services.session_store import (
    SessionStore,
    StudySessionState,
    get_session_store,
    reset_session_store,
)
from flashdeck.srs.states import Rating


def make_state(**kwargs) -> StudySessionState:
    return StudySessionState(session_id="session-1", created_at="2025-01-01T00:00:00Z", **kwargs)


class TestStudySessionState:
    """Tests for StudySessionState counters."""

    def test_initial_state(self):
        state = make_state()

        assert state.deck_id is None
        assert state.queue == []
        assert state.position == 0
        assert state.reviewed == 0
        assert state.again_count == 0
        assert state.success_streak == 0

    def test_record_counts_ratings(self):
        state = make_state()
        state.load_queue("deck-a", ["c1", "c2", "c3"])

        state.record("deck-a", "c1", Rating.GOOD)
        state.record("deck-a", "c2", Rating.EASY)
        state.record("deck-a", "c3", Rating.AGAIN)

        assert state.reviewed == 3
        assert state.again_count == 1
        assert state.success_streak == 0
        assert state.position == 3

    def test_success_streak_grows(self):
        state = make_state()
        state.load_queue("deck-a", ["c1", "c2"])
        state.record("deck-a", "c1", Rating.HARD)
        state.record("deck-a", "c2", Rating.GOOD)

        assert state.success_streak == 2

    def test_switching_deck_resets_counters(self):
        state = make_state()
        state.load_queue("deck-a", ["c1", "c2"])
        state.record("deck-a", "c1", Rating.AGAIN)

        state.record("deck-b", "x1", Rating.GOOD)

        assert state.deck_id == "deck-b"
        assert state.reviewed == 1
        assert state.again_count == 0
        assert state.success_streak == 1
        assert state.queue == []

    def test_reloading_same_deck_keeps_counters(self):
        state = make_state()
        state.load_queue("deck-a", ["c1", "c2"])
        state.record("deck-a", "c1", Rating.GOOD)

        state.load_queue("deck-a", ["c2", "c3"])

        assert state.reviewed == 1
        assert state.position == 0
        assert state.queue == ["c2", "c3"]

    def test_loading_other_deck_queue_resets(self):
        state = make_state()
        state.load_queue("deck-a", ["c1"])
        state.record("deck-a", "c1", Rating.GOOD)

        state.load_queue("deck-b", ["x1", "x2"])

        assert state.deck_id == "deck-b"
        assert state.reviewed == 0
        assert state.queue == ["x1", "x2"]


class TestSessionStore:
    """Tests for SessionStore."""

    def test_get_or_create_generates_id(self):
        store = SessionStore()
        state = store.get_or_create()

        assert state.session_id
        assert store.get(state.session_id) is state

    def test_get_or_create_reuses_existing(self):
        store = SessionStore()
        first = store.get_or_create("abc")
        first.reviewed = 4

        assert store.get_or_create("abc").reviewed == 4

    def test_get_missing_returns_none(self):
        assert SessionStore().get("missing") is None

    def test_reset(self):
        store = SessionStore()
        store.get_or_create("abc")
        store.reset("abc")

        assert store.get("abc") is None

    def test_clear(self):
        store = SessionStore()
        store.get_or_create("a")
        store.get_or_create("b")
        store.clear()

        assert store.get("a") is None
        assert store.get("b") is None

    def test_sessions_expire(self):
        store = SessionStore(ttl_seconds=1)
        store.get_or_create("short-lived")
        time.sleep(1.1)

        assert store.get("short-lived") is None


class TestSingleton:
    """Tests for the module-level session store."""

    def test_singleton(self):
        reset_session_store()
        assert get_session_store() is get_session_store()

    def test_ttl_from_settings(self, monkeypatch):
        from flashdeck.config import get_scheduler_settings

        monkeypatch.setenv("FLASHDECK_SESSION_TTL_SECONDS", "42")
        get_scheduler_settings.cache_clear()
        reset_session_store()

        assert get_session_store()._cache.ttl == 42
