"""TTL-based session store for study-session progress."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field

from cachetools import TTLCache

from flashdeck.config import get_scheduler_settings
from flashdeck.srs.states import Rating
from flashdeck.srs.time import utc_now_iso


@dataclass
class StudySessionState:
    """Progress of one study session.

    A session studies one deck at a time. Starting a different deck resets
    the counters so two decks' progress is never mixed.

    Attributes:
        session_id: Client-visible session identifier
        created_at: ISO timestamp when the session was created
        deck_id: Deck currently studied, None before the first queue
        queue: Card ids of the current due queue, in presentation order
        position: Index of the next card to present
        reviewed: Reviews committed in this session
        again_count: How many of them were rated Again
        success_streak: Consecutive non-Again ratings
    """

    session_id: str
    created_at: str
    deck_id: str | None = None
    queue: list[str] = field(default_factory=list)
    position: int = 0
    reviewed: int = 0
    again_count: int = 0
    success_streak: int = 0

    def start_deck(self, deck_id: str, queue: list[str] | None = None) -> None:
        """Switch to a deck and reset all counters."""
        self.deck_id = deck_id
        self.queue = list(queue or [])
        self.position = 0
        self.reviewed = 0
        self.again_count = 0
        self.success_streak = 0

    def load_queue(self, deck_id: str, queue: list[str]) -> None:
        """Install a freshly selected queue.

        Same deck keeps the counters; a different deck starts over.
        """
        if self.deck_id != deck_id:
            self.start_deck(deck_id, queue)
            return
        self.queue = list(queue)
        self.position = 0

    def record(self, deck_id: str, card_id: str, rating: Rating) -> None:
        """Count a committed review."""
        if self.deck_id != deck_id:
            self.start_deck(deck_id)
        self.reviewed += 1
        if rating == Rating.AGAIN:
            self.again_count += 1
            self.success_streak = 0
        else:
            self.success_streak += 1
        if card_id in self.queue:
            self.position = max(self.position, self.queue.index(card_id) + 1)


class SessionStore:
    """Thread-safe TTL-based session store.

    Stores StudySessionState keyed by session id. Sessions expire after TTL
    seconds of inactivity (sliding window).
    """

    DEFAULT_TTL_SECONDS = 30 * 60
    MAX_SESSIONS = 10000

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, maxsize: int = MAX_SESSIONS):
        self._cache: TTLCache[str, StudySessionState] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._lock = threading.Lock()

    def get(self, session_id: str) -> StudySessionState | None:
        """Get a session; accessing it refreshes its TTL."""
        with self._lock:
            state = self._cache.get(session_id)
            if state is not None:
                self._cache[session_id] = state
            return state

    def get_or_create(self, session_id: str | None = None) -> StudySessionState:
        """Get an existing session or start a new one.

        An unknown or expired id starts a new session under that id; no id
        generates one.
        """
        with self._lock:
            state = self._cache.get(session_id) if session_id else None
            if state is None:
                state = StudySessionState(
                    session_id=session_id or str(uuid.uuid4()),
                    created_at=utc_now_iso(),
                )
            self._cache[state.session_id] = state
            return state

    def update(self, state: StudySessionState) -> None:
        """Update session state (also refreshes TTL)."""
        with self._lock:
            self._cache[state.session_id] = state

    def reset(self, session_id: str) -> None:
        """Remove a session."""
        with self._lock:
            self._cache.pop(session_id, None)

    def clear(self) -> None:
        """Clear all sessions (for testing)."""
        with self._lock:
            self._cache.clear()


# Singleton instance
_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Get the singleton session store instance."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(ttl_seconds=get_scheduler_settings().session_ttl_seconds)
    return _session_store


def reset_session_store() -> None:
    """Reset the session store (for testing)."""
    global _session_store
    _session_store = None
