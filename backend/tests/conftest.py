"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timezone

import pytest

# Tests never talk to a real Cosmos DB account
os.environ.pop("COSMOS_ENDPOINT", None)
os.environ["COSMOS_EMULATOR"] = "false"

from flashdeck.config import SchedulerSettings, get_scheduler_settings  # noqa: E402
from flashdeck.db import get_settings  # noqa: E402
from flashdeck.models import Deck, Flashcard  # noqa: E402
from flashdeck.services import ReviewSessionCoordinator, SessionStore, reset_session_store  # noqa: E402
from flashdeck.srs import FixedFuzz, FSRSParameters, FSRSScheduler  # noqa: E402
from flashdeck.store import InMemoryFlashcardStore, reset_store  # noqa: E402

NOW = datetime(2025, 3, 10, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Fresh settings, store and sessions for every test."""
    get_scheduler_settings.cache_clear()
    get_settings.cache_clear()
    reset_store()
    reset_session_store()
    yield
    reset_store()
    reset_session_store()
    get_scheduler_settings.cache_clear()
    get_settings.cache_clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> SchedulerSettings:
    return SchedulerSettings()


@pytest.fixture
def scheduler() -> FSRSScheduler:
    """Scheduler with a fixed fuzz draw so intervals are predictable."""
    return FSRSScheduler(FSRSParameters(), fuzz=FixedFuzz())


@pytest.fixture
def store() -> InMemoryFlashcardStore:
    return InMemoryFlashcardStore()


@pytest.fixture
def deck(store) -> Deck:
    return store.create_deck(Deck(name="Cell Biology", dailyNewCards=20, dailyReviewCards=200))


@pytest.fixture
def coordinator(store, scheduler, settings) -> ReviewSessionCoordinator:
    return ReviewSessionCoordinator(store, scheduler=scheduler, settings=settings, sessions=SessionStore())


@pytest.fixture
def make_cards(coordinator):
    """Create `count` New cards in a deck, due at `now`."""

    def _make(deck: Deck, count: int, now: datetime = NOW) -> list[Flashcard]:
        return [
            coordinator.create_card(
                Flashcard(deckId=deck.id, front=f"Question {i}", back=f"Answer {i}"), now=now
            )
            for i in range(count)
        ]

    return _make
