"""In-process store used when Cosmos DB is not configured, and in tests."""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from flashdeck.errors import (
    CardNotFoundError,
    DeckNotFoundError,
    QuotaExceededError,
    StaleStateError,
)
from flashdeck.models import Deck, Flashcard, FlashcardFSRS, FlashcardReview
from flashdeck.srs.fsrs import SchedulingState
from flashdeck.srs.time import StudyDay, ensure_utc, parse_iso_z
from flashdeck.store.base import DueSnapshot, FlashcardStore, QuotaWindow, count_reviews

logger = logging.getLogger(__name__)


class InMemoryFlashcardStore(FlashcardStore):
    """Thread-safe dict-backed store.

    Documents are kept in their serialized form so that reads go through the
    same conversion as a real database would.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._decks: dict[str, dict] = {}
        self._cards: dict[str, dict] = {}
        self._states: dict[str, dict] = {}
        self._reviews: list[dict] = []

    def _require_deck(self, deck_id: str) -> dict:
        raw = self._decks.get(deck_id)
        if raw is None:
            raise DeckNotFoundError(f"Deck with ID {deck_id} not found")
        return raw

    def _require_card(self, card_id: str) -> dict:
        raw = self._cards.get(card_id)
        if raw is None:
            raise CardNotFoundError(f"Card with ID {card_id} not found")
        return raw

    # Decks

    def list_decks(self) -> list[Deck]:
        with self._lock:
            decks = [Deck(**raw) for raw in self._decks.values()]
        return sorted(decks, key=lambda d: d.createdAt, reverse=True)

    def get_deck(self, deck_id: str) -> Deck:
        with self._lock:
            return Deck(**self._require_deck(deck_id))

    def create_deck(self, deck: Deck) -> Deck:
        with self._lock:
            self._decks[deck.id] = deck.model_dump()
        return deck

    def update_deck(self, deck: Deck) -> Deck:
        with self._lock:
            self._require_deck(deck.id)
            self._decks[deck.id] = deck.model_dump()
        return deck

    def delete_deck(self, deck_id: str) -> int:
        with self._lock:
            self._require_deck(deck_id)
            card_ids = [cid for cid, raw in self._cards.items() if raw["deckId"] == deck_id]
            for card_id in card_ids:
                del self._cards[card_id]
                self._states.pop(card_id, None)
            del self._decks[deck_id]
        return len(card_ids)

    # Cards

    def list_cards(self, deck_id: str) -> list[Flashcard]:
        with self._lock:
            self._require_deck(deck_id)
            cards = [Flashcard(**raw) for raw in self._cards.values() if raw["deckId"] == deck_id]
        return sorted(cards, key=lambda c: c.createdAt, reverse=True)

    def get_card(self, card_id: str) -> Flashcard:
        with self._lock:
            return Flashcard(**self._require_card(card_id))

    def add_card(self, card: Flashcard, state: SchedulingState) -> Flashcard:
        with self._lock:
            self._require_deck(card.deckId)
            self._cards[card.id] = card.model_dump()
            self._states[card.id] = FlashcardFSRS.from_state(card.id, state).model_dump()
        return card

    def update_card(self, card: Flashcard) -> Flashcard:
        with self._lock:
            self._require_card(card.id)
            self._cards[card.id] = card.model_dump()
        return card

    def delete_card(self, card_id: str) -> None:
        with self._lock:
            self._require_card(card_id)
            del self._cards[card_id]
            self._states.pop(card_id, None)

    # Scheduling state and review log

    def load_state(self, card_id: str) -> SchedulingState:
        with self._lock:
            self._require_card(card_id)
            return FlashcardFSRS(**self._states[card_id]).to_state()

    def load_states(self, deck_id: str) -> dict[str, SchedulingState]:
        with self._lock:
            return {
                card_id: FlashcardFSRS(**self._states[card_id]).to_state()
                for card_id, raw in self._cards.items()
                if raw["deckId"] == deck_id
            }

    def load_log(
        self,
        card_id: str | None = None,
        deck_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[FlashcardReview]:
        with self._lock:
            return self._select_log(card_id, deck_id, start, end)

    def _select_log(self, card_id, deck_id, start, end) -> list[FlashcardReview]:
        start = ensure_utc(start) if start else None
        end = ensure_utc(end) if end else None
        entries = []
        for raw in self._reviews:
            if card_id is not None and raw["flashcardId"] != card_id:
                continue
            if deck_id is not None and raw["deckId"] != deck_id:
                continue
            reviewed_at = parse_iso_z(raw["reviewedAt"])
            if start is not None and reviewed_at < start:
                continue
            if end is not None and reviewed_at >= end:
                continue
            entries.append(FlashcardReview(**raw))
        return sorted(entries, key=lambda e: e.reviewedAt)

    def load_due_snapshot(self, deck_id: str, now: datetime, window: StudyDay) -> DueSnapshot:
        now = ensure_utc(now)
        with self._lock:
            deck = Deck(**self._require_deck(deck_id))
            due = []
            for card_id, raw in self._cards.items():
                if raw["deckId"] != deck_id:
                    continue
                state = FlashcardFSRS(**self._states[card_id]).to_state()
                if state.due <= now:
                    due.append((Flashcard(**raw), state))
            new, review = count_reviews(self._select_log(None, deck_id, window.start, window.end))
        return DueSnapshot(deck=deck, cards=due, new_reviewed=new, review_reviewed=review)

    def commit(
        self,
        card_id: str,
        new_state: SchedulingState,
        log_entry: FlashcardReview,
        expected_reps: int,
        quota: QuotaWindow | None = None,
    ) -> None:
        with self._lock:
            self._require_card(card_id)
            current = self._states[card_id]
            if current["reps"] != expected_reps:
                raise StaleStateError(
                    f"Card {card_id} changed during review (reps {current['reps']} != {expected_reps})"
                )
            if quota is not None:
                today = self._select_log(None, log_entry.deckId, quota.start, quota.end)
                new, review = count_reviews(today)
                used = new if log_entry.counts_as_new else review
                if used >= quota.limit_for(log_entry):
                    raise QuotaExceededError(
                        f"Daily {'new' if log_entry.counts_as_new else 'review'} limit reached "
                        f"for deck {log_entry.deckId}"
                    )
            self._states[card_id] = FlashcardFSRS.from_state(card_id, new_state).model_dump()
            self._reviews.append(log_entry.model_dump())
        logger.debug("Committed review %s for card %s", log_entry.id, card_id)
