"""Due-card selection under daily new/review limits."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from flashdeck.config import SchedulerSettings, get_scheduler_settings
from flashdeck.models import Deck, Flashcard
from flashdeck.srs.fsrs import SchedulingState
from flashdeck.srs.states import CardState
from flashdeck.srs.time import StudyDay, ensure_utc, study_day_for
from flashdeck.store.base import FlashcardStore

logger = logging.getLogger(__name__)


@dataclass
class DueQueue:
    """Ordered due cards of a deck plus what is left of today's limits."""

    deck: Deck
    study_day: StudyDay
    cards: list[tuple[Flashcard, SchedulingState]] = field(default_factory=list)
    new_remaining: int = 0
    review_remaining: int = 0

    @property
    def card_ids(self) -> list[str]:
        return [card.id for card, _ in self.cards]


def queue_order(item: tuple[Flashcard, SchedulingState]) -> tuple:
    """New cards first, then learning, review and relearning; each by due date."""
    card, state = item
    return (int(state.state), state.due, card.id)


class DueCardSelector:
    """Selects the cards a deck presents today.

    Stateless: the day's usage is read from the review log in the same store
    snapshot as the due cards, so repeated calls for the same deck and
    instant return the same queue until a new review is committed.
    """

    def __init__(self, store: FlashcardStore, settings: SchedulerSettings | None = None):
        self.store = store
        self.settings = settings or get_scheduler_settings()

    def today(self, now: datetime) -> StudyDay:
        return study_day_for(now, self.settings.timezone, self.settings.day_start_hour)

    def get_due_queue(self, deck_id: str, now: datetime, limit: int | None = None) -> DueQueue:
        now = ensure_utc(now)
        study_day = self.today(now)
        snapshot = self.store.load_due_snapshot(deck_id, now, study_day)
        deck = snapshot.deck

        new_remaining = max(0, deck.dailyNewCards - snapshot.new_reviewed)
        review_remaining = max(0, deck.dailyReviewCards - snapshot.review_reviewed)
        limit = self.settings.due_queue_limit if limit is None else limit

        selected: list[tuple[Flashcard, SchedulingState]] = []
        new_taken = review_taken = 0
        for card, state in sorted(snapshot.cards, key=queue_order):
            if len(selected) >= limit:
                break
            if state.due > now:
                continue
            if state.state == CardState.NEW:
                if new_taken >= new_remaining:
                    continue
                new_taken += 1
            else:
                if review_taken >= review_remaining:
                    continue
                review_taken += 1
            selected.append((card, state))

        logger.debug(
            "Deck %s: %d due, %d selected (new left %d, review left %d)",
            deck_id,
            len(snapshot.cards),
            len(selected),
            new_remaining,
            review_remaining,
        )
        return DueQueue(
            deck=deck,
            study_day=study_day,
            cards=selected,
            new_remaining=new_remaining,
            review_remaining=review_remaining,
        )

    def get_due_cards(self, deck_id: str, now: datetime, limit: int | None = None) -> list[Flashcard]:
        return [card for card, _ in self.get_due_queue(deck_id, now, limit).cards]
