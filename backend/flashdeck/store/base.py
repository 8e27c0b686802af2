"""Store port for decks, cards, scheduling state and the review log."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime

from flashdeck.models import Deck, Flashcard, FlashcardReview
from flashdeck.srs.fsrs import SchedulingState
from flashdeck.srs.time import StudyDay


@dataclass(frozen=True)
class QuotaWindow:
    """Daily limits of a deck for one study day, enforced at commit time."""

    day: date
    start: datetime
    end: datetime
    new_limit: int
    review_limit: int

    @classmethod
    def for_deck(cls, deck: Deck, study_day: StudyDay) -> QuotaWindow:
        return cls(
            day=study_day.day,
            start=study_day.start,
            end=study_day.end,
            new_limit=deck.dailyNewCards,
            review_limit=deck.dailyReviewCards,
        )

    def limit_for(self, entry: FlashcardReview) -> int:
        return self.new_limit if entry.counts_as_new else self.review_limit


@dataclass
class DueSnapshot:
    """Due cards of a deck and today's review counts, read together."""

    deck: Deck
    cards: list[tuple[Flashcard, SchedulingState]] = field(default_factory=list)
    new_reviewed: int = 0
    review_reviewed: int = 0


def count_reviews(entries: list[FlashcardReview]) -> tuple[int, int]:
    """Split review log entries into (new, review) quota counts."""
    new = sum(1 for entry in entries if entry.counts_as_new)
    return new, len(entries) - new


class FlashcardStore(ABC):
    """Persistence for the scheduling core.

    `commit` is the only way scheduling state changes after a card is
    created: it writes the new state, appends the log entry and re-checks the
    daily quota in one transaction, or writes nothing.
    """

    # Decks

    @abstractmethod
    def list_decks(self) -> list[Deck]: ...

    @abstractmethod
    def get_deck(self, deck_id: str) -> Deck:
        """Raises DeckNotFoundError."""

    @abstractmethod
    def create_deck(self, deck: Deck) -> Deck: ...

    @abstractmethod
    def update_deck(self, deck: Deck) -> Deck: ...

    @abstractmethod
    def delete_deck(self, deck_id: str) -> int:
        """Delete a deck with its cards and their states; returns the card count.

        Review log entries are kept.
        """

    # Cards

    @abstractmethod
    def list_cards(self, deck_id: str) -> list[Flashcard]: ...

    @abstractmethod
    def get_card(self, card_id: str) -> Flashcard:
        """Raises CardNotFoundError."""

    @abstractmethod
    def add_card(self, card: Flashcard, state: SchedulingState) -> Flashcard:
        """Create a card together with its initial scheduling state."""

    @abstractmethod
    def update_card(self, card: Flashcard) -> Flashcard:
        """Replace card content; never touches scheduling state."""

    @abstractmethod
    def delete_card(self, card_id: str) -> None:
        """Delete a card and its scheduling state; review log entries are kept."""

    # Scheduling state and review log

    @abstractmethod
    def load_state(self, card_id: str) -> SchedulingState: ...

    @abstractmethod
    def load_states(self, deck_id: str) -> dict[str, SchedulingState]: ...

    @abstractmethod
    def load_log(
        self,
        card_id: str | None = None,
        deck_id: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[FlashcardReview]:
        """Review log entries in [start, end), oldest first.

        Filters by card or by deck; with neither, returns the whole log.
        """

    @abstractmethod
    def load_due_snapshot(self, deck_id: str, now: datetime, window: StudyDay) -> DueSnapshot:
        """Cards with due <= now and the day's review counts, from one snapshot."""

    @abstractmethod
    def commit(
        self,
        card_id: str,
        new_state: SchedulingState,
        log_entry: FlashcardReview,
        expected_reps: int,
        quota: QuotaWindow | None = None,
    ) -> None:
        """Atomically store a review.

        Raises CardNotFoundError, StaleStateError (the stored state no longer
        has `expected_reps`), QuotaExceededError or CommitFailedError.
        """
