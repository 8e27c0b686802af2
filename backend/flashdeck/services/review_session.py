"""Review session coordinator: preview, rate, commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from flashdeck.config import SchedulerSettings, get_scheduler_settings
from flashdeck.errors import CommitError
from flashdeck.models import Deck, Flashcard, FlashcardReview
from flashdeck.services.selector import DueCardSelector, DueQueue
from flashdeck.services.session_store import SessionStore, StudySessionState
from flashdeck.srs.fsrs import (
    FSRSParameters,
    FSRSScheduler,
    ScheduledReview,
    SchedulingState,
    new_scheduling_state,
    parse_rating,
)
from flashdeck.srs.states import Rating
from flashdeck.srs.time import study_day_for, truncate_to_second, utc_now
from flashdeck.store.base import FlashcardStore, QuotaWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """Everything a committed review produced."""

    card: Flashcard
    scheduled: ScheduledReview
    log_entry: FlashcardReview
    previews: dict[Rating, ScheduledReview]
    next_intervals: dict[str, str]
    session: StudySessionState | None = None

    @property
    def state(self) -> SchedulingState:
        return self.scheduled.state


def build_scheduler(settings: SchedulerSettings | None = None) -> FSRSScheduler:
    settings = settings or get_scheduler_settings()
    return FSRSScheduler(FSRSParameters.from_settings(settings))


class ReviewSessionCoordinator:
    """Drives show -> rate -> commit cycles against a store.

    The four-rating preview and the committed review come from the same
    `FSRSScheduler.repeat` call, so what the user was shown is what gets
    stored. Each commit writes the new state, the log entry and the quota
    usage in one store transaction guarded by the card's `reps`.
    """

    def __init__(
        self,
        store: FlashcardStore,
        scheduler: FSRSScheduler | None = None,
        settings: SchedulerSettings | None = None,
        sessions: SessionStore | None = None,
    ):
        self.store = store
        self.settings = settings or get_scheduler_settings()
        self.scheduler = scheduler or build_scheduler(self.settings)
        self.sessions = sessions
        self.selector = DueCardSelector(store, self.settings)

    def create_card(self, card: Flashcard, now: datetime | None = None) -> Flashcard:
        """Store a new card with a fresh New state; callers never set scheduling fields."""
        return self.store.add_card(card, new_scheduling_state(now or utc_now()))

    def due_queue(
        self,
        deck_id: str,
        now: datetime | None = None,
        session_id: str | None = None,
        limit: int | None = None,
    ) -> tuple[DueQueue, StudySessionState | None]:
        """Select today's queue and attach it to the session, if any."""
        queue = self.selector.get_due_queue(deck_id, now or utc_now(), limit)
        session = None
        if self.sessions is not None:
            session = self.sessions.get_or_create(session_id)
            session.load_queue(deck_id, queue.card_ids)
            self.sessions.update(session)
        return queue, session

    def preview(self, card_id: str, now: datetime | None = None) -> dict[Rating, ScheduledReview]:
        """Outcomes of all four ratings for a card; nothing is written."""
        state = self.store.load_state(card_id)
        return self.scheduler.repeat(state, now or utc_now(), card_id)

    def submit_review(
        self,
        card_id: str,
        rating: Rating | int,
        now: datetime | None = None,
        session_id: str | None = None,
    ) -> ReviewOutcome:
        """Rate a card and commit the result.

        Raises InvalidRatingError before anything is read, CardNotFoundError,
        and the CommitError family when the store declines the commit (the
        card then keeps its previous state).
        """
        rating = parse_rating(rating)
        now = truncate_to_second(now or utc_now())

        card = self.store.get_card(card_id)
        deck = self.store.get_deck(card.deckId)
        state = self.store.load_state(card_id)

        previews = self.scheduler.repeat(state, now, card.id)
        scheduled = previews[rating]
        log_entry = FlashcardReview.from_review(card.id, card.deckId, scheduled)

        try:
            self.store.commit(
                card.id,
                scheduled.state,
                log_entry,
                expected_reps=state.reps,
                quota=self.quota_for(deck, now),
            )
        except CommitError as exc:
            logger.warning("Review of card %s declined (%s): %s", card_id, exc.reason, exc)
            raise

        logger.info(
            "Card %s rated %s: %s -> %s, due %s",
            card_id,
            rating.name,
            state.state.name,
            scheduled.state.state.name,
            scheduled.state.due.isoformat(),
        )

        session = self._record(session_id, card, rating)
        return ReviewOutcome(
            card=card,
            scheduled=scheduled,
            log_entry=log_entry,
            previews=previews,
            next_intervals=self.scheduler.next_intervals(scheduled.state, now, card.id),
            session=session,
        )

    def quota_for(self, deck: Deck, now: datetime) -> QuotaWindow:
        study_day = study_day_for(now, self.settings.timezone, self.settings.day_start_hour)
        return QuotaWindow.for_deck(deck, study_day)

    def _record(self, session_id: str | None, card: Flashcard, rating: Rating) -> StudySessionState | None:
        if self.sessions is None or session_id is None:
            return None
        session = self.sessions.get_or_create(session_id)
        session.record(card.deckId, card.id, rating)
        self.sessions.update(session)
        return session
