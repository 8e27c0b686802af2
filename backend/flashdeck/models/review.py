"""Scheduling-state, review-log and study models."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, Field

from flashdeck.srs.fsrs import ScheduledReview, SchedulingState
from flashdeck.srs.states import CardState
from flashdeck.srs.time import parse_iso_z, utc_datetime_to_iso_z


class FlashcardFSRS(BaseModel):
    """Persisted scheduling state of one card (1:1 with the card)."""

    flashcardId: str = Field(..., description="Card this state belongs to")
    difficulty: float = Field(0.0, description="Intrinsic hardness, 1-10 once reviewed")
    stability: float = Field(0.0, description="Days until recall probability drops to the target retention")
    retrievability: float = Field(1.0, ge=0, le=1, description="Recall probability at the last review")
    state: int = Field(0, ge=0, le=3, description="0=New, 1=Learning, 2=Review, 3=Relearning")
    due: str = Field(..., description="Due timestamp (UTC ISO Z)")
    lastReview: str | None = Field(None, description="Last review timestamp (UTC ISO Z)")
    reps: int = Field(0, ge=0)
    lapses: int = Field(0, ge=0)
    scheduledDays: int = Field(0, ge=0)
    elapsedDays: int = Field(0, ge=0)

    @classmethod
    def from_state(cls, card_id: str, state: SchedulingState) -> FlashcardFSRS:
        return cls(
            flashcardId=card_id,
            difficulty=state.difficulty,
            stability=state.stability,
            retrievability=state.retrievability,
            state=int(state.state),
            due=utc_datetime_to_iso_z(state.due),
            lastReview=utc_datetime_to_iso_z(state.last_review) if state.last_review else None,
            reps=state.reps,
            lapses=state.lapses,
            scheduledDays=state.scheduled_days,
            elapsedDays=state.elapsed_days,
        )

    def to_state(self) -> SchedulingState:
        return SchedulingState(
            due=parse_iso_z(self.due),
            difficulty=self.difficulty,
            stability=self.stability,
            retrievability=self.retrievability,
            state=CardState(self.state),
            last_review=parse_iso_z(self.lastReview) if self.lastReview else None,
            reps=self.reps,
            lapses=self.lapses,
            scheduled_days=self.scheduledDays,
            elapsed_days=self.elapsedDays,
        )


class FlashcardReview(BaseModel):
    """Append-only review log entry.

    `scheduledDays` and `state` hold the values from before the review was
    applied. `elapsedDays` is the gap since the previous review, measured at
    this review and before its update.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique identifier")
    flashcardId: str = Field(..., description="Reviewed card")
    deckId: str = Field(..., description="Deck of the reviewed card")
    rating: int = Field(..., ge=1, le=4, description="1=Again, 2=Hard, 3=Good, 4=Easy")
    reviewedAt: str = Field(..., description="Review timestamp (UTC ISO Z)")
    scheduledDays: int = Field(0, ge=0)
    elapsedDays: int = Field(0, ge=0)
    state: int = Field(0, ge=0, le=3, description="Card state before the review")

    @classmethod
    def from_review(cls, card_id: str, deck_id: str, scheduled: ScheduledReview) -> FlashcardReview:
        previous = scheduled.previous
        return cls(
            flashcardId=card_id,
            deckId=deck_id,
            rating=int(scheduled.rating),
            reviewedAt=utc_datetime_to_iso_z(scheduled.state.last_review),
            scheduledDays=previous.scheduled_days,
            elapsedDays=scheduled.state.elapsed_days,
            state=int(previous.state),
        )

    @property
    def counts_as_new(self) -> bool:
        """Whether this review consumed the deck's daily new-card quota."""
        return self.state == CardState.NEW


class IntervalPreview(BaseModel):
    """What one rating would do to a card."""

    rating: int
    name: str = Field(..., description="again, hard, good or easy")
    intervalDays: float = Field(..., description="Interval in days (fractional for relearning steps)")
    label: str = Field(..., description="Short label, e.g. 10m, 3d, 2mo")
    due: str = Field(..., description="Resulting due timestamp (UTC ISO Z)")
    state: int = Field(..., description="Resulting card state")

    @classmethod
    def from_review(cls, scheduled: ScheduledReview) -> IntervalPreview:
        return cls(
            rating=int(scheduled.rating),
            name=scheduled.rating.name.lower(),
            intervalDays=round(scheduled.interval_days, 4),
            label=scheduled.label,
            due=utc_datetime_to_iso_z(scheduled.state.due),
            state=int(scheduled.state.state),
        )


class ReviewRequest(BaseModel):
    """Request body for POST /study/review.

    `rating` is validated by the review coordinator so that an out-of-range
    value is reported with the `invalid_rating` reason code.
    """

    cardId: str
    rating: int
    sessionId: str | None = Field(None, description="Study session to count this review in")


class SessionProgress(BaseModel):
    """Progress counters of a study session (not persisted)."""

    sessionId: str
    deckId: str | None
    reviewed: int = 0
    againCount: int = 0
    successStreak: int = 0
    position: int = 0
    queueSize: int = 0


class ReviewResponse(BaseModel):
    """Result of a committed review."""

    fsrs: FlashcardFSRS
    review: FlashcardReview
    previews: list[IntervalPreview] = Field(..., description="The four outcomes the rating was chosen from")
    nextIntervals: dict[str, str] = Field(..., description="Button labels for the card's next presentation")
    session: SessionProgress | None = None


class PreviewResponse(BaseModel):
    """Four-rating preview of a card."""

    cardId: str
    retrievability: float
    previews: list[IntervalPreview]
