"""FSRS scheduling (state + interval computation).

Implements the FSRS-4.5 memory model:

- Retrievability follows a power-law forgetting curve
  R(t, S) = (1 + FACTOR * t / S) ** DECAY, calibrated so R(S, S) = 0.9.
- Difficulty moves with the rating and is mean-reverted toward the
  difficulty of a first "Good" answer, then clamped to [1, 10].
- Stability is seeded from per-rating constants on the first review, grows on
  successful recall and shrinks on failure.

The scheduler is pure: given the same state, rating, instant and fuzz source
it returns the same result and never touches storage. `review()` is
`repeat()[rating]`, so the four-rating preview shown to the user is exactly
what a commit of any one of those ratings stores.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime

from flashdeck.config import SchedulerSettings
from flashdeck.errors import InvalidRatingError
from flashdeck.srs.fuzz import FuzzSource, SeededFuzz, apply_fuzz, fuzz_seed
from flashdeck.srs.intervals import format_interval
from flashdeck.srs.states import CardState, Rating, is_lapse, next_state
from flashdeck.srs.time import add_days, add_minutes, truncate_to_second, whole_days_between

logger = logging.getLogger(__name__)


DECAY = -0.5
FACTOR = 19 / 81

D_MIN = 1.0
D_MAX = 10.0
S_MIN = 0.01

# Smallest relative stability gain on a successful recall (reviews done
# with no time elapsed would otherwise gain nothing).
MIN_STABILITY_GROWTH = 0.01

DEFAULT_WEIGHTS: tuple[float, ...] = (
    0.4872,
    1.4003,
    3.7145,
    13.8206,
    5.1618,
    1.2298,
    0.8975,
    0.031,
    1.6474,
    0.1367,
    1.0461,
    2.1072,
    0.0793,
    0.3246,
    1.587,
    0.2272,
    2.8755,
)


@dataclass(frozen=True)
class FSRSParameters:
    weights: tuple[float, ...] = DEFAULT_WEIGHTS
    request_retention: float = 0.9
    maximum_interval: int = 36500
    minimum_interval: int = 1
    enable_fuzz: bool = True
    relearning_step_minutes: int = 10

    def __post_init__(self):
        if len(self.weights) != 17:
            raise ValueError(f"FSRS-4.5 expects 17 weights, got {len(self.weights)}")
        if not 0 < self.request_retention < 1:
            raise ValueError("request_retention must be in (0, 1)")
        if self.minimum_interval < 1 or self.maximum_interval < self.minimum_interval:
            raise ValueError("interval bounds must satisfy 1 <= minimum <= maximum")

    @classmethod
    def from_settings(cls, settings: SchedulerSettings) -> FSRSParameters:
        return cls(
            request_retention=settings.request_retention,
            maximum_interval=settings.maximum_interval,
            minimum_interval=settings.minimum_interval,
            enable_fuzz=settings.enable_fuzz,
            relearning_step_minutes=settings.relearning_step_minutes,
        )


@dataclass(frozen=True)
class SchedulingState:
    """Scheduling snapshot of one card.

    `retrievability` is the recall probability observed at the last review;
    use `FSRSScheduler.retrievability_at` for the value at any other instant.
    A card that was never reviewed carries zero difficulty and stability.
    """

    due: datetime
    difficulty: float = 0.0
    stability: float = 0.0
    retrievability: float = 1.0
    state: CardState = CardState.NEW
    last_review: datetime | None = None
    reps: int = 0
    lapses: int = 0
    scheduled_days: int = 0
    elapsed_days: int = 0


def new_scheduling_state(now: datetime) -> SchedulingState:
    """State of a freshly created card: New and due immediately."""
    return SchedulingState(due=truncate_to_second(now))


@dataclass(frozen=True)
class ScheduledReview:
    """Outcome of rating a card: the state to store and the chosen interval."""

    rating: Rating
    state: SchedulingState
    previous: SchedulingState = field(repr=False)

    @property
    def interval_days(self) -> float:
        """Interval until due, in (possibly fractional) days."""
        delta = self.state.due - self.state.last_review
        return delta.total_seconds() / 86400

    @property
    def label(self) -> str:
        return format_interval(self.interval_days)


def parse_rating(value: object) -> Rating:
    """Validate a user rating; raises InvalidRatingError for anything but 1-4."""
    if isinstance(value, Rating):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingError(f"Rating must be an integer 1-4, got {value!r}")
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRatingError(f"Rating must be between 1 and 4, got {value}")


def forgetting_curve(elapsed_days: float, stability: float) -> float:
    if stability <= 0:
        return 1.0
    r = (1 + FACTOR * max(elapsed_days, 0.0) / stability) ** DECAY
    return _clamp(r, 0.0, 1.0, fallback=0.0)


def _clamp(value: float, low: float, high: float, fallback: float) -> float:
    if math.isnan(value):
        return fallback
    return max(low, min(high, value))


class FSRSScheduler:
    """Computes the next scheduling state of a card for each rating."""

    def __init__(
        self,
        parameters: FSRSParameters | None = None,
        fuzz: FuzzSource | None = None,
    ):
        self.parameters = parameters or FSRSParameters()
        self.fuzz = fuzz or SeededFuzz()

    @property
    def w(self) -> tuple[float, ...]:
        return self.parameters.weights

    # ------------------------------------------------------------------
    # Memory model
    # ------------------------------------------------------------------

    def init_difficulty(self, rating: Rating) -> float:
        return self.clamp_difficulty(self.w[4] - (rating - 3) * self.w[5])

    def init_stability(self, rating: Rating) -> float:
        return self.clamp_stability(self.w[rating - 1])

    def next_difficulty(self, difficulty: float, rating: Rating) -> float:
        moved = difficulty - self.w[6] * (rating - 3)
        baseline = self.w[4]
        reverted = self.w[7] * baseline + (1 - self.w[7]) * moved
        return self.clamp_difficulty(reverted)

    def stability_after_success(
        self, difficulty: float, stability: float, retrievability: float, rating: Rating
    ) -> float:
        hard_penalty = self.w[15] if rating == Rating.HARD else 1.0
        easy_bonus = self.w[16] if rating == Rating.EASY else 1.0
        growth = (
            math.exp(self.w[8])
            * (11 - difficulty)
            * stability ** -self.w[9]
            * (math.exp((1 - retrievability) * self.w[10]) - 1)
            * hard_penalty
            * easy_bonus
        )
        growth = max(growth, MIN_STABILITY_GROWTH)
        return self.clamp_stability(stability * (1 + growth))

    def stability_after_failure(
        self, difficulty: float, stability: float, retrievability: float
    ) -> float:
        forgotten = (
            self.w[11]
            * difficulty ** -self.w[12]
            * ((stability + 1) ** self.w[13] - 1)
            * math.exp((1 - retrievability) * self.w[14])
        )
        return self.clamp_stability(min(forgotten, stability))

    def clamp_difficulty(self, difficulty: float) -> float:
        if not math.isfinite(difficulty):
            logger.warning("Non-finite difficulty %r clamped", difficulty)
        return _clamp(difficulty, D_MIN, D_MAX, fallback=D_MAX)

    def clamp_stability(self, stability: float) -> float:
        if not math.isfinite(stability):
            logger.warning("Non-finite stability %r clamped", stability)
        return _clamp(stability, S_MIN, float(self.parameters.maximum_interval), fallback=S_MIN)

    def next_interval(self, stability: float) -> float:
        """Days until recall probability decays to the requested retention."""
        retention = self.parameters.request_retention
        return stability / FACTOR * (retention ** (1 / DECAY) - 1)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def elapsed_days(self, state: SchedulingState, now: datetime) -> int:
        if state.state == CardState.NEW or state.last_review is None:
            return 0
        elapsed = whole_days_between(state.last_review, now)
        if elapsed < 0:
            logger.warning(
                "Review time %s precedes last review %s; elapsed days clamped to 0",
                now.isoformat(),
                state.last_review.isoformat(),
            )
            return 0
        return elapsed

    def retrievability_at(self, state: SchedulingState, now: datetime) -> float:
        """Current recall probability of a card at `now`."""
        if state.state == CardState.NEW or state.last_review is None:
            return 1.0
        elapsed = (truncate_to_second(now) - state.last_review).total_seconds() / 86400
        return forgetting_curve(elapsed, state.stability)

    def repeat(
        self, state: SchedulingState, now: datetime, card_id: str = ""
    ) -> dict[Rating, ScheduledReview]:
        """Return the outcome of every possible rating, without side effects.

        `card_id` only feeds the fuzz seed, so cards with the same history
        still spread out.
        """
        now = truncate_to_second(now)
        elapsed = self.elapsed_days(state, now)

        if state.state == CardState.NEW:
            retrievability = 1.0
        else:
            stability = self.clamp_stability(max(state.stability, S_MIN))
            retrievability = forgetting_curve(elapsed, stability)

        memory = {rating: self._next_memory(state, rating, retrievability) for rating in Rating}
        intervals = self._intervals(state, memory, card_id)

        outcomes: dict[Rating, ScheduledReview] = {}
        for rating in Rating:
            difficulty, stability = memory[rating]
            days = intervals[rating]
            if rating == Rating.AGAIN:
                due = add_minutes(now, self.parameters.relearning_step_minutes)
            else:
                due = add_days(now, days)
            new_state = SchedulingState(
                due=due,
                difficulty=difficulty,
                stability=stability,
                retrievability=retrievability,
                state=next_state(state.state, rating),
                last_review=now,
                reps=state.reps + 1,
                lapses=state.lapses + (1 if is_lapse(state.state, rating) else 0),
                scheduled_days=days,
                elapsed_days=elapsed,
            )
            outcomes[rating] = ScheduledReview(rating=rating, state=new_state, previous=state)
        return outcomes

    def review(
        self, state: SchedulingState, rating: Rating | int, now: datetime, card_id: str = ""
    ) -> ScheduledReview:
        """Apply one rating and return the resulting state."""
        rating = parse_rating(rating)
        return self.repeat(state, now, card_id)[rating]

    def next_intervals(self, state: SchedulingState, now: datetime, card_id: str = "") -> dict[str, str]:
        """Button labels for all four ratings, e.g. {"again": "10m", "good": "3d", ...}."""
        outcomes = self.repeat(state, now, card_id)
        return {rating.name.lower(): outcomes[rating].label for rating in Rating}

    def _next_memory(
        self, state: SchedulingState, rating: Rating, retrievability: float
    ) -> tuple[float, float]:
        if state.state == CardState.NEW:
            return self.init_difficulty(rating), self.init_stability(rating)

        difficulty = self.clamp_difficulty(state.difficulty)
        stability = self.clamp_stability(max(state.stability, S_MIN))
        if rating == Rating.AGAIN:
            new_stability = self.stability_after_failure(difficulty, stability, retrievability)
        else:
            new_stability = self.stability_after_success(
                difficulty, stability, retrievability, rating
            )
        return self.next_difficulty(difficulty, rating), new_stability

    def _intervals(
        self,
        state: SchedulingState,
        memory: dict[Rating, tuple[float, float]],
        card_id: str,
    ) -> dict[Rating, int]:
        params = self.parameters
        draw = None
        if params.enable_fuzz:
            anchor = state.last_review or state.due
            draw = self.fuzz.draw(
                fuzz_seed(card_id, state.reps, anchor, state.difficulty, state.stability)
            )

        def days_for(rating: Rating) -> int:
            raw = self.next_interval(memory[rating][1])
            if draw is None:
                return int(min(max(round(raw), params.minimum_interval), params.maximum_interval))
            return apply_fuzz(raw, draw, params.minimum_interval, params.maximum_interval)

        hard = days_for(Rating.HARD)
        good = days_for(Rating.GOOD)
        easy = days_for(Rating.EASY)

        # Keep Hard <= Good <= Easy however the fuzz fell.
        hard = min(hard, good)
        good = min(max(good, hard + 1), params.maximum_interval)
        easy = min(max(easy, good + 1), params.maximum_interval)

        return {Rating.AGAIN: 0, Rating.HARD: hard, Rating.GOOD: good, Rating.EASY: easy}
