"""Ratings, card states and the state transition table."""

from __future__ import annotations

from enum import IntEnum


class Rating(IntEnum):
    """User feedback on a recall attempt."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardState(IntEnum):
    """Learning phase of a card (persisted as its integer value)."""

    NEW = 0
    LEARNING = 1
    REVIEW = 2
    RELEARNING = 3


# (current state, rating) -> next state.
# Again never moves a card forward; a failure from Review demotes to
# Relearning, not Learning; Easy fast-tracks New/Learning cards to Review.
TRANSITIONS: dict[CardState, dict[Rating, CardState]] = {
    CardState.NEW: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.LEARNING,
        Rating.GOOD: CardState.LEARNING,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.LEARNING: {
        Rating.AGAIN: CardState.LEARNING,
        Rating.HARD: CardState.LEARNING,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.REVIEW: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.REVIEW,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
    CardState.RELEARNING: {
        Rating.AGAIN: CardState.RELEARNING,
        Rating.HARD: CardState.RELEARNING,
        Rating.GOOD: CardState.REVIEW,
        Rating.EASY: CardState.REVIEW,
    },
}


def next_state(current: CardState, rating: Rating) -> CardState:
    return TRANSITIONS[current][rating]


def is_lapse(current: CardState, rating: Rating) -> bool:
    """A lapse is a failed recall of a card that had already been learned."""
    return rating == Rating.AGAIN and current in (CardState.REVIEW, CardState.RELEARNING)
