"""Domain errors raised by the scheduling core.

Every declined operation raises a SchedulingError subclass; `reason` is the
stable code reported to callers.
"""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class for declined scheduling operations."""

    reason = "scheduling_error"


class InvalidRatingError(SchedulingError, ValueError):
    """Raised when a rating is outside Again..Easy (1-4)."""

    reason = "invalid_rating"


class DeckNotFoundError(SchedulingError):
    """Raised when a deck is not found."""

    reason = "deck_not_found"


class CardNotFoundError(SchedulingError):
    """Raised when a card is not found."""

    reason = "card_not_found"


class CommitError(SchedulingError):
    """Raised when a review could not be committed; nothing was written."""

    reason = "commit_failed"


class CommitFailedError(CommitError):
    """Raised when the store failed mid-transaction (I/O, service error)."""

    reason = "commit_failed"


class StaleStateError(CommitError):
    """Raised when the card changed between load and commit."""

    reason = "stale_state"


class QuotaExceededError(CommitError):
    """Raised when the deck's daily quota was used up before the commit landed."""

    reason = "quota_exceeded"
