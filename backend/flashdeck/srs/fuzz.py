"""Interval fuzz sources.

Fuzz spreads cards that would otherwise land on the same future day. The
random draw is injected so the scheduler stays a pure function. The default
source seeds a private generator from the card and its state, never from the
review time, so a preview shown seconds before a rating matches the commit.
Tests can swap in a fixed draw.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


class FuzzSource(Protocol):
    def draw(self, seed: str) -> float:
        """Return a value in [0, 1) for the given seed."""
        ...


class SeededFuzz:
    """Deterministic fuzz: the same seed always yields the same draw."""

    def draw(self, seed: str) -> float:
        return random.Random(seed).random()


@dataclass(frozen=True)
class FixedFuzz:
    """Always returns the same draw (0.5 means no displacement)."""

    value: float = 0.5

    def draw(self, seed: str) -> float:  # noqa: ARG002
        return self.value


# (lower bound in days, upper bound in days, factor) - the fuzz window grows
# with the interval but shrinks proportionally for long intervals.
FUZZ_RANGES: tuple[tuple[float, float, float], ...] = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)


def fuzz_seed(card_id: str, reps: int, anchor: datetime, difficulty: float, stability: float) -> str:
    """Seed that stays fixed between a preview and the commit of the same review.

    `anchor` is the last review time, or the due time of a card never reviewed.
    """
    return f"{card_id}_{reps}_{anchor.isoformat()}_{difficulty * stability!r}"


def fuzz_delta(interval: float) -> float:
    """Half-width in days of the fuzz window around an interval."""
    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)
    return delta


def apply_fuzz(
    interval: float,
    draw: float,
    minimum: int,
    maximum: int,
) -> int:
    """Displace an interval within its fuzz window and round to whole days.

    Intervals shorter than 2.5 days are never fuzzed.
    """
    if interval < 2.5:
        return int(min(max(round(interval), minimum), maximum))
    delta = fuzz_delta(interval)
    low = max(2, round(interval - delta))
    high = min(round(interval + delta), maximum)
    low = min(low, high)
    fuzzed = int(draw * (high - low + 1) + low)
    return int(min(max(fuzzed, minimum), maximum))
