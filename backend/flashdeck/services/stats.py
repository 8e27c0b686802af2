"""Read-only rollups over the review log."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta

from flashdeck.config import SchedulerSettings, get_scheduler_settings
from flashdeck.models import TIMEFRAME_DAYS, DeckStats, FlashcardReview, HeatmapData, HeatmapDataPoint
from flashdeck.srs.states import CardState
from flashdeck.srs.time import StudyDay, ensure_utc, parse_iso_z, study_day_for, study_day_of, utc_now
from flashdeck.store.base import FlashcardStore

STREAK_WINDOW_DAYS = 30


def review_streak(days_with_reviews: set[date], today: date) -> int:
    """Consecutive study days with at least one review, counted back from today.

    A day without reviews so far today does not break a streak that ran
    through yesterday.
    """
    day = today
    if day not in days_with_reviews:
        day = today - timedelta(days=1)
    streak = 0
    while day in days_with_reviews:
        streak += 1
        day -= timedelta(days=1)
    return streak


class StatsAggregator:
    """Heatmap and deck statistics; never writes to the store."""

    def __init__(self, store: FlashcardStore, settings: SchedulerSettings | None = None):
        self.store = store
        self.settings = settings or get_scheduler_settings()

    def _study_date(self, entry: FlashcardReview) -> date:
        reviewed_at = parse_iso_z(entry.reviewedAt)
        return study_day_for(reviewed_at, self.settings.timezone, self.settings.day_start_hour).day

    def _streak(self, deck_id: str | None, today: StudyDay) -> int:
        """Walk the log back one window at a time until the streak breaks."""
        tz, start_hour = self.settings.timezone, self.settings.day_start_hour
        days_with_reviews: set[date] = set()
        first_day, end = today.day, today.end
        while True:
            first_day -= timedelta(days=STREAK_WINDOW_DAYS)
            start = study_day_of(first_day, tz, start_hour).start
            entries = self.store.load_log(deck_id=deck_id, start=start, end=end)
            days_with_reviews.update(self._study_date(e) for e in entries)
            streak = review_streak(days_with_reviews, today.day)
            if today.day - timedelta(days=streak) > first_day:
                return streak
            end = start

    def get_heatmap(
        self,
        timeframe: str = "week",
        deck_id: str | None = None,
        now: datetime | None = None,
    ) -> HeatmapData:
        """Reviews per day for the last 7/30/365 study days, zeros included."""
        if timeframe not in TIMEFRAME_DAYS:
            raise ValueError(f"Unknown timeframe {timeframe!r}; expected one of {sorted(TIMEFRAME_DAYS)}")
        days = TIMEFRAME_DAYS[timeframe]
        tz, start_hour = self.settings.timezone, self.settings.day_start_hour

        today = study_day_for(ensure_utc(now or utc_now()), tz, start_hour)
        first_day = today.day - timedelta(days=days - 1)
        start = study_day_of(first_day, tz, start_hour).start

        entries = self.store.load_log(deck_id=deck_id, start=start, end=today.end)
        counts = Counter(self._study_date(e) for e in entries)

        data = [
            HeatmapDataPoint(date=day.isoformat(), count=counts.get(day, 0))
            for day in (first_day + timedelta(days=i) for i in range(days))
        ]
        return HeatmapData(
            timeframe=timeframe,
            data=data,
            maxCount=max((point.count for point in data), default=0),
            totalReviews=sum(point.count for point in data),
            streak=self._streak(deck_id, today),
            startDate=first_day.isoformat(),
            endDate=today.day.isoformat(),
        )

    def get_deck_stats(self, deck_id: str | None = None, now: datetime | None = None) -> DeckStats:
        """Card totals per state, cards due now and reviews done today."""
        now = ensure_utc(now or utc_now())
        today = study_day_for(now, self.settings.timezone, self.settings.day_start_hour)

        if deck_id is not None:
            self.store.get_deck(deck_id)
            deck_ids = [deck_id]
        else:
            deck_ids = [deck.id for deck in self.store.list_decks()]

        stats = DeckStats(deckId=deck_id)
        per_state: Counter = Counter()
        for current in deck_ids:
            for state in self.store.load_states(current).values():
                stats.totalCards += 1
                per_state[state.state] += 1
                if state.due <= now:
                    stats.dueToday += 1

        stats.newCards = per_state[CardState.NEW]
        stats.learningCards = per_state[CardState.LEARNING]
        stats.reviewCards = per_state[CardState.REVIEW]
        stats.relearningCards = per_state[CardState.RELEARNING]
        stats.reviewedToday = len(self.store.load_log(deck_id=deck_id, start=today.start, end=today.end))
        stats.streak = self._streak(deck_id, today)
        return stats
