"""UTC time helpers for SRS scheduling.

All ISO strings produced by this module are UTC and end with 'Z', with second precision:
YYYY-MM-DDTHH:MM:SSZ

Study days are the unit the daily quotas and the heatmap count in. A study day
starts at local midnight of the configured timezone, shifted by an optional
start hour (e.g. 4 means reviews done at 02:00 still count for the previous day).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    """Return timezone-aware UTC 'now'."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return current time as UTC ISO string with second precision and trailing 'Z'."""
    return utc_datetime_to_iso_z(utc_now())


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def truncate_to_second(dt: datetime) -> datetime:
    """Return dt in UTC with microseconds dropped."""
    return ensure_utc(dt).replace(microsecond=0)


def utc_datetime_to_iso_z(dt: datetime) -> str:
    """Format a datetime as UTC ISO string with second precision and trailing 'Z'."""
    dt = truncate_to_second(dt)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso_z(s: str) -> datetime:
    """Parse an ISO-8601 string ending with 'Z' (or '+00:00') into UTC datetime.

    Accepts both second precision and fractional seconds.
    """
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    return ensure_utc(dt)


def add_minutes(now: datetime, minutes: int) -> datetime:
    return now + timedelta(minutes=minutes)


def add_days(now: datetime, days: int) -> datetime:
    return now + timedelta(days=days)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Whole days from earlier to later; negative when later precedes earlier."""
    delta = ensure_utc(later) - ensure_utc(earlier)
    return int(delta.total_seconds() // SECONDS_PER_DAY)


@dataclass(frozen=True)
class StudyDay:
    """A study day and its [start, end) bounds in UTC."""

    day: date
    start: datetime
    end: datetime

    def contains(self, dt: datetime) -> bool:
        dt = ensure_utc(dt)
        return self.start <= dt < self.end


def study_day_for(now: datetime, tz_name: str = "UTC", day_start_hour: int = 0) -> StudyDay:
    """Return the study day that contains `now`."""
    tz = ZoneInfo(tz_name)
    local = ensure_utc(now).astimezone(tz)
    shifted = local - timedelta(hours=day_start_hour)
    return study_day_of(shifted.date(), tz_name, day_start_hour)


def study_day_of(day: date, tz_name: str = "UTC", day_start_hour: int = 0) -> StudyDay:
    """Return the UTC bounds of a given calendar study day."""
    tz = ZoneInfo(tz_name)
    start_local = datetime.combine(day, time(hour=day_start_hour), tzinfo=tz)
    end_local = datetime.combine(day + timedelta(days=1), time(hour=day_start_hour), tzinfo=tz)
    return StudyDay(
        day=day,
        start=start_local.astimezone(timezone.utc),
        end=end_local.astimezone(timezone.utc),
    )
