"""Scheduler configuration loaded from environment variables."""

import os
from functools import lru_cache

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() not in ("false", "0", "no", "off")


class SchedulerSettings(BaseModel):
    """Settings for the scheduling core."""

    request_retention: float = Field(0.9, gt=0, lt=1)
    maximum_interval: int = Field(36500, ge=1)  # days
    minimum_interval: int = Field(1, ge=1)  # days
    enable_fuzz: bool = True
    relearning_step_minutes: int = Field(10, ge=1)

    # Day boundary for quotas and the heatmap
    timezone: str = "UTC"
    day_start_hour: int = Field(0, ge=0, le=23)

    # Deck defaults
    default_daily_new_cards: int = Field(20, ge=0)
    default_daily_review_cards: int = Field(200, ge=0)
    due_queue_limit: int = Field(50, ge=1)

    session_ttl_seconds: int = Field(30 * 60, ge=1)


@lru_cache()
def get_scheduler_settings() -> SchedulerSettings:
    """Get cached scheduler settings from environment variables."""
    defaults = SchedulerSettings()
    return SchedulerSettings(
        request_retention=float(
            os.getenv("FLASHDECK_REQUEST_RETENTION", defaults.request_retention)
        ),
        maximum_interval=int(os.getenv("FLASHDECK_MAXIMUM_INTERVAL", defaults.maximum_interval)),
        enable_fuzz=_env_bool("FLASHDECK_ENABLE_FUZZ", defaults.enable_fuzz),
        relearning_step_minutes=int(
            os.getenv("FLASHDECK_RELEARNING_STEP_MINUTES", defaults.relearning_step_minutes)
        ),
        timezone=os.getenv("FLASHDECK_TIMEZONE", defaults.timezone),
        day_start_hour=int(os.getenv("FLASHDECK_DAY_START_HOUR", defaults.day_start_hour)),
        default_daily_new_cards=int(
            os.getenv("FLASHDECK_DEFAULT_DAILY_NEW_CARDS", defaults.default_daily_new_cards)
        ),
        default_daily_review_cards=int(
            os.getenv("FLASHDECK_DEFAULT_DAILY_REVIEW_CARDS", defaults.default_daily_review_cards)
        ),
        due_queue_limit=int(os.getenv("FLASHDECK_DUE_QUEUE_LIMIT", defaults.due_queue_limit)),
        session_ttl_seconds=int(
            os.getenv("FLASHDECK_SESSION_TTL_SECONDS", defaults.session_ttl_seconds)
        ),
    )
