"""Application configuration."""

import logging
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ontrack.domain.metrics import DEFAULT_GAUGE_RANGE_INDEX, GAUGE_RANGES, MetricType
from ontrack.domain.settings import (
    DEFAULT_ACT_END,
    DEFAULT_ACT_START,
    UserSettings,
    known,
)

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
_IMPERIAL_COUNTRIES = frozenset({"US", "GB"})

_logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    timezone: str = "UTC"
    log_level: str = "INFO"
    country: str = "AU"
    default_goal_energy: float | None = None
    default_goal_steps: float | None = 10000.0
    default_goal_distance: float | None = None
    default_goal_floors: float | None = 10.0
    default_act_start: int = Field(default=DEFAULT_ACT_START, ge=0, le=86400)
    default_act_end: int = Field(default=DEFAULT_ACT_END, ge=0, le=86400)
    default_gauge_range_index: int = Field(
        default=DEFAULT_GAUGE_RANGE_INDEX, ge=0, lt=len(GAUGE_RANGES)
    )
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="ONTRACK_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the zone for a configured name, falling back to UTC."""
    cleaned = (name or "").strip()
    if not cleaned:
        return ZoneInfo("UTC")
    try:
        return ZoneInfo(cleaned)
    except (ZoneInfoNotFoundError, ValueError):
        _logger.warning("Unknown timezone %s, using UTC", cleaned)
        return ZoneInfo("UTC")


def default_user_settings(settings: Settings) -> UserSettings:
    """Build the first-run settings snapshot from configuration."""
    goals = {
        MetricType.ENERGY: known(settings.default_goal_energy),
        MetricType.STEPS: known(settings.default_goal_steps),
        MetricType.DISTANCE: known(settings.default_goal_distance),
        MetricType.FLOORS: known(settings.default_goal_floors),
    }
    return UserSettings(
        is_imperial=settings.country.strip().upper() in _IMPERIAL_COUNTRIES,
        goals=goals,
        act_start=settings.default_act_start,
        act_end=settings.default_act_end,
        range_energy=settings.default_gauge_range_index,
        range_other=settings.default_gauge_range_index,
    )
