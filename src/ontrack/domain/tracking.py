"""Domain models for readings, daily constants and view data."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


@dataclass(frozen=True)
class MetricReading:
    """Latest cumulative value of a metric and the time it applies to."""

    value: float
    timestamp: datetime


@dataclass(frozen=True)
class Incomplete:
    """Returned instead of a value when settings can't support tracking."""

    reason: str


@dataclass(frozen=True)
class DailyConstants:
    """Settings-derived values valid for one local calendar day.

    Durations and offsets are in milliseconds; rates are per millisecond.
    """

    day: date
    day_start: datetime
    today_duration: int
    act_start: datetime
    act_end: datetime
    act_start_offset: int
    act_duration: int
    goal_today: float
    subtract_bmr: bool
    bmr_per_day: float
    bmr: float
    effective_bmr: float
    activity_track_rate: float
    track_before_act: float
    track_during_act: float
    gauge_range: float


@dataclass(frozen=True)
class RelativeProgress:
    """How far a reading is from the projected track."""

    ahead: float
    relative: float


@dataclass(frozen=True)
class CardData:
    """Data shown on the app's summary card."""

    rel_proportion: float
    ahead_string: str
    ahead_percent_string: str


@dataclass(frozen=True)
class ComplicationData:
    """Data shown in a watchface complication."""

    rel_proportion: float
    ahead_string: str
    ahead_behind: str


@dataclass(frozen=True)
class TileData:
    """Data shown on a tile."""

    rel_proportion: float
    ahead_string: str
    ahead_behind: str


@dataclass(frozen=True)
class DetailData:
    """Shape of the day for the detail graph.

    ``act_start``, ``act_end`` and ``achiev_time`` are proportions of the day;
    the rest are metric values, excluding BMR where it is subtracted.
    """

    act_start: float
    act_end: float
    coast_at_day_start: float
    track_at_act_start: float
    track_at_act_end: float
    goal: float
    achiev_time: float
    achiev_value: float
    track_at_achiev_time: float
    coast_at_achiev_time: float


class GaugeBand(str, Enum):
    """Colour band of a progress arc."""

    FAR_BEHIND = "far_behind"
    BEHIND = "behind"
    AHEAD = "ahead"
    FAR_AHEAD = "far_ahead"


@dataclass(frozen=True)
class ProgressArc:
    """Progress arc in degrees either side of the gauge's zero point."""

    start_angle: float
    end_angle: float
    band: GaugeBand
