"""Goal projection and tracking engine for a single metric type."""

import itertools
import logging
import math
import threading
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_EVEN, Decimal

from ontrack.domain.metrics import (
    METRIC_PROFILES,
    MetricProfile,
    MetricType,
    UnitOption,
    gauge_proportion,
)
from ontrack.domain.settings import UNKNOWN, Setting, UserSettings, require
from ontrack.domain.tracking import (
    CardData,
    ComplicationData,
    DailyConstants,
    DetailData,
    Incomplete,
    RelativeProgress,
    TileData,
)
from ontrack.services.cache import (
    DailyConstantsCache,
    DailyConstantsKey,
    SingleSlotCache,
)

_logger = logging.getLogger(__name__)

NOMINAL_DAY_MS = 86_400_000
SECONDS_PER_DAY = 86_400
AHEAD_GLYPH = "▲"
BEHIND_GLYPH = "▼"

_ONE_MS = timedelta(milliseconds=1)
_SECONDS_PER_EPOCH_YEAR = 3.1556918e7
_DAYS_PER_EPOCH_YEAR = 365.2421


def basal_metabolic_rate(
    *, weight_kg: float, height_cm: float, age_years: float, is_male: bool
) -> float:
    """Return basal metabolic rate in kcal per day (Mifflin-St Jeor)."""
    sex_offset = 5 if is_male else -161
    return 9.99 * weight_kg + 6.25 * height_cm - 4.92 * age_years + sex_offset


def format_decimal(
    value: float,
    precision: int,
    use_thousands_separator: bool = True,
    force_sign: bool = False,
) -> str:
    """Format a number to a fixed precision, rounding half-even.

    Negative zero is written as zero, and ``force_sign`` prefixes ``+`` to
    anything that isn't negative.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        text = "∞" if value > 0 else "-∞"
    else:
        quantum = Decimal(1).scaleb(-precision)
        rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_EVEN)
        if rounded.is_zero():
            rounded = rounded.copy_abs()
        grouping = "," if use_thousands_separator else ""
        text = format(rounded, f"{grouping}.{precision}f")
    if force_sign and not text.startswith("-"):
        text = f"+{text}"
    return text


def format_percent(proportion: float) -> str:
    """Format a proportion as a signed whole percentage, rounding half-up."""
    scaled = proportion * 100 + 0.5
    if math.isnan(scaled):
        return "NaN%"
    if math.isinf(scaled):
        return "+∞%" if scaled > 0 else "-∞%"
    percent = math.floor(scaled)
    sign = "" if percent < 0 else "+"
    return f"{sign}{percent}%"


def _millis_between(start: datetime, end: datetime) -> int:
    """Return elapsed real time in ms, including any UTC offset change."""
    return int((end.astimezone(UTC) - start.astimezone(UTC)) / _ONE_MS)


def _zoned(day: date, clock_time: time, zone: tzinfo) -> datetime:
    """Return the instant a local wall-clock time occurs on a day.

    Times skipped by a DST gap move forward by the length of the gap.
    """
    naive_zoned = datetime.combine(day, clock_time, tzinfo=zone)
    return naive_zoned.astimezone(UTC).astimezone(zone)


def _time_of_day(seconds: int) -> time:
    if seconds >= SECONDS_PER_DAY:
        return time.max
    seconds = max(seconds, 0)
    return time(seconds // 3600, seconds % 3600 // 60, seconds % 60)


@dataclass(frozen=True)
class _SettingsState:
    settings: UserSettings
    version: int
    unit: UnitOption


@dataclass(frozen=True)
class _Track:
    track: float
    elapsed_today: int
    constants: DailyConstants


class MetricEngine:
    """Projects where a metric should be during the day and compares readings.

    Settings-derived constants are cached per local day and settings
    version. Settings may be replaced from any thread; queries recompute the
    cache under a lock, so only one recomputation runs at a time.
    """

    def __init__(
        self,
        metric: MetricType,
        zone: tzinfo,
        profile: MetricProfile | None = None,
        cache: DailyConstantsCache | None = None,
    ) -> None:
        self.metric = metric
        self.profile = profile or METRIC_PROFILES[metric]
        self._zone = zone
        self._cache = cache or SingleSlotCache()
        self._lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._versions = itertools.count(1)
        self._state = self._make_state(UserSettings())

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def settings(self) -> UserSettings:
        return self._state.settings

    @property
    def multiplier(self) -> float:
        return self._state.unit.multiplier

    @property
    def unit_abbrev(self) -> str | None:
        return self._state.unit.abbrev

    @property
    def settings_timestamp(self) -> int:
        return self._state.settings.timestamp

    def is_stale(self, store_timestamp: int) -> bool:
        """Return True when the settings store is newer than our snapshot."""
        return store_timestamp > self._state.settings.timestamp

    @property
    def bmr_text(self) -> str | None:
        """Describe whether BMR is part of the energy goal."""
        if self.metric is not MetricType.ENERGY:
            return None
        prefix = "ex" if self._state.settings.subtract_bmr else "in"
        return f"({prefix}cluding BMR)"

    @property
    def include_coast(self) -> bool:
        """Return True when the coast line can differ from the goal."""
        return (
            self.metric is MetricType.ENERGY and not self._state.settings.subtract_bmr
        )

    def apply_settings(self, settings: UserSettings) -> None:
        """Replace the settings snapshot and invalidate cached constants."""
        with self._state_lock:
            self._state = self._make_state(settings)

    def invalidate(self) -> None:
        """Force daily constants to be recomputed on the next query."""
        with self._state_lock:
            self._state = replace(self._state, version=next(self._versions))

    def _make_state(self, settings: UserSettings) -> _SettingsState:
        if self.metric is MetricType.ENERGY:
            alternative = settings.is_kj
        elif self.metric is MetricType.DISTANCE:
            alternative = settings.is_imperial
        else:
            alternative = False
        return _SettingsState(
            settings=settings,
            version=next(self._versions),
            unit=self.profile.units[1 if alternative else 0],
        )

    # Daily constants

    def daily_constants(self, instant: datetime) -> DailyConstants | Incomplete:
        """Return the constants for the local day containing ``instant``."""
        return self._constants(self._state, instant)

    def _constants(
        self, state: _SettingsState, instant: datetime
    ) -> DailyConstants | Incomplete:
        day = self._localize(instant).date()
        key = DailyConstantsKey(
            metric=self.metric, day=day, settings_version=state.version
        )
        constants = self._cache.get(key)
        if constants is not None:
            return constants
        with self._lock:
            constants = self._cache.get(key)
            if constants is None:
                constants = self._compute_daily_constants(day, state.settings)
                self._cache.set(key, constants)
        return constants

    def _localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None or instant.utcoffset() is None:
            raise ValueError("instant must be timezone-aware")
        return instant.astimezone(self._zone)

    def _compute_daily_constants(  # noqa: PLR0914
        self, day: date, settings: UserSettings
    ) -> DailyConstants | Incomplete:
        missing = settings.missing_for(self.metric)
        if missing:
            _logger.debug(
                "Daily constants incomplete: metric=%s missing=%s",
                self.metric.name,
                missing,
            )
            return Incomplete(f"missing settings: {', '.join(missing)}")
        goal = require(settings.goal(self.metric))

        day_start = _zoned(day, time.min, self._zone)
        tomorrow_start = _zoned(day + timedelta(days=1), time.min, self._zone)
        today_duration = _millis_between(day_start, tomorrow_start)
        today_duration_excess = today_duration - NOMINAL_DAY_MS

        act_start = _zoned(day, _time_of_day(settings.act_start), self._zone)
        act_end = _zoned(day, _time_of_day(settings.act_end), self._zone)
        act_start_offset = _millis_between(day_start, act_start)
        act_duration = _millis_between(act_start, act_end)
        if act_duration <= 0:
            _logger.error(
                "Active period is empty: metric=%s act_start=%s act_end=%s",
                self.metric.name,
                settings.act_start,
                settings.act_end,
            )
            return Incomplete("active period is empty")

        bmr_per_day = 0.0
        bmr = 0.0
        effective_bmr = 0.0
        if self.metric is MetricType.ENERGY:
            dob_epoch_year = require(settings.dob) / _DAYS_PER_EPOCH_YEAR
            today_epoch_year = day_start.timestamp() / _SECONDS_PER_EPOCH_YEAR
            bmr_per_day = basal_metabolic_rate(
                weight_kg=require(settings.weight),
                height_cm=require(settings.height),
                age_years=today_epoch_year - dob_epoch_year,
                is_male=require(settings.is_male),
            )
            bmr = bmr_per_day / NOMINAL_DAY_MS
            if not settings.subtract_bmr:
                effective_bmr = bmr

        goal_today = goal + today_duration_excess * bmr
        if bmr != 0 and settings.subtract_bmr:
            goal_today -= today_duration * bmr
        if goal_today <= 0:
            _logger.error(
                "Derived goal is not positive: metric=%s goal=%s goal_today=%s",
                self.metric.name,
                goal,
                goal_today,
            )
            return Incomplete("derived goal is not positive")

        activity_track_rate = (goal - bmr_per_day) / act_duration
        if bmr != 0 and not settings.subtract_bmr:
            activity_track_rate += bmr

        if self.metric is MetricType.ENERGY:
            range_index = settings.range_energy
        else:
            range_index = settings.range_other

        _logger.debug(
            "Daily constants computed: metric=%s day=%s goal_today=%s",
            self.metric.name,
            day,
            goal_today,
        )
        return DailyConstants(
            day=day,
            day_start=day_start,
            today_duration=today_duration,
            act_start=act_start,
            act_end=act_end,
            act_start_offset=act_start_offset,
            act_duration=act_duration,
            goal_today=goal_today,
            subtract_bmr=settings.subtract_bmr,
            bmr_per_day=bmr_per_day,
            bmr=bmr,
            effective_bmr=effective_bmr,
            activity_track_rate=activity_track_rate,
            track_before_act=effective_bmr * act_start_offset,
            track_during_act=activity_track_rate * act_duration,
            gauge_range=gauge_proportion(range_index),
        )

    # Tracking

    def _track(self, state: _SettingsState, instant: datetime) -> _Track | Incomplete:
        constants = self._constants(state, instant)
        if isinstance(constants, Incomplete):
            return constants
        elapsed_today = _millis_between(constants.day_start, instant)
        beyond_act_start = _millis_between(constants.act_start, instant)
        beyond_act_end = _millis_between(constants.act_end, instant)

        if beyond_act_start <= 0:
            track = elapsed_today * constants.effective_bmr
        elif beyond_act_end >= 0:
            track = (
                constants.effective_bmr
                * (constants.act_start_offset + beyond_act_end)
                + constants.track_during_act
            )
        else:
            track = (
                constants.track_before_act
                + constants.activity_track_rate * beyond_act_start
            )
        return _Track(track=track, elapsed_today=elapsed_today, constants=constants)

    def projected_track(self, instant: datetime) -> float | Incomplete:
        """Return the value the metric should have reached at ``instant``."""
        result = self._track(self._state, instant)
        if isinstance(result, Incomplete):
            return result
        return result.track

    def _relative(
        self, state: _SettingsState, achieved: float, instant: datetime
    ) -> tuple[RelativeProgress, DailyConstants] | Incomplete:
        result = self._track(state, instant)
        if isinstance(result, Incomplete):
            return result
        constants = result.constants
        ahead = achieved - result.track
        if constants.bmr != 0 and constants.subtract_bmr:
            # the reading includes BMR even though the goal doesn't
            ahead -= constants.bmr * result.elapsed_today
        progress = RelativeProgress(
            ahead=ahead, relative=ahead / constants.goal_today
        )
        return progress, constants

    def relative_progress(
        self, achieved: float, instant: datetime
    ) -> RelativeProgress | Incomplete:
        """Return how far ``achieved`` is ahead of the projected track."""
        result = self._relative(self._state, achieved, instant)
        if isinstance(result, Incomplete):
            return result
        return result[0]

    # Views read the settings snapshot once per call.

    def card_view(self, achieved: float, instant: datetime) -> CardData | Incomplete:
        """Return signed delta and percentage of goal for the summary card."""
        state = self._state
        result = self._relative(state, achieved, instant)
        if isinstance(result, Incomplete):
            return result
        progress, constants = result
        ahead_string = self._format(state, progress.ahead, force_sign=True)
        if state.unit.abbrev is not None:
            ahead_string = f"{ahead_string} {state.unit.abbrev}"
        return CardData(
            rel_proportion=progress.relative / constants.gauge_range,
            ahead_string=ahead_string,
            ahead_percent_string=format_percent(progress.relative),
        )

    def complication_view(
        self, achieved: float, instant: datetime
    ) -> ComplicationData | Incomplete:
        """Return unsigned delta without separators and an ahead/behind glyph."""
        state = self._state
        result = self._relative(state, achieved, instant)
        if isinstance(result, Incomplete):
            return result
        progress, constants = result
        ahead_string = self._format(
            state, progress.ahead, use_thousands_separator=False
        )
        ahead_behind = AHEAD_GLYPH
        if ahead_string.startswith("-"):
            ahead_behind = BEHIND_GLYPH
            ahead_string = ahead_string[1:]
        return ComplicationData(
            rel_proportion=progress.relative / constants.gauge_range,
            ahead_string=ahead_string,
            ahead_behind=ahead_behind,
        )

    def tile_view(self, achieved: float, instant: datetime) -> TileData | Incomplete:
        """Return unsigned delta and a unit-qualified ahead/behind label."""
        state = self._state
        result = self._relative(state, achieved, instant)
        if isinstance(result, Incomplete):
            return result
        progress, constants = result
        ahead_string = self._format(state, progress.ahead)
        ahead_behind = "ahead"
        if ahead_string.startswith("-"):
            ahead_behind = "behind"
            ahead_string = ahead_string[1:]
        if state.unit.abbrev is not None:
            ahead_behind = f"{state.unit.abbrev} {ahead_behind}"
        return TileData(
            rel_proportion=progress.relative / constants.gauge_range,
            ahead_string=ahead_string,
            ahead_behind=ahead_behind,
        )

    def detail_view(self, achieved: float, instant: datetime) -> DetailData | Incomplete:
        """Return the shape of the day for the detail graph."""
        result = self._track(self._state, instant)
        if isinstance(result, Incomplete):
            return result
        c = result.constants
        elapsed = result.elapsed_today

        achiev_value = achieved
        coast_at_day_start = c.goal_today
        track_at_act_start = 0.0
        track_at_act_end = c.goal_today
        coast_at_achiev_time = c.goal_today

        if self.metric is MetricType.ENERGY:
            if c.subtract_bmr:
                achiev_value -= c.bmr * elapsed
            else:
                coast_at_day_start -= c.bmr * c.today_duration
                track_at_act_start = c.bmr * c.act_start_offset
                track_at_act_end = c.goal_today - c.bmr * (
                    c.today_duration - c.act_start_offset - c.act_duration
                )
                coast_at_achiev_time = coast_at_day_start + c.bmr * elapsed

        return DetailData(
            act_start=c.act_start_offset / c.today_duration,
            act_end=(c.act_start_offset + c.act_duration) / c.today_duration,
            coast_at_day_start=coast_at_day_start,
            track_at_act_start=track_at_act_start,
            track_at_act_end=track_at_act_end,
            goal=c.goal_today,
            achiev_time=elapsed / c.today_duration,
            achiev_value=achiev_value,
            track_at_achiev_time=result.track,
            coast_at_achiev_time=coast_at_achiev_time,
        )

    # Formatting

    def _format(
        self,
        state: _SettingsState,
        value: float,
        use_thousands_separator: bool = True,
        force_sign: bool = False,
    ) -> str:
        return format_decimal(
            value * state.unit.multiplier,
            self.profile.precision,
            use_thousands_separator=use_thousands_separator,
            force_sign=force_sign,
        )

    def format_number(
        self,
        value: float,
        use_thousands_separator: bool = True,
        force_sign: bool = False,
    ) -> str:
        """Convert to display units and format to this metric's precision."""
        return self._format(
            self._state,
            value,
            use_thousands_separator=use_thousands_separator,
            force_sign=force_sign,
        )

    def format_number_with_unit(self, value: float) -> str:
        """Format with separators and append the unit abbreviation, if any."""
        state = self._state
        text = self._format(state, value)
        unit_abbrev = state.unit.abbrev
        return f"{text} {unit_abbrev}" if unit_abbrev is not None else text

    def format_goal(self, goal: Setting[float]) -> str:
        """Format a goal setting for display."""
        if goal is UNKNOWN:
            return "not set"
        return self.format_number_with_unit(require(goal))
