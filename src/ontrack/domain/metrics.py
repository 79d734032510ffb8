"""Metric types and their per-type configuration."""

from dataclasses import dataclass
from enum import Enum

GAUGE_RANGES: tuple[int, ...] = (10, 20, 50, 100)
DEFAULT_GAUGE_RANGE_INDEX = 2


class MetricType(Enum):
    """Activity metric tracked against a daily goal."""

    ENERGY = 0
    STEPS = 1
    DISTANCE = 2
    FLOORS = 3


@dataclass(frozen=True)
class UnitOption:
    """Display unit: abbreviation and multiplier from the reading's unit."""

    abbrev: str | None
    multiplier: float


@dataclass(frozen=True)
class MetricProfile:
    """Static configuration for one metric type.

    ``units`` holds the (default, alternative) unit options; the alternative
    is selected by ``is_kj`` for energy and ``is_imperial`` for distance.
    """

    name: str
    icon: str
    precision: int
    units: tuple[UnitOption, UnitOption]


_NO_UNIT = UnitOption(abbrev=None, multiplier=1.0)

METRIC_PROFILES: dict[MetricType, MetricProfile] = {
    MetricType.ENERGY: MetricProfile(
        name="Energy",
        icon="energy",
        precision=0,
        units=(UnitOption("Cal", 1.0), UnitOption("kJ", 4.184)),
    ),
    MetricType.STEPS: MetricProfile(
        name="Steps", icon="steps", precision=0, units=(_NO_UNIT, _NO_UNIT)
    ),
    MetricType.DISTANCE: MetricProfile(
        name="Distance",
        icon="distance",
        precision=2,
        # readings are in metres
        units=(UnitOption("km", 0.001), UnitOption("mi", 0.00062137)),
    ),
    MetricType.FLOORS: MetricProfile(
        name="Floors", icon="floors", precision=1, units=(_NO_UNIT, _NO_UNIT)
    ),
}


def gauge_proportion(index: int) -> float:
    """Return the gauge range for a table index as a proportion of goal."""
    if not 0 <= index < len(GAUGE_RANGES):
        index = DEFAULT_GAUGE_RANGE_INDEX
    return GAUGE_RANGES[index] / 100
