"""User settings snapshot consumed by the tracking engine."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, TypeVar, Union

from ontrack.domain.metrics import DEFAULT_GAUGE_RANGE_INDEX, MetricType

T = TypeVar("T")

DEFAULT_ACT_START = 21600  # 6 am
DEFAULT_ACT_END = 64800  # 6 pm


@dataclass(frozen=True)
class Known(Generic[T]):
    """A setting the user has provided."""

    value: T


class Unknown(Enum):
    """A setting the user has not provided yet."""

    UNKNOWN = "unknown"

    def __repr__(self) -> str:
        return "UNKNOWN"


UNKNOWN = Unknown.UNKNOWN

Setting = Union[Known[T], Unknown]


def known(value: T | None) -> "Setting[T]":
    """Lift an optional value into a setting."""
    return UNKNOWN if value is None else Known(value)


def value_or_none(setting: "Setting[T]") -> T | None:
    """Lower a setting back to an optional value."""
    return setting.value if isinstance(setting, Known) else None


def require(setting: "Setting[T]") -> T:
    """Return a setting's value, raising ValueError when it is unknown."""
    if isinstance(setting, Known):
        return setting.value
    raise ValueError("setting is unknown")


def _default_goals() -> dict[MetricType, Setting[float]]:
    return {
        MetricType.ENERGY: UNKNOWN,
        MetricType.STEPS: Known(10000.0),
        MetricType.DISTANCE: UNKNOWN,
        MetricType.FLOORS: Known(10.0),
    }


@dataclass(frozen=True)
class UserSettings:
    """Immutable snapshot of the user's tracking settings.

    ``timestamp`` is the settings store's last-modified time in epoch ms and
    is 0 for a snapshot built from defaults. ``act_start`` and ``act_end``
    are seconds into the local day.
    """

    timestamp: int = 0
    is_imperial: bool = False
    is_kj: bool = False
    goals: dict[MetricType, Setting[float]] = field(default_factory=_default_goals)
    subtract_bmr: bool = False
    is_male: Setting[bool] = UNKNOWN
    dob: Setting[int] = UNKNOWN
    height: Setting[float] = UNKNOWN
    weight: Setting[float] = UNKNOWN
    act_start: int = DEFAULT_ACT_START
    act_end: int = DEFAULT_ACT_END
    range_energy: int = DEFAULT_GAUGE_RANGE_INDEX
    range_other: int = DEFAULT_GAUGE_RANGE_INDEX

    def goal(self, metric: MetricType) -> Setting[float]:
        """Return the goal for a metric."""
        return self.goals.get(metric, UNKNOWN)

    def missing_for(self, metric: MetricType) -> list[str]:
        """Return the names of settings a metric needs but doesn't have."""
        missing = []
        if self.goal(metric) is UNKNOWN:
            missing.append(f"goal_{metric.name.lower()}")
        if metric is MetricType.ENERGY:
            body = {
                "is_male": self.is_male,
                "dob": self.dob,
                "height": self.height,
                "weight": self.weight,
            }
            missing.extend(name for name, value in body.items() if value is UNKNOWN)
        return missing

    def is_complete_for(self, metric: MetricType) -> bool:
        """Return True when a metric has every setting it needs."""
        return not self.missing_for(metric)

    def with_goal(self, metric: MetricType, goal: float | None) -> "UserSettings":
        """Return a copy with one goal replaced."""
        goals = dict(self.goals)
        goals[metric] = known(goal)
        return replace(self, goals=goals)

    def without_goals(self) -> "UserSettings":
        """Return a copy in which every goal is unknown."""
        return replace(self, goals={metric: UNKNOWN for metric in MetricType})
