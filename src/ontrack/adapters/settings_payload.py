"""Pydantic model for the settings store's key-value payload."""

from pydantic import BaseModel, ConfigDict, Field

from ontrack.domain.metrics import MetricType
from ontrack.domain.settings import UserSettings, known, value_or_none

GOAL_KEYS: dict[MetricType, str] = {
    MetricType.ENERGY: "goal_energy",
    MetricType.STEPS: "goal_steps",
    MetricType.DISTANCE: "goal_distance",
    MetricType.FLOORS: "goal_floors",
}

TIMESTAMP_KEY = "timestamp"


class SettingsPayload(BaseModel):
    """Settings as stored under their key-value store keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    timestamp: int = 0
    is_imperial: bool
    is_kj: bool = Field(alias="is_kJ")
    goal_energy: float | None = None
    goal_steps: float | None = None
    goal_distance: float | None = None
    goal_floors: float | None = None
    subtract_bmr: bool
    is_male: bool | None = None
    dob: int | None = None
    height: float | None = Field(default=None, gt=0)
    weight: float | None = Field(default=None, gt=0)
    act_start: int = Field(alias="actStart", ge=0)
    act_end: int = Field(alias="actEnd", ge=0)
    range_energy: int = Field(ge=0)
    range_other: int = Field(ge=0)

    def to_user_settings(self) -> UserSettings:
        """Convert to the domain snapshot."""
        goals = {
            metric: known(getattr(self, key)) for metric, key in GOAL_KEYS.items()
        }
        return UserSettings(
            timestamp=self.timestamp,
            is_imperial=self.is_imperial,
            is_kj=self.is_kj,
            goals=goals,
            subtract_bmr=self.subtract_bmr,
            is_male=known(self.is_male),
            dob=known(self.dob),
            height=known(self.height),
            weight=known(self.weight),
            act_start=self.act_start,
            act_end=self.act_end,
            range_energy=self.range_energy,
            range_other=self.range_other,
        )

    @classmethod
    def from_user_settings(cls, settings: UserSettings) -> "SettingsPayload":
        """Build a payload from the domain snapshot."""
        goals = {
            key: value_or_none(settings.goal(metric))
            for metric, key in GOAL_KEYS.items()
        }
        return cls(
            timestamp=settings.timestamp,
            is_imperial=settings.is_imperial,
            is_kj=settings.is_kj,
            subtract_bmr=settings.subtract_bmr,
            is_male=value_or_none(settings.is_male),
            dob=value_or_none(settings.dob),
            height=value_or_none(settings.height),
            weight=value_or_none(settings.weight),
            act_start=settings.act_start,
            act_end=settings.act_end,
            range_energy=settings.range_energy,
            range_other=settings.range_other,
            **goals,
        )

    def to_store(self) -> dict[str, object]:
        """Return store key/value pairs, omitting unset optional settings."""
        return self.model_dump(by_alias=True, exclude_none=True)
