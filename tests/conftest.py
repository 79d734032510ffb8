"""Shared test fixtures."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from ontrack.adapters.memory_user_settings_repository import (
    InMemoryUserSettingsRepository,
)
from ontrack.config import Settings
from ontrack.domain.metrics import MetricType
from ontrack.domain.settings import Known, UserSettings
from ontrack.services.metrics import MetricEngine
from ontrack.services.user_settings import UserSettingsService

UTC_ZONE = ZoneInfo("UTC")
TEST_DAY = date(2026, 6, 15)


def epoch_day(day: date) -> int:
    return (day - date(1970, 1, 1)).days


def at(hour: int, minute: int = 0, day: date = TEST_DAY, zone: ZoneInfo = UTC_ZONE) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=zone)


def make_energy_settings(**overrides: object) -> UserSettings:
    """Energy goal of 2000 Cal for a 30-year-old 175 cm, 70 kg male."""
    values: dict[str, object] = {
        "goals": {
            MetricType.ENERGY: Known(2000.0),
            MetricType.STEPS: Known(10000.0),
            MetricType.DISTANCE: Known(8000.0),
            MetricType.FLOORS: Known(10.0),
        },
        "is_male": Known(True),
        "dob": Known(epoch_day(date(1996, 6, 15))),
        "height": Known(175.0),
        "weight": Known(70.0),
        "act_start": 21600,
        "act_end": 64800,
    }
    values.update(overrides)
    return UserSettings(**values)


@dataclass
class FakeClock:
    """Clock returning increasing epoch milliseconds."""

    now_ms: int = 1_750_000_000_000
    step_ms: int = 1000

    def __call__(self) -> int:
        self.now_ms += self.step_ms
        return self.now_ms


@dataclass
class RecordingListener:
    """Settings listener that records every snapshot it receives."""

    received: list[UserSettings] = field(default_factory=list)

    def __call__(self, settings: UserSettings) -> None:
        self.received.append(settings)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("ontrack")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> Settings:
    return Settings(timezone="UTC", country="AU")


@pytest.fixture
def energy_settings() -> UserSettings:
    return make_energy_settings()


@pytest.fixture
def energy_engine(energy_settings: UserSettings) -> MetricEngine:
    engine = MetricEngine(MetricType.ENERGY, UTC_ZONE)
    engine.apply_settings(energy_settings)
    return engine


@pytest.fixture
def steps_engine(energy_settings: UserSettings) -> MetricEngine:
    engine = MetricEngine(MetricType.STEPS, UTC_ZONE)
    engine.apply_settings(energy_settings)
    return engine


@pytest.fixture
def repository() -> InMemoryUserSettingsRepository:
    return InMemoryUserSettingsRepository(clock=FakeClock())


@pytest.fixture
def user_settings_service(
    repository: InMemoryUserSettingsRepository,
) -> UserSettingsService:
    return UserSettingsService(repository=repository)
