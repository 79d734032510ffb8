"""Tests for the tracker service."""

import pytest

from ontrack.adapters.memory_user_settings_repository import (
    InMemoryUserSettingsRepository,
)
from ontrack.domain.metrics import MetricType
from ontrack.domain.tracking import (
    CardData,
    ComplicationData,
    DetailData,
    Incomplete,
    MetricReading,
    TileData,
)
from ontrack.services.tracker import TrackerService
from ontrack.services.user_settings import UserSettingsService
from tests.conftest import UTC_ZONE, at


@pytest.fixture
def tracker(user_settings_service: UserSettingsService) -> TrackerService:
    user_settings_service.initialise()
    return TrackerService(settings_service=user_settings_service, zone=UTC_ZONE)


def test_tracker_builds_engine_per_metric(tracker: TrackerService) -> None:
    assert set(tracker.engines) == set(MetricType)
    assert tracker.engine(MetricType.FLOORS).name == "Floors"


def test_tracker_routes_readings_to_views(tracker: TrackerService) -> None:
    reading = MetricReading(value=6000, timestamp=at(12))

    assert isinstance(tracker.card(MetricType.STEPS, reading), CardData)
    assert isinstance(tracker.complication(MetricType.STEPS, reading), ComplicationData)
    assert isinstance(tracker.tile(MetricType.STEPS, reading), TileData)
    assert isinstance(tracker.detail(MetricType.STEPS, reading), DetailData)
    assert isinstance(tracker.card(MetricType.ENERGY, reading), Incomplete)


def test_settings_updates_reach_engines(
    tracker: TrackerService, user_settings_service: UserSettingsService
) -> None:
    reading = MetricReading(value=4000, timestamp=at(12))
    assert isinstance(tracker.card(MetricType.DISTANCE, reading), Incomplete)

    user_settings_service.set_goal(MetricType.DISTANCE, 8000)
    card = tracker.card(MetricType.DISTANCE, reading)

    assert isinstance(card, CardData)
    assert card.ahead_string == "+0.00 km"


def test_refresh_if_stale_reloads_external_writes(
    tracker: TrackerService, repository: InMemoryUserSettingsRepository
) -> None:
    reading = MetricReading(value=5000, timestamp=at(12))
    assert not tracker.refresh_if_stale()

    repository.save("goal_steps", 20000.0)

    assert tracker.refresh_if_stale()
    card = tracker.card(MetricType.STEPS, reading)
    assert isinstance(card, CardData)
    assert card.ahead_string == "-5,000"
    assert not tracker.refresh_if_stale()


def test_close_stops_following_settings(
    tracker: TrackerService, user_settings_service: UserSettingsService
) -> None:
    tracker.close()

    user_settings_service.set_goal(MetricType.STEPS, 20000)

    engine = tracker.engine(MetricType.STEPS)
    assert engine.settings.goal(MetricType.STEPS).value == 10000.0
    assert engine.is_stale(user_settings_service.last_modified())
