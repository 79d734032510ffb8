"""Tracker service keeping one engine per metric in step with settings."""

import logging
from dataclasses import dataclass, field
from datetime import tzinfo

from ontrack.domain.metrics import MetricType
from ontrack.domain.settings import UserSettings
from ontrack.domain.tracking import (
    CardData,
    ComplicationData,
    DetailData,
    Incomplete,
    MetricReading,
    TileData,
)
from ontrack.services.metrics import MetricEngine
from ontrack.services.user_settings import UserSettingsService

_logger = logging.getLogger(__name__)


@dataclass
class TrackerService:
    """Routes readings to the engine for their metric."""

    settings_service: UserSettingsService
    zone: tzinfo
    engines: dict[MetricType, MetricEngine] = field(init=False)

    def __post_init__(self) -> None:
        self.engines = {
            metric: MetricEngine(metric, self.zone) for metric in MetricType
        }
        self._apply(self.settings_service.current_settings())
        self._unsubscribe = self.settings_service.subscribe(self._apply)

    def _apply(self, settings: UserSettings) -> None:
        for engine in self.engines.values():
            engine.apply_settings(settings)

    def engine(self, metric: MetricType) -> MetricEngine:
        """Return the engine for a metric."""
        return self.engines[metric]

    def refresh_if_stale(self) -> bool:
        """Reload settings when the store changed behind our back.

        Returns True when settings were reloaded.
        """
        store_timestamp = self.settings_service.last_modified()
        if not any(engine.is_stale(store_timestamp) for engine in self.engines.values()):
            return False
        _logger.info("Reloading stale settings: store_timestamp=%s", store_timestamp)
        self._apply(self.settings_service.current_settings())
        return True

    def card(self, metric: MetricType, reading: MetricReading) -> CardData | Incomplete:
        """Return card data for a reading."""
        return self.engines[metric].card_view(reading.value, reading.timestamp)

    def complication(
        self, metric: MetricType, reading: MetricReading
    ) -> ComplicationData | Incomplete:
        """Return complication data for a reading."""
        return self.engines[metric].complication_view(reading.value, reading.timestamp)

    def tile(self, metric: MetricType, reading: MetricReading) -> TileData | Incomplete:
        """Return tile data for a reading."""
        return self.engines[metric].tile_view(reading.value, reading.timestamp)

    def detail(
        self, metric: MetricType, reading: MetricReading
    ) -> DetailData | Incomplete:
        """Return detail data for a reading."""
        return self.engines[metric].detail_view(reading.value, reading.timestamp)

    def close(self) -> None:
        """Stop listening for settings changes."""
        self._unsubscribe()
