"""Dependency container wiring for the application."""

from collections.abc import Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from ontrack.adapters.memory_user_settings_repository import (
    InMemoryUserSettingsRepository,
)
from ontrack.app_logging import configure_logging
from ontrack.config import Settings, default_user_settings, resolve_timezone
from ontrack.services.tracker import TrackerService
from ontrack.services.user_settings import (
    UserSettingsRepository,
    UserSettingsService,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    zone: ZoneInfo
    user_settings_service: UserSettingsService
    tracker_service: TrackerService
    close_resources: Callable[[], None]


def build_container(
    settings: Settings | None = None,
    repository: UserSettingsRepository | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    zone = resolve_timezone(resolved_settings.timezone)
    user_settings_service = UserSettingsService(
        repository=repository or InMemoryUserSettingsRepository(),
        defaults=default_user_settings(resolved_settings),
    )
    user_settings_service.initialise()
    tracker_service = TrackerService(settings_service=user_settings_service, zone=zone)

    def close_resources() -> None:
        tracker_service.close()

    return AppContainer(
        settings=resolved_settings,
        zone=zone,
        user_settings_service=user_settings_service,
        tracker_service=tracker_service,
        close_resources=close_resources,
    )
