"""User settings service."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Protocol

from pydantic import ValidationError

from ontrack.adapters.settings_payload import GOAL_KEYS, SettingsPayload
from ontrack.domain.metrics import MetricType
from ontrack.domain.settings import UserSettings, known

_logger = logging.getLogger(__name__)

SettingsListener = Callable[[UserSettings], None]

_OPTIONAL_FIELDS = frozenset({"is_male", "dob", "height", "weight"})


class UserSettingsRepository(Protocol):
    """Key-value persistence interface for user settings.

    Every write stamps the ``timestamp`` key with the write time in epoch ms.
    """

    def load_all(self) -> dict[str, object] | None:
        """Return every stored key, or None when the store is empty."""

    def save(self, key: str, value: object | None) -> None:
        """Store one value, removing the key when value is None."""

    def save_all(self, values: dict[str, object]) -> None:
        """Store several values in one write; None values remove their keys."""


@dataclass
class UserSettingsService:
    """Reads, updates and publishes the user's settings."""

    repository: UserSettingsRepository
    defaults: UserSettings = field(default_factory=UserSettings)
    _listeners: list[SettingsListener] = field(default_factory=list, init=False)
    _listeners_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def current_settings(self) -> UserSettings:
        """Return the stored settings, or the defaults when nothing is stored.

        A payload that fails validation is logged and treated as settings
        with no goals, so every metric reports incomplete.
        """
        stored = self.repository.load_all()
        if stored is None:
            return self.defaults
        try:
            return SettingsPayload.model_validate(stored).to_user_settings()
        except ValidationError as exc:
            _logger.warning(
                "Stored settings are malformed: errors=%s", exc.error_count()
            )
            timestamp = stored.get("timestamp")
            return replace(
                self.defaults.without_goals(),
                timestamp=timestamp if isinstance(timestamp, int) else 0,
            )

    def last_modified(self) -> int:
        """Return the store's last-modified time in epoch ms, 0 if empty."""
        stored = self.repository.load_all()
        if not stored:
            return 0
        timestamp = stored.get("timestamp", 0)
        return timestamp if isinstance(timestamp, int) else 0

    def is_initialised(self) -> bool:
        """Return True when the store holds settings."""
        return self.repository.load_all() is not None

    def initialise(self) -> UserSettings:
        """Write the defaults on first run and return the current settings."""
        if not self.is_initialised():
            _logger.info("Initialising settings store from defaults")
            payload = SettingsPayload.from_user_settings(self.defaults)
            self.repository.save_all(payload.to_store())
        return self.current_settings()

    def update(self, **changes: object) -> UserSettings:
        """Persist changed settings and notify subscribers.

        Accepts ``UserSettings`` field names plus ``goal_<metric>`` keys.
        Passing None clears a goal or body parameter.
        """
        current = self.current_settings()
        goals = dict(current.goals)
        field_changes: dict[str, object] = {}
        valid_fields = {f.name for f in fields(UserSettings)} - {"goals", "timestamp"}
        goal_names = {key: metric for metric, key in GOAL_KEYS.items()}
        for name, value in changes.items():
            if name in goal_names:
                goals[goal_names[name]] = known(value)
            elif name in _OPTIONAL_FIELDS:
                field_changes[name] = known(value)
            elif name in valid_fields:
                if value is None:
                    raise ValueError(f"setting {name} can't be cleared")
                field_changes[name] = value
            else:
                raise ValueError(f"unknown setting: {name}")

        updated = replace(current, goals=goals, **field_changes)
        payload = SettingsPayload.from_user_settings(updated).model_dump(by_alias=True)
        payload.pop("timestamp")
        self.repository.save_all(payload)
        settings = self.current_settings()
        _logger.info("Settings updated: keys=%s", sorted(changes))
        self._notify(settings)
        return settings

    def set_goal(self, metric: MetricType, goal: float | None) -> UserSettings:
        """Persist one goal."""
        return self.update(**{GOAL_KEYS[metric]: goal})

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, settings: UserSettings) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(settings)
            except Exception:
                _logger.exception("Settings listener failed")
