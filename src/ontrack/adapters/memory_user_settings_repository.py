"""In-memory key-value repository for user settings."""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ontrack.adapters.settings_payload import TIMESTAMP_KEY
from ontrack.services.user_settings import UserSettingsRepository


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class InMemoryUserSettingsRepository(UserSettingsRepository):
    """Thread-safe in-memory implementation for user settings."""

    values: dict[str, object] = field(default_factory=dict)
    clock: Callable[[], int] = _now_ms
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def load_all(self) -> dict[str, object] | None:
        """Return a copy of the stored values, or None when empty."""
        with self._lock:
            if not self.values:
                return None
            return dict(self.values)

    def save(self, key: str, value: object | None) -> None:
        """Store or remove one value and stamp the write time."""
        self.save_all({key: value})

    def save_all(self, values: dict[str, object]) -> None:
        """Store or remove several values and stamp the write time."""
        with self._lock:
            stamp = self.clock()
            previous = self.values.get(TIMESTAMP_KEY)
            if isinstance(previous, int) and stamp <= previous:
                stamp = previous + 1
            self.values[TIMESTAMP_KEY] = stamp
            for key, value in values.items():
                if key == TIMESTAMP_KEY:
                    continue
                if value is None:
                    self.values.pop(key, None)
                else:
                    self.values[key] = value
