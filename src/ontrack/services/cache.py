"""Cache for settings-derived daily constants."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

from ontrack.domain.metrics import MetricType
from ontrack.domain.tracking import DailyConstants, Incomplete


@dataclass(frozen=True)
class DailyConstantsKey:
    """Identifies the day and settings version a bundle was computed for."""

    metric: MetricType
    day: date
    settings_version: int


class DailyConstantsCache(Protocol):
    """Cache interface for daily constants."""

    def get(self, key: DailyConstantsKey) -> DailyConstants | Incomplete | None:
        """Return the cached bundle for a key, if present."""

    def set(self, key: DailyConstantsKey, value: DailyConstants | Incomplete) -> None:
        """Store the bundle for a key, replacing whatever was cached."""


@dataclass(frozen=True)
class _CacheEntry:
    key: DailyConstantsKey
    value: DailyConstants | Incomplete


class SingleSlotCache(DailyConstantsCache):
    """Keeps only the most recent bundle.

    Each day or settings version replaces the previous one, so older keys
    never need to be looked up again.
    """

    _entry: _CacheEntry | None

    def __init__(self) -> None:
        self._entry = None

    def get(self, key: DailyConstantsKey) -> DailyConstants | Incomplete | None:
        """Return the bundle when the key matches the cached one."""
        entry = self._entry
        if entry is None or entry.key != key:
            return None
        return entry.value

    def set(self, key: DailyConstantsKey, value: DailyConstants | Incomplete) -> None:
        """Replace the cached bundle in one assignment."""
        self._entry = _CacheEntry(key=key, value=value)
