"""Tests for number formatting."""

from dataclasses import replace

import pytest

from ontrack.domain.metrics import MetricProfile, MetricType, UnitOption
from ontrack.domain.settings import UNKNOWN, Known, UserSettings
from ontrack.services.metrics import MetricEngine, format_decimal, format_percent
from tests.conftest import UTC_ZONE

PLAIN_UNIT = UnitOption(abbrev=None, multiplier=1.0)


def test_format_decimal_with_and_without_separators() -> None:
    assert format_decimal(1234.5, 2) == "1,234.50"
    assert format_decimal(1234.5, 2, use_thousands_separator=False) == "1234.50"


@pytest.mark.parametrize(
    ("value", "precision", "expected"),
    [
        (-0.001, 2, "0.00"),
        (-0.4, 0, "0"),
        (-0.04, 1, "0.0"),
        (0.5, 0, "0"),
        (1.5, 0, "2"),
        (2.5, 0, "2"),
        (1234567.891, 1, "1,234,567.9"),
        (-9876.5, 0, "-9,876"),
    ],
)
def test_format_decimal_rounds_half_even_without_negative_zero(
    value: float, precision: int, expected: str
) -> None:
    assert format_decimal(value, precision) == expected


def test_format_decimal_force_sign() -> None:
    assert format_decimal(12, 0, force_sign=True) == "+12"
    assert format_decimal(0, 0, force_sign=True) == "+0"
    assert format_decimal(-12, 0, force_sign=True) == "-12"
    assert format_decimal(-0.2, 0, force_sign=True) == "+0"


def test_format_decimal_non_finite() -> None:
    assert format_decimal(float("nan"), 0) == "NaN"
    assert format_decimal(float("inf"), 0, force_sign=True) == "+∞"
    assert format_decimal(float("-inf"), 0) == "-∞"


@pytest.mark.parametrize(
    ("proportion", "expected"),
    [(0.123, "+12%"), (0.0, "+0%"), (-0.004, "+0%"), (-0.256, "-26%"), (0.125, "+13%")],
)
def test_format_percent(proportion: float, expected: str) -> None:
    assert format_percent(proportion) == expected


def test_format_percent_non_finite() -> None:
    assert format_percent(float("nan")) == "NaN%"
    assert format_percent(float("inf")) == "+∞%"
    assert format_percent(float("-inf")) == "-∞%"
    assert format_percent(1e307) == "+∞%"


def test_engine_format_uses_profile_precision_and_multiplier() -> None:
    profile = MetricProfile(
        name="Custom", icon="custom", precision=2, units=(PLAIN_UNIT, PLAIN_UNIT)
    )
    engine = MetricEngine(MetricType.STEPS, UTC_ZONE, profile=profile)

    assert engine.format_number(1234.5) == "1,234.50"
    assert engine.format_number(1234.5, use_thousands_separator=False) == "1234.50"
    assert engine.format_number(-0.001) == "0.00"
    assert engine.format_number(3, force_sign=True) == "+3.00"


def test_format_number_with_unit() -> None:
    energy = MetricEngine(MetricType.ENERGY, UTC_ZONE)
    distance = MetricEngine(MetricType.DISTANCE, UTC_ZONE)
    floors = MetricEngine(MetricType.FLOORS, UTC_ZONE)

    assert energy.format_number_with_unit(2345) == "2,345 Cal"
    assert distance.format_number_with_unit(12340) == "12.34 km"
    assert floors.format_number_with_unit(7.25) == "7.2"

    energy.apply_settings(UserSettings(is_kj=True))
    distance.apply_settings(UserSettings(is_imperial=True))

    assert energy.multiplier == pytest.approx(4.184)
    assert energy.format_number_with_unit(1000) == "4,184 kJ"
    assert distance.unit_abbrev == "mi"
    assert distance.format_number_with_unit(1609.344) == "1.00 mi"


def test_unit_preferences_only_affect_their_metric() -> None:
    steps = MetricEngine(MetricType.STEPS, UTC_ZONE)
    steps.apply_settings(UserSettings(is_kj=True, is_imperial=True))

    assert steps.unit_abbrev is None
    assert steps.multiplier == 1.0


def test_format_goal() -> None:
    distance = MetricEngine(MetricType.DISTANCE, UTC_ZONE)
    distance.apply_settings(replace(UserSettings(), is_imperial=False))

    assert distance.format_goal(Known(5000.0)) == "5.00 km"
    assert distance.format_goal(UNKNOWN) == "not set"
