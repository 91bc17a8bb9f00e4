import math

import pytest

from nodewatch.alerts import (
    high_temperature_threshold,
    is_high_temperature,
    set_high_temperature_threshold,
)
from nodewatch.telemetry import TelemetryEntry


@pytest.fixture(autouse=True)
def _reset_threshold():
    set_high_temperature_threshold(26.0)
    yield
    set_high_temperature_threshold(26.0)


def _entry(temperature):
    return TelemetryEntry("dev", 0, temperature, 50.0, "ok")


def test_default_threshold():
    assert high_temperature_threshold() == 26.0


def test_set_threshold():
    set_high_temperature_threshold(30.5)
    assert high_temperature_threshold() == 30.5


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_threshold_is_ignored(value):
    set_high_temperature_threshold(31.0)
    set_high_temperature_threshold(value)
    assert high_temperature_threshold() == 31.0


def test_threshold_is_strict():
    assert is_high_temperature(_entry(26.0)) is False
    assert is_high_temperature(_entry(26.1)) is True
    assert is_high_temperature(_entry(10.0)) is False


def test_rule_follows_new_threshold():
    entry = _entry(28.0)
    assert is_high_temperature(entry) is True
    set_high_temperature_threshold(28.0)
    assert is_high_temperature(entry) is False
    set_high_temperature_threshold(27.9)
    assert is_high_temperature(entry) is True