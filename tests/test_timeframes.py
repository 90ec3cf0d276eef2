"""Unit tests for utils.timeframes."""

import pytest

from kalman_trader.core.errors import ConfigError
from kalman_trader.utils.timeframes import timeframe_seconds


def test_timeframe_seconds():
    assert timeframe_seconds("30s") == 30
    assert timeframe_seconds(" 1M ") == 60
    assert timeframe_seconds("5m") == 300
    assert timeframe_seconds("1h") == 3600
    assert timeframe_seconds("1d") == 86400


def test_timeframe_invalid():
    with pytest.raises(ValueError):
        timeframe_seconds("1x")
    with pytest.raises(ConfigError):
        timeframe_seconds("m")
    with pytest.raises(ConfigError):
        timeframe_seconds("0m")
