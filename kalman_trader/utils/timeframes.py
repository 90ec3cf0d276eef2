"""Timeframe string to seconds conversion."""

from kalman_trader.core.errors import ConfigError


def timeframe_seconds(tf: str) -> int:
    """Convert a bar timeframe (e.g. '30s', '5m', '1h', '1d') to seconds."""
    tf = tf.strip().lower()
    units = {"s": 1, "m": 60, "h": 3600, "d": 86400}
    if len(tf) < 2 or tf[-1] not in units or not tf[:-1].isdigit() or int(tf[:-1]) <= 0:
        raise ConfigError(f"Unsupported timeframe: {tf}")
    return int(tf[:-1]) * units[tf[-1]]
