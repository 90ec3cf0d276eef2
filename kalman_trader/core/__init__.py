"""Core: config, types, errors, logging."""

from kalman_trader.core.config import load_config, Config
from kalman_trader.core.errors import TradingError, ConfigError, PreconditionError
from kalman_trader.core.types import (
    Bar,
    Event,
    EventKind,
    ExitReason,
    Position,
    PositionState,
    Side,
    TradeRecord,
)
from kalman_trader.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "TradingError",
    "ConfigError",
    "PreconditionError",
    "Bar",
    "Event",
    "EventKind",
    "ExitReason",
    "Position",
    "PositionState",
    "Side",
    "TradeRecord",
    "setup_logging",
]
