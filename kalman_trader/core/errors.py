"""
Error taxonomy. Precondition and configuration errors are fatal; numeric
edge cases never surface as exceptions.
"""

from __future__ import annotations
from typing import Optional


class TradingError(Exception):
    """Base class for errors raised by kalman_trader."""


class ConfigError(TradingError, ValueError):
    """Invalid configuration, rejected before any bar is processed."""


class PreconditionError(TradingError):
    """A transform or the engine was handed a store it cannot work with."""

    def __init__(self, message: str, transform: Optional[str] = None, column: Optional[str] = None):
        self.transform = transform
        self.column = column
        parts = []
        if transform:
            parts.append(f"transform={transform}")
        if column:
            parts.append(f"column={column}")
        suffix = f" ({', '.join(parts)})" if parts else ""
        super().__init__(f"{message}{suffix}")
