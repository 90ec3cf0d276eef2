"""
Core data types for bars, positions, engine events and closed trades.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class PositionState(str, Enum):
    FLAT = "FLAT"
    LONG = "LONG"
    SHORT = "SHORT"


class EventKind(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


class ExitReason(str, Enum):
    PROFIT_TARGET = "PROFIT_TARGET"
    STOP_LOSS = "STOP_LOSS"
    TRAILING_STOP = "TRAILING_STOP"
    SIGNAL = "SIGNAL"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle. `epoch` is seconds since 1970-01-01 UTC."""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    epoch: int

    @classmethod
    def from_epoch(cls, epoch: int, open: float, high: float, low: float, close: float, volume: float = 0.0) -> "Bar":
        ts = datetime.fromtimestamp(int(epoch), tz=timezone.utc)
        return cls(ts, float(open), float(high), float(low), float(close), float(volume), int(epoch))


@dataclass
class Position:
    """The single open trade owned by a SignalEngine. side=None means flat."""
    id: str = ""
    side: Optional[Side] = None
    entry_price: float = 0.0
    entry_time: Optional[datetime] = None
    exit_price: float = 0.0
    exit_time: Optional[datetime] = None
    profit: float = 0.0
    profit_pct: float = 0.0
    peak_profit: float = 0.0
    peak_loss: float = 0.0

    @property
    def state(self) -> PositionState:
        if self.side is Side.BUY:
            return PositionState.LONG
        if self.side is Side.SELL:
            return PositionState.SHORT
        return PositionState.FLAT

    @property
    def is_open(self) -> bool:
        return self.side is not None

    def open(self, side: Side, price: float, timestamp: datetime) -> None:
        self.reset()
        self.id = uuid.uuid4().hex
        self.side = side
        self.entry_price = price
        self.entry_time = timestamp

    def mark(self, price: float) -> float:
        """Update running profit and excursions at `price`. Returns profit."""
        if self.side is Side.BUY:
            self.profit = price - self.entry_price
        elif self.side is Side.SELL:
            self.profit = self.entry_price - price
        else:
            return 0.0
        self.peak_profit = max(self.peak_profit, self.profit)
        self.peak_loss = min(self.peak_loss, self.profit)
        return self.profit

    def close(self, price: float, timestamp: datetime) -> None:
        self.exit_price = price
        self.exit_time = timestamp
        if self.side is Side.BUY:
            self.profit = price - self.entry_price
        else:
            self.profit = self.entry_price - price
        self.profit_pct = (self.profit / self.entry_price) * 100 if self.entry_price != 0 else 0.0

    def reset(self) -> None:
        self.id = ""
        self.side = None
        self.entry_price = 0.0
        self.entry_time = None
        self.exit_price = 0.0
        self.exit_time = None
        self.profit = 0.0
        self.profit_pct = 0.0
        self.peak_profit = 0.0
        self.peak_loss = 0.0


@dataclass(frozen=True)
class Event:
    """Entry or exit decision emitted by the signal engine."""
    side: Side
    kind: EventKind
    price: float
    timestamp: datetime
    reason: Optional[ExitReason] = None
    peak_profit: float = 0.0
    peak_loss: float = 0.0
    row: int = -1


@dataclass
class TradeRecord:
    """Closed trade, one ENTRY paired with the following EXIT."""
    side: Side
    entry_price: float
    exit_price: float
    entry_time: datetime
    exit_time: datetime
    profit: float
    profit_pct: float
    reason: Optional[ExitReason]
    peak_profit: float = 0.0
    peak_loss: float = 0.0

    def to_dict(self) -> dict:
        d = asdict(self)
        d["side"] = self.side.value
        d["reason"] = self.reason.value if self.reason else None
        return d
