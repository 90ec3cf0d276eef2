"""
SeriesStore: equal-length named columns indexed by bar position, backed by a
pandas DataFrame. Raw bar columns are appended row-wise; derived columns are
added once per name and never rewritten.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from kalman_trader.core.errors import PreconditionError
from kalman_trader.core.types import Bar

logger = logging.getLogger("kalman_trader.data.store")


class Col(str, Enum):
    """Column schema. Raw columns come from bars, the rest from the pipeline."""
    TIMESTAMP = "timestamp"
    EPOCH = "epoch"
    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    CLOSE = "close"
    VOLUME = "volume"

    OHLC4 = "ohlc4"
    FAST_CCI = "fast_cci"
    ATR = "atr"
    WMA_ATR = "wma_atr"
    ATR_SHORT = "atr_short"
    FAST_TEMPX = "fast_tempx"
    SLOW_TEMPX = "slow_tempx"
    EMA_FAST_TEMPX = "ema_fast_tempx"
    EMA_SLOW_TEMPX = "ema_slow_tempx"
    SMA_FAST_TEMPX = "sma_fast_tempx"
    TREND_SWAP = "trend_swap"
    FAST_KALMAN = "fast_tempx_kalman"
    SLOW_KALMAN = "slow_tempx_kalman"
    FAST_SWAP = "swap"
    SLOW_SWAP = "swap_base"


RAW_COLUMNS = (Col.TIMESTAMP, Col.EPOCH, Col.OPEN, Col.HIGH, Col.LOW, Col.CLOSE, Col.VOLUME)

ColumnKey = Union[Col, str]


def _name(column: ColumnKey) -> str:
    return column.value if isinstance(column, Col) else str(column)


class SeriesStore:
    """Ordered, append-only set of columns sharing one row count."""

    def __init__(self, frame: Optional[pd.DataFrame] = None):
        if frame is None:
            frame = pd.DataFrame({
                Col.TIMESTAMP.value: pd.Series([], dtype="datetime64[ns, UTC]"),
                Col.EPOCH.value: pd.Series([], dtype="int64"),
                Col.OPEN.value: pd.Series([], dtype="float64"),
                Col.HIGH.value: pd.Series([], dtype="float64"),
                Col.LOW.value: pd.Series([], dtype="float64"),
                Col.CLOSE.value: pd.Series([], dtype="float64"),
                Col.VOLUME.value: pd.Series([], dtype="float64"),
            })
        self._frame = frame.reset_index(drop=True)

    @classmethod
    def from_bars(cls, bars: Iterable[Bar]) -> "SeriesStore":
        store = cls()
        store.append_bars(bars)
        return store

    def __len__(self) -> int:
        return len(self._frame)

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    def has(self, column: ColumnKey) -> bool:
        return _name(column) in self._frame.columns

    def has_derived(self) -> bool:
        raw = {c.value for c in RAW_COLUMNS}
        return any(c not in raw for c in self._frame.columns)

    def append_bars(self, bars: Iterable[Bar]) -> int:
        """Append raw bars as new rows. Returns number of rows appended."""
        bars = list(bars)
        if not bars:
            return 0
        if self.has_derived():
            raise PreconditionError(
                "cannot append rows once derived columns exist; rebuild with raw_copy()",
                transform="append_bars",
            )
        rows = pd.DataFrame({
            Col.TIMESTAMP.value: pd.to_datetime([b.timestamp for b in bars], utc=True),
            Col.EPOCH.value: np.array([b.epoch for b in bars], dtype=np.int64),
            Col.OPEN.value: np.array([b.open for b in bars], dtype=np.float64),
            Col.HIGH.value: np.array([b.high for b in bars], dtype=np.float64),
            Col.LOW.value: np.array([b.low for b in bars], dtype=np.float64),
            Col.CLOSE.value: np.array([b.close for b in bars], dtype=np.float64),
            Col.VOLUME.value: np.array([b.volume for b in bars], dtype=np.float64),
        })
        if len(self._frame) == 0:
            self._frame = rows
        else:
            self._frame = pd.concat([self._frame, rows], ignore_index=True)
        return len(rows)

    def values(self, column: ColumnKey, transform: Optional[str] = None) -> np.ndarray:
        """Column values as a numpy array (read-only view semantics: do not mutate)."""
        name = _name(column)
        if name not in self._frame.columns:
            raise PreconditionError("missing column", transform=transform, column=name)
        if name == Col.TIMESTAMP.value:
            return self._frame[name].to_numpy()
        return self._frame[name].to_numpy(dtype=np.float64 if name != Col.EPOCH.value else np.int64)

    def timestamps(self) -> List[pd.Timestamp]:
        return list(self._frame[Col.TIMESTAMP.value])

    def timestamp_at(self, row: int) -> pd.Timestamp:
        return self._frame[Col.TIMESTAMP.value].iat[row]

    def add(self, column: ColumnKey, values: Sequence[float], transform: Optional[str] = None) -> None:
        """Add a derived column covering every existing row."""
        name = _name(column)
        if name in self._frame.columns:
            raise PreconditionError("column already exists", transform=transform, column=name)
        arr = np.asarray(values, dtype=np.float64)
        if arr.ndim != 1 or len(arr) != len(self._frame):
            raise PreconditionError(
                f"length {len(arr)} does not match store length {len(self._frame)}",
                transform=transform,
                column=name,
            )
        self._frame[name] = arr

    def require(self, columns: Iterable[ColumnKey], transform: Optional[str] = None) -> None:
        """Fail fast when the store is empty or any column is absent."""
        if len(self._frame) == 0:
            raise PreconditionError("series store is empty", transform=transform)
        for column in columns:
            if not self.has(column):
                raise PreconditionError("missing column", transform=transform, column=_name(column))

    def raw_copy(self) -> "SeriesStore":
        """New store with only the raw bar columns (for recomputing indicators)."""
        return SeriesStore(self._frame[[c.value for c in RAW_COLUMNS]].copy())

    def frame(self, columns: Optional[Iterable[ColumnKey]] = None) -> pd.DataFrame:
        """Snapshot copy of the backing frame (optionally a subset of columns)."""
        if columns is None:
            return self._frame.copy()
        names = [_name(c) for c in columns]
        for name in names:
            if name not in self._frame.columns:
                raise PreconditionError("missing column", transform="frame", column=name)
        return self._frame[names].copy()

    def to_records(self, columns: Optional[Iterable[ColumnKey]] = None) -> List[dict]:
        return self.frame(columns).to_dict(orient="records")
