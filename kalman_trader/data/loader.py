"""
Bar ingestion from CSV: full history load and an incremental polled feed.
CSV columns: timestamp, open, high, low, close[, volume][, epoch].
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from kalman_trader.core.errors import PreconditionError
from kalman_trader.core.types import Bar

logger = logging.getLogger("kalman_trader.data.loader")

REQUIRED = ("timestamp", "open", "high", "low", "close")


def bars_from_frame(df: pd.DataFrame) -> List[Bar]:
    """Convert an OHLCV DataFrame into Bars, ascending by epoch as given."""
    missing = [c for c in REQUIRED if c not in df.columns]
    if missing:
        raise PreconditionError(f"bar data missing columns {missing}", transform="load_bars")
    ts = pd.to_datetime(df["timestamp"], utc=True)
    if "epoch" in df.columns:
        epochs = df["epoch"].astype("int64")
    else:
        epochs = (ts - pd.Timestamp("1970-01-01", tz="UTC")) // pd.Timedelta(seconds=1)
    volume = df["volume"] if "volume" in df.columns else pd.Series(0.0, index=df.index)
    bars = []
    for t, e, o, h, l, c, v in zip(ts, epochs, df["open"], df["high"], df["low"], df["close"], volume):
        bars.append(Bar(t.to_pydatetime(), float(o), float(h), float(l), float(c), float(v), int(e)))
    return bars


def load_bars_csv(
    path: Union[str, Path],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> List[Bar]:
    """Load bars from CSV, optionally filtered to [start, end] dates (inclusive)."""
    df = pd.read_csv(path)
    if start or end:
        ts = pd.to_datetime(df["timestamp"], utc=True)
        mask = pd.Series(True, index=df.index)
        if start:
            mask &= ts >= pd.Timestamp(start, tz="UTC")
        if end:
            mask &= ts < pd.Timestamp(end, tz="UTC") + pd.Timedelta(days=1)
        df = df[mask]
    bars = bars_from_frame(df)
    logger.info("Loaded %d bars from %s", len(bars), path)
    return bars


class CsvBarFeed:
    """Polls a growing CSV file and returns only rows added since the last poll."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._seen = 0

    def poll(self) -> List[Bar]:
        if not self.path.exists():
            logger.debug("Bar feed %s not present yet", self.path)
            return []
        df = pd.read_csv(self.path)
        if len(df) <= self._seen:
            return []
        new = df.iloc[self._seen:]
        self._seen = len(df)
        return bars_from_frame(new)
