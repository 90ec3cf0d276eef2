"""
Active trading session: intraday window in a fixed UTC offset.
Direction values outside the window are forced to 0 and open positions are
closed by the engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple, Union

import numpy as np

from kalman_trader.core.errors import ConfigError

_TIME_LAYOUTS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M%p", "%I %p", "%I%p")


def parse_time_of_day(value: str) -> Tuple[int, int]:
    """Parse '09:17', '09:17:00', '9:17 AM', '9AM' ... into (hour, minute)."""
    s = (value or "").strip().upper()
    if not s:
        raise ConfigError("empty time of day")
    for layout in _TIME_LAYOUTS:
        try:
            t = datetime.strptime(s, layout)
        except ValueError:
            continue
        return t.hour, t.minute
    raise ConfigError(f"invalid time {value!r} (expected like 09:00, 9:00 AM, or 11PM)")


def parse_utc_offset(value: Union[str, int]) -> int:
    """'+05:30' / '-04:00' / 330 -> offset in minutes."""
    if isinstance(value, int):
        minutes = value
    else:
        s = str(value).strip()
        sign = -1 if s.startswith("-") else 1
        body = s.lstrip("+-")
        try:
            if ":" in body:
                h, m = body.split(":", 1)
                minutes = sign * (int(h) * 60 + int(m))
            else:
                minutes = sign * int(body)
        except ValueError:
            raise ConfigError(f"invalid utc offset {value!r} (expected like +05:30)") from None
    if abs(minutes) > 14 * 60:
        raise ConfigError(f"utc offset out of range: {value!r}")
    return minutes


@dataclass(frozen=True)
class ActiveSession:
    """Inclusive [start, end] minute-of-day window at a fixed UTC offset."""
    start_minute: int = 9 * 60 + 17
    end_minute: int = 15 * 60 + 25
    utc_offset_minutes: int = 330

    def __post_init__(self) -> None:
        for name in ("start_minute", "end_minute"):
            v = getattr(self, name)
            if not 0 <= v < 24 * 60:
                raise ConfigError(f"{name} out of range: {v}")
        if self.start_minute > self.end_minute:
            raise ConfigError(
                f"session start {self.start_minute} is after end {self.end_minute}"
            )

    @classmethod
    def from_strings(cls, start: str = "09:17", end: str = "15:25", utc_offset: Union[str, int] = "+05:30") -> "ActiveSession":
        sh, sm = parse_time_of_day(start)
        eh, em = parse_time_of_day(end)
        return cls(sh * 60 + sm, eh * 60 + em, parse_utc_offset(utc_offset))

    def contains_epoch(self, epoch: int) -> bool:
        minute = ((int(epoch) + self.utc_offset_minutes * 60) // 60) % (24 * 60)
        return self.start_minute <= minute <= self.end_minute

    def contains(self, ts: Optional[datetime]) -> bool:
        """True when `ts` falls inside the window. Naive datetimes are taken as UTC."""
        if ts is None:
            return False
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return self.contains_epoch(int(ts.timestamp()))

    def mask(self, epochs: np.ndarray) -> np.ndarray:
        """Vectorised contains_epoch over an int array of epoch seconds."""
        epochs = np.asarray(epochs, dtype=np.int64)
        minutes = ((epochs + self.utc_offset_minutes * 60) // 60) % (24 * 60)
        return (minutes >= self.start_minute) & (minutes <= self.end_minute)
