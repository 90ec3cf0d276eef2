"""
Kalman swap strategy: the bar-by-bar signal engine.

Entries arm on a slow-swap flip (or a late fast-swap flip in the slow
direction) while the fast/slow Kalman deviation sits inside the band.
Exits are decided by the configured ExitPolicy and forced outside the
active session. One position at a time.
"""

from __future__ import annotations
import logging
from typing import Optional

from kalman_trader.core.errors import ConfigError
from kalman_trader.core.session import ActiveSession
from kalman_trader.core.types import Event, EventKind, ExitReason, Position, Side
from kalman_trader.data.series_store import Col, SeriesStore
from kalman_trader.indicators.pipeline import IndicatorPipeline, kalman_pipeline, pipeline_from_config
from kalman_trader.strategies.base import BaseStrategy, Emit
from kalman_trader.strategies.exit_policy import (
    ExitContext,
    ExitPolicy,
    MfeCaptureExit,
    TrailingStopExit,
    build_exit_policy,
)

logger = logging.getLogger("kalman_trader.strategy")

REQUIRED_COLUMNS = (
    Col.TIMESTAMP, Col.EPOCH, Col.CLOSE,
    Col.FAST_KALMAN, Col.SLOW_KALMAN, Col.FAST_SWAP, Col.SLOW_SWAP,
)


class SignalEngine(BaseStrategy):
    """Owns one Position and one exit policy; reusable across calls to run()."""

    def __init__(
        self,
        session: Optional[ActiveSession] = None,
        exit_policy: Optional[ExitPolicy] = None,
        pipeline: Optional[IndicatorPipeline] = None,
        deviation_min: float = 7.0,
        deviation_max: float = 15.0,
        enable_fixed_sl: bool = False,
        fixed_sl: float = -50.0,
        allow_same_bar_reentry: bool = False,
    ):
        if deviation_min < 0 or deviation_min > deviation_max:
            raise ConfigError(f"invalid deviation band [{deviation_min}, {deviation_max}]")
        self.session = session or ActiveSession()
        self.exit_policy = exit_policy or MfeCaptureExit()
        self.pipeline = pipeline or kalman_pipeline(self.session)
        self.deviation_min = deviation_min
        self.deviation_max = deviation_max
        self.enable_fixed_sl = enable_fixed_sl
        self.fixed_sl = fixed_sl
        self.allow_same_bar_reentry = allow_same_bar_reentry
        self.position = Position()

    @classmethod
    def from_config(cls, config) -> "SignalEngine":
        return cls(
            session=config.session(),
            exit_policy=build_exit_policy(config),
            pipeline=pipeline_from_config(config),
            deviation_min=config.deviation_min,
            deviation_max=config.deviation_max,
            enable_fixed_sl=config.enable_fixed_sl,
            fixed_sl=config.fixed_sl,
            allow_same_bar_reentry=config.allow_same_bar_reentry,
        )

    @property
    def required_columns(self):
        if isinstance(self.exit_policy, TrailingStopExit):
            return REQUIRED_COLUMNS + (Col.ATR,)
        return REQUIRED_COLUMNS

    def compute_indicators(self, store: SeriesStore) -> SeriesStore:
        return self.pipeline.run(store)

    def reset(self) -> None:
        self.position.reset()
        self.exit_policy.reset()

    def run(self, store: SeriesStore, emit: Emit, start: int = 0) -> int:
        store.require(self.required_columns, transform="signal_engine")
        close = store.values(Col.CLOSE)
        epochs = store.values(Col.EPOCH)
        fast_k = store.values(Col.FAST_KALMAN)
        slow_k = store.values(Col.SLOW_KALMAN)
        fast = store.values(Col.FAST_SWAP)
        slow = store.values(Col.SLOW_SWAP)
        atr = store.values(Col.ATR) if store.has(Col.ATR) else None
        timestamps = store.timestamps()
        n = len(store)

        for i in range(max(start, 0), n):
            deviation = abs(slow_k[i] - fast_k[i])
            deviation_ok = self.deviation_min <= deviation <= self.deviation_max

            slow_flip_up = slow_flip_down = fast_flip_up = fast_flip_down = False
            if i > 0:
                slow_flip_up = slow[i] == 1 and slow[i - 1] in (0, -1)
                slow_flip_down = slow[i] == -1 and slow[i - 1] in (0, 1)
                fast_flip_up = fast[i] == 1 and fast[i - 1] == -1
                fast_flip_down = fast[i] == -1 and fast[i - 1] == 1
            slow_reversal = i > 0 and slow[i] * slow[i - 1] == -1
            fast_reversal = fast_flip_up or fast_flip_down

            buy = deviation_ok and (slow_flip_up or (fast_flip_up and slow[i] == 1))
            sell = deviation_ok and (slow_flip_down or (fast_flip_down and slow[i] == -1))

            price = float(close[i])
            ts = timestamps[i].to_pydatetime()
            exited = False

            if self.position.is_open:
                side = self.position.side
                profit = self.position.mark(price)
                opposite = sell if side is Side.BUY else buy
                ctx = ExitContext(
                    side=side,
                    entry_price=self.position.entry_price,
                    price=price,
                    signal=opposite or slow_reversal or fast_reversal,
                    stop_loss_hit=self.enable_fixed_sl and profit <= self.fixed_sl,
                    atr=float(atr[i]) if atr is not None else 0.0,
                )
                reason = self.exit_policy.evaluate(ctx)
                if reason is None and not self.session.contains_epoch(int(epochs[i])):
                    reason = ExitReason.SIGNAL
                if reason is not None:
                    self._exit(price, ts, reason, i, emit)
                    exited = True

            if not self.position.is_open and (not exited or self.allow_same_bar_reentry):
                if buy:
                    self._enter(Side.BUY, price, ts, i, emit)
                elif sell:
                    self._enter(Side.SELL, price, ts, i, emit)
        return n

    def _enter(self, side: Side, price: float, ts, row: int, emit: Emit) -> None:
        self.position.open(side, price, ts)
        self.exit_policy.reset()
        logger.debug("ENTRY %s @ %.2f row=%d", side.value, price, row)
        emit(Event(side=side, kind=EventKind.ENTRY, price=price, timestamp=ts, row=row))

    def _exit(self, price: float, ts, reason: ExitReason, row: int, emit: Emit) -> None:
        pos = self.position
        pos.close(price, ts)
        event = Event(
            side=pos.side,
            kind=EventKind.EXIT,
            price=price,
            timestamp=ts,
            reason=reason,
            peak_profit=pos.peak_profit,
            peak_loss=pos.peak_loss,
            row=row,
        )
        logger.debug(
            "EXIT %s @ %.2f row=%d reason=%s profit=%.2f", pos.side.value, price, row, reason.value, pos.profit
        )
        pos.reset()
        self.exit_policy.reset()
        emit(event)
