"""
Exit policies for the single open position. Each policy keeps its own
per-trade state; the engine calls reset() on entry and evaluate() once per
bar while a position is open.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from kalman_trader.core.errors import ConfigError
from kalman_trader.core.types import ExitReason, Side


@dataclass(frozen=True)
class ExitContext:
    """What the engine knows about the open trade on the current bar."""
    side: Side
    entry_price: float
    price: float
    signal: bool = False
    stop_loss_hit: bool = False
    atr: float = 0.0

    @property
    def profit(self) -> float:
        if self.side is Side.BUY:
            return self.price - self.entry_price
        return self.entry_price - self.price

    @property
    def raw_signal(self) -> bool:
        return self.signal or self.stop_loss_hit


class ExitPolicy(ABC):
    """Decides whether the open position closes on this bar."""

    @abstractmethod
    def reset(self) -> None:
        pass

    @abstractmethod
    def evaluate(self, ctx: ExitContext) -> Optional[ExitReason]:
        """Return the exit reason, or None to stay in the trade."""
        pass


@dataclass
class TradeState:
    entry_price: float = 0.0
    side: Optional[Side] = None
    current_price: float = 0.0
    mfe: float = 0.0
    bars_in_trade: int = 0
    exit_signal: bool = False
    exit_signal_streak: int = 0


class MfeCaptureExit(ExitPolicy):
    """
    Two regimes keyed on maximum favorable excursion (MFE).
    Below `activation_mfe` any raw exit signal closes the trade. At or above
    it, the signal must hold for `confirm_bars` consecutive bars, or the
    trade closes once it has given back (1 - capture_ratio) of its MFE.
    """

    def __init__(self, activation_mfe: float = 12.0, capture_ratio: float = 0.4, confirm_bars: int = 1):
        if not 0.0 <= capture_ratio <= 1.0:
            raise ConfigError(f"capture_ratio must be within [0, 1], got {capture_ratio}")
        if confirm_bars < 1:
            raise ConfigError(f"confirm_bars must be >= 1, got {confirm_bars}")
        self.activation_mfe = activation_mfe
        self.capture_ratio = capture_ratio
        self.confirm_bars = confirm_bars
        self.state = TradeState()

    def reset(self) -> None:
        self.state = TradeState()

    def evaluate(self, ctx: ExitContext) -> Optional[ExitReason]:
        st = self.state
        st.entry_price = ctx.entry_price
        st.side = ctx.side
        st.current_price = ctx.price
        st.exit_signal = ctx.raw_signal
        st.bars_in_trade += 1

        profit = ctx.profit
        st.mfe = max(st.mfe, profit)
        st.exit_signal_streak = st.exit_signal_streak + 1 if st.exit_signal else 0

        signal_reason = ExitReason.SIGNAL if ctx.signal else ExitReason.STOP_LOSS
        if st.mfe < self.activation_mfe:
            return signal_reason if st.exit_signal else None

        if st.exit_signal and st.exit_signal_streak >= self.confirm_bars:
            return signal_reason
        drawdown = st.mfe - profit
        if drawdown >= st.mfe * (1 - self.capture_ratio):
            return ExitReason.TRAILING_STOP
        return None


@dataclass
class TrailingState:
    highest_profit: float = 0.0
    stop: float = 0.0
    breakeven_active: bool = False


class TrailingStopExit(ExitPolicy):
    """
    Price-level trailing stop: trails `close -/+ distance` once the best profit
    reaches `trail_activation`, jumps to the entry price at
    `breakeven_activation`, and closes on a profit target, a stop loss capped
    at `stop_loss_atr_mult * atr`, the trailing level, or a raw signal.
    """

    def __init__(
        self,
        trail_activation: float = 10.0,
        trail_distance: float = 10.0,
        use_atr_trailing: bool = True,
        atr_trailing_mult: float = 0.55,
        use_breakeven: bool = True,
        breakeven_activation: float = 10.0,
        profit_target: float = 100.0,
        stop_loss_points: float = 100.0,
        stop_loss_atr_mult: float = 4.5,
    ):
        self.trail_activation = trail_activation
        self.trail_distance = trail_distance
        self.use_atr_trailing = use_atr_trailing
        self.atr_trailing_mult = atr_trailing_mult
        self.use_breakeven = use_breakeven
        self.breakeven_activation = breakeven_activation
        self.profit_target = profit_target
        self.stop_loss_points = stop_loss_points
        self.stop_loss_atr_mult = stop_loss_atr_mult
        self.state = TrailingState()

    def reset(self) -> None:
        self.state = TrailingState()

    def evaluate(self, ctx: ExitContext) -> Optional[ExitReason]:
        st = self.state
        profit = ctx.profit
        st.highest_profit = max(st.highest_profit, profit)

        distance = self.trail_distance
        if self.use_atr_trailing and ctx.atr > 0:
            distance = ctx.atr * self.atr_trailing_mult

        if st.highest_profit >= self.trail_activation:
            if ctx.side is Side.BUY:
                level = ctx.price - distance
                if st.stop == 0 or level > st.stop:
                    st.stop = level
            else:
                level = ctx.price + distance
                if st.stop == 0 or level < st.stop:
                    st.stop = level

        if self.use_breakeven and not st.breakeven_active and st.highest_profit >= self.breakeven_activation:
            st.stop = ctx.entry_price
            st.breakeven_active = True

        if ctx.side is Side.BUY:
            trailing_hit = st.stop > 0 and ctx.price <= st.stop
        else:
            trailing_hit = st.stop > 0 and ctx.price >= st.stop

        stop_loss = min(self.stop_loss_points, ctx.atr * self.stop_loss_atr_mult)
        if profit >= self.profit_target:
            return ExitReason.PROFIT_TARGET
        if profit <= -stop_loss or ctx.stop_loss_hit:
            return ExitReason.STOP_LOSS
        if trailing_hit:
            return ExitReason.TRAILING_STOP
        if ctx.signal:
            return ExitReason.SIGNAL
        return None


def build_exit_policy(config) -> ExitPolicy:
    """Exit policy named by config.exit_policy."""
    if config.exit_policy == "mfe_capture":
        return MfeCaptureExit(config.activation_mfe, config.capture_ratio, config.confirm_bars)
    if config.exit_policy == "trailing_stop":
        return TrailingStopExit(
            trail_activation=config.trail_activation,
            trail_distance=config.trail_distance,
            use_atr_trailing=config.use_atr_trailing,
            atr_trailing_mult=config.atr_trailing_mult,
            use_breakeven=config.use_breakeven,
            breakeven_activation=config.breakeven_activation,
            profit_target=config.profit_target,
            stop_loss_points=config.stop_loss_points,
            stop_loss_atr_mult=config.stop_loss_atr_mult,
        )
    raise ConfigError(f"unknown exit policy {config.exit_policy!r}")
