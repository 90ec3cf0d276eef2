"""
Trade aggregator: pairs ENTRY with the next EXIT, records closed trades and
keeps running statistics. Consumes events in emission order; intended to be
the main sink of an EventChannel.
"""

from __future__ import annotations
import copy
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

import pandas as pd

from kalman_trader.analytics.metrics import average, expectancy_ratio, profit_factor, win_rate
from kalman_trader.core.types import Event, EventKind, ExitReason, Side, TradeRecord

logger = logging.getLogger("kalman_trader.analytics.aggregator")

TRADE_COLUMNS = [
    "side", "entry_price", "exit_price", "entry_time", "exit_time",
    "profit", "profit_pct", "reason", "peak_profit", "peak_loss",
]


@dataclass
class Stats:
    """Running statistics over closed trades. Profits are in price points."""
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    net_profit: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    peak_profit: float = 0.0
    max_drawdown: float = 0.0
    max_profit: float = 0.0
    expectancy_ratio: float = 0.0
    exit_reasons: Counter = field(default_factory=Counter)

    @property
    def win_rate(self) -> float:
        return win_rate(self.winning_trades, self.total_trades)

    @property
    def avg_profit(self) -> float:
        return average(self.net_profit, self.total_trades)

    @property
    def profit_factor(self) -> float:
        return profit_factor(self.gross_profit, self.gross_loss)

    def record(self, profit: float, reason: Optional[ExitReason]) -> None:
        self.total_trades += 1
        self.net_profit += profit
        if profit > 0:
            self.winning_trades += 1
            self.gross_profit += profit
        elif profit < 0:
            self.losing_trades += 1
            self.gross_loss += profit
        else:
            self.breakeven_trades += 1

        self.peak_profit = max(self.peak_profit, self.net_profit)
        self.max_drawdown = max(self.max_drawdown, self.peak_profit - self.net_profit)
        self.max_profit = max(self.max_profit, profit)
        if reason is not None:
            self.exit_reasons[reason] += 1
        self.expectancy_ratio = expectancy_ratio(
            self.winning_trades, self.losing_trades, self.total_trades,
            self.gross_profit, self.gross_loss,
        )

    def summary_lines(self, title: str = "BACKTEST SUMMARY") -> List[str]:
        if self.total_trades == 0:
            return ["no trades executed"]
        lines = [
            f"========== {title} ==========",
            f"Total Trades:      {self.total_trades}",
            f"Winning Trades:    {self.winning_trades} ({self.win_rate * 100:.2f}%)",
            f"Losing Trades:     {self.losing_trades}",
            f"Breakeven Trades:  {self.breakeven_trades}",
            "---------------------------------------",
            f"Net Profit:        {self.net_profit:.2f} pts",
            f"Gross Profit:      {self.gross_profit:.2f} pts",
            f"Gross Loss:        {self.gross_loss:.2f} pts",
            f"Avg Profit/Trade:  {self.avg_profit:.2f} pts",
            f"Profit Factor:     {self.profit_factor:.2f}",
            f"Expectancy Ratio:  {self.expectancy_ratio:.2f} pts/trade",
            f"Max Drawdown:      {self.max_drawdown:.2f} pts",
            f"Max Single Profit: {self.max_profit:.2f} pts",
            "---------------------------------------",
            "Exit Reasons:",
        ]
        for reason in ExitReason:
            lines.append(f"  {reason.value:<16} {self.exit_reasons.get(reason, 0)}")
        lines.append("=======================================")
        return lines


@dataclass
class _Pending:
    side: Side
    entry_price: float
    entry_time: datetime


class TradeAggregator:
    """Event sink building the TradeRecord ledger and Stats. Thread-safe reads."""

    def __init__(self, title: str = "BACKTEST SUMMARY"):
        self.title = title
        self._lock = threading.Lock()
        self._pending: Optional[_Pending] = None
        self._trades: List[TradeRecord] = []
        self._stats = Stats()
        self._closed = threading.Event()

    def accept(self, event: Event) -> None:
        with self._lock:
            if event.kind is EventKind.ENTRY:
                self._pending = _Pending(event.side, event.price, event.timestamp)
                return
            if self._pending is None:
                logger.warning("EXIT without a pending entry ignored: %s @ %.2f", event.side.value, event.price)
                return
            pending = self._pending
            if pending.side is Side.BUY:
                profit = event.price - pending.entry_price
            else:
                profit = pending.entry_price - event.price
            profit_pct = (profit / pending.entry_price) * 100 if pending.entry_price != 0 else 0.0
            trade = TradeRecord(
                side=pending.side,
                entry_price=pending.entry_price,
                exit_price=event.price,
                entry_time=pending.entry_time,
                exit_time=event.timestamp,
                profit=profit,
                profit_pct=profit_pct,
                reason=event.reason,
                peak_profit=event.peak_profit,
                peak_loss=event.peak_loss,
            )
            self._trades.append(trade)
            self._stats.record(profit, event.reason)
            self._pending = None
        logger.info(
            "Trade closed | %s | entry: %.2f | exit: %.2f | profit: %.2f pts | reason: %s",
            trade.side.value, trade.entry_price, trade.exit_price, profit,
            event.reason.value if event.reason else "-",
        )

    def close(self) -> None:
        """Stream finished: log the summary and release wait_closed()."""
        for line in self.stats.summary_lines(self.title):
            logger.info(line)
        self._closed.set()

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        return self._closed.wait(timeout)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def stats(self) -> Stats:
        with self._lock:
            return copy.deepcopy(self._stats)

    @property
    def trades(self) -> List[TradeRecord]:
        with self._lock:
            return list(self._trades)

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def trades_frame(self) -> pd.DataFrame:
        rows = [t.to_dict() for t in self.trades]
        return pd.DataFrame(rows, columns=TRADE_COLUMNS)
