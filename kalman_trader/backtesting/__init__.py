"""Backtesting: event channel and the historical run orchestrator."""

from kalman_trader.backtesting.channel import EventChannel, EventSink
from kalman_trader.backtesting.engine import BacktestEngine, BacktestResult

__all__ = ["BacktestEngine", "BacktestResult", "EventChannel", "EventSink"]
