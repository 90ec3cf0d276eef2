"""Strategies: base interface, exit policies and the Kalman swap signal engine."""

from kalman_trader.strategies.base import BaseStrategy
from kalman_trader.strategies.exit_policy import (
    ExitContext,
    ExitPolicy,
    MfeCaptureExit,
    TrailingStopExit,
    build_exit_policy,
)
from kalman_trader.strategies.kalman_swap import SignalEngine

__all__ = [
    "BaseStrategy",
    "ExitContext",
    "ExitPolicy",
    "MfeCaptureExit",
    "SignalEngine",
    "TrailingStopExit",
    "build_exit_policy",
]
