"""
Indicator pipeline: an ordered list of steps, each reading existing columns
and adding exactly one new column. The dependency order is checked once
when the pipeline is built.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from functools import partial
from typing import Callable, List, Sequence, Tuple

import numpy as np

from kalman_trader.core.errors import ConfigError
from kalman_trader.core.session import ActiveSession
from kalman_trader.data.series_store import Col, RAW_COLUMNS, SeriesStore
from kalman_trader.indicators.cci import cci
from kalman_trader.indicators.envelope import trend_envelope
from kalman_trader.indicators.moving_averages import check_period, ema, ohlc4, sma, wma
from kalman_trader.indicators.spectral import SpectralKalmanSmoother
from kalman_trader.indicators.swap import kalman_swap, trend_swap
from kalman_trader.indicators.volatility import atr

logger = logging.getLogger("kalman_trader.indicators.pipeline")


@dataclass(frozen=True)
class Step:
    """One transform: fn(*input arrays) -> output array."""
    name: str
    output: Col
    inputs: Tuple[Col, ...]
    fn: Callable[..., np.ndarray]


class IndicatorPipeline:
    """Runs steps in order against a SeriesStore, enriching it in place."""

    def __init__(self, steps: Sequence[Step]):
        self.steps: List[Step] = list(steps)
        available = set(RAW_COLUMNS)
        for step in self.steps:
            for col in step.inputs:
                if col not in available:
                    raise ConfigError(
                        f"step {step.name!r} reads {col.value!r} before any step produces it"
                    )
            if step.output in available:
                raise ConfigError(f"step {step.name!r} would overwrite {step.output.value!r}")
            available.add(step.output)
        self.raw_inputs = tuple(
            c for c in RAW_COLUMNS if any(c in s.inputs for s in self.steps)
        )

    @property
    def outputs(self) -> Tuple[Col, ...]:
        return tuple(s.output for s in self.steps)

    def run(self, store: SeriesStore) -> SeriesStore:
        store.require(self.raw_inputs, transform="pipeline")
        started = time.perf_counter()
        for step in self.steps:
            arrays = [store.values(c, transform=step.name) for c in step.inputs]
            out = step.fn(*arrays)
            store.add(step.output, out, transform=step.name)
        logger.debug(
            "Computed %d indicator columns over %d rows in %.3fs",
            len(self.steps), len(store), time.perf_counter() - started,
        )
        return store


def _envelope(close, osc, scale, factor):
    return trend_envelope(close, osc, scale, factor)


def _trend_swap(session, source, reference, high, low, close, epochs):
    return trend_swap(source, reference, high, low, close, epochs, session)


def _kalman_swap(session, factor, source, short_atr, epochs):
    return kalman_swap(source, short_atr, factor, epochs, session)


def kalman_pipeline(
    session: ActiveSession,
    cci_period: int = 2,
    atr_period: int = 5,
    wma_period: int = 30,
    envelope_factor_fast: float = 0.1,
    envelope_factor_slow: float = 0.1,
    ema_period: int = 3,
    trend_sma_period: int = 10,
    swap_atr_period: int = 2,
    fast_swap_factor: float = 0.25,
    slow_swap_factor: float = 0.3,
    fast_window: int = 2,
    fast_cutoff_divisor: int = 2,
    slow_window: int = 64,
    slow_cutoff_divisor: int = 128,
) -> IndicatorPipeline:
    """Build the fast/slow Kalman swap pipeline consumed by the signal engine."""
    for name, value in (
        ("CCI", cci_period), ("ATR", atr_period), ("WMA", wma_period), ("EMA", ema_period),
        ("SMA", trend_sma_period), ("swap ATR", swap_atr_period),
    ):
        check_period(value, name)
    fast = SpectralKalmanSmoother(fast_window, fast_cutoff_divisor)
    slow = SpectralKalmanSmoother(slow_window, slow_cutoff_divisor)
    ohlc = (Col.OPEN, Col.HIGH, Col.LOW, Col.CLOSE)
    hlc = (Col.HIGH, Col.LOW, Col.CLOSE)

    steps = [
        Step("ohlc4", Col.OHLC4, ohlc, ohlc4),
        Step("cci", Col.FAST_CCI, ohlc, partial(cci, period=cci_period)),
        Step("atr", Col.ATR, hlc, partial(atr, period=atr_period)),
        Step("wma_atr", Col.WMA_ATR, (Col.ATR,), partial(wma, period=wma_period)),
        Step("atr_short", Col.ATR_SHORT, hlc, partial(atr, period=swap_atr_period)),
        Step("fast_envelope", Col.FAST_TEMPX, (Col.CLOSE, Col.FAST_CCI, Col.WMA_ATR),
             partial(_envelope, factor=envelope_factor_fast)),
        Step("slow_envelope", Col.SLOW_TEMPX, (Col.CLOSE, Col.FAST_CCI, Col.WMA_ATR),
             partial(_envelope, factor=envelope_factor_slow)),
        Step("ema_fast_envelope", Col.EMA_FAST_TEMPX, (Col.FAST_TEMPX,), partial(ema, period=ema_period)),
        Step("ema_slow_envelope", Col.EMA_SLOW_TEMPX, (Col.SLOW_TEMPX,), partial(ema, period=ema_period)),
        Step("sma_fast_envelope", Col.SMA_FAST_TEMPX, (Col.FAST_TEMPX,), partial(sma, period=trend_sma_period)),
        Step("trend_swap", Col.TREND_SWAP,
             (Col.EMA_FAST_TEMPX, Col.SMA_FAST_TEMPX, Col.HIGH, Col.LOW, Col.CLOSE, Col.EPOCH),
             partial(_trend_swap, session)),
        Step("fast_kalman", Col.FAST_KALMAN, (Col.EMA_FAST_TEMPX,), fast.smooth),
        Step("slow_kalman", Col.SLOW_KALMAN, (Col.EMA_SLOW_TEMPX,), slow.smooth),
        Step("fast_swap", Col.FAST_SWAP, (Col.FAST_KALMAN, Col.ATR_SHORT, Col.EPOCH),
             partial(_kalman_swap, session, fast_swap_factor)),
        Step("slow_swap", Col.SLOW_SWAP, (Col.SLOW_KALMAN, Col.ATR_SHORT, Col.EPOCH),
             partial(_kalman_swap, session, slow_swap_factor)),
    ]
    return IndicatorPipeline(steps)


def pipeline_from_config(config) -> IndicatorPipeline:
    return kalman_pipeline(
        config.session(),
        cci_period=config.cci_period,
        atr_period=config.atr_period,
        wma_period=config.wma_period,
        envelope_factor_fast=config.envelope_factor_fast,
        envelope_factor_slow=config.envelope_factor_slow,
        ema_period=config.ema_period,
        trend_sma_period=config.trend_sma_period,
        swap_atr_period=config.swap_atr_period,
        fast_swap_factor=config.fast_swap_factor,
        slow_swap_factor=config.slow_swap_factor,
        fast_window=config.fast_window,
        fast_cutoff_divisor=config.fast_cutoff_divisor,
        slow_window=config.slow_window,
        slow_cutoff_divisor=config.slow_cutoff_divisor,
    )
