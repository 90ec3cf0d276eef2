"""Indicator transforms and the pipeline that chains them."""

from kalman_trader.indicators.cci import cci
from kalman_trader.indicators.envelope import trend_envelope
from kalman_trader.indicators.moving_averages import ema, ohlc4, sma, wma
from kalman_trader.indicators.pipeline import IndicatorPipeline, Step, kalman_pipeline, pipeline_from_config
from kalman_trader.indicators.spectral import SpectralKalmanSmoother
from kalman_trader.indicators.swap import kalman_swap, trend_swap
from kalman_trader.indicators.volatility import atr, true_range

__all__ = [
    "IndicatorPipeline",
    "SpectralKalmanSmoother",
    "Step",
    "atr",
    "cci",
    "ema",
    "kalman_pipeline",
    "kalman_swap",
    "ohlc4",
    "pipeline_from_config",
    "sma",
    "trend_envelope",
    "trend_swap",
    "true_range",
    "wma",
]
