"""Analytics: trade aggregation and summary statistics."""

from kalman_trader.analytics.aggregator import Stats, TradeAggregator
from kalman_trader.analytics.metrics import (
    average,
    expectancy_ratio,
    profit_factor,
    win_rate,
)

__all__ = [
    "Stats",
    "TradeAggregator",
    "average",
    "expectancy_ratio",
    "profit_factor",
    "win_rate",
]
