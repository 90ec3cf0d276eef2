"""
Trade statistics helpers, all in price points: win rate, profit factor,
average profit and the expectancy ratio.
"""

from __future__ import annotations


def win_rate(winning: int, total: int) -> float:
    """Fraction of closed trades with positive profit."""
    if total <= 0:
        return 0.0
    return winning / total


def profit_factor(gross_profit: float, gross_loss: float) -> float:
    """Gross profit / |gross loss|. gross_loss is negative; 0 when there were no losses."""
    if gross_loss == 0:
        return 0.0
    return gross_profit / -gross_loss


def average(total: float, count: int) -> float:
    if count <= 0:
        return 0.0
    return total / count


def expectancy_ratio(winning: int, losing: int, total: int, gross_profit: float, gross_loss: float) -> float:
    """
    Expected points per trade: P_w * avg_win - P_l * avg_loss, with
    P_l = 1 - P_w (breakeven trades count on the loss side of the rate).
    """
    if total <= 0:
        return 0.0
    p_win = win_rate(winning, total)
    avg_win = average(gross_profit, winning)
    avg_loss = average(-gross_loss, losing)
    return p_win * avg_win - (1 - p_win) * avg_loss
