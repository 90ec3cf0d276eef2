"""Utilities: Telegram tap, timeframe parsing."""

from kalman_trader.utils.telegram import TelegramNotifier, send_telegram
from kalman_trader.utils.timeframes import timeframe_seconds

__all__ = ["TelegramNotifier", "send_telegram", "timeframe_seconds"]
