#!/usr/bin/env python3
"""
Kalman swap trader CLI: backtest | live
Usage:
  python main.py backtest [--data bars.csv] [--config config.yaml]
  python main.py live [--data bars.csv] [--config config.yaml]
"""

from __future__ import annotations
import argparse
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from kalman_trader.backtesting.engine import BacktestEngine
from kalman_trader.core.config import Config, load_config
from kalman_trader.core.errors import TradingError
from kalman_trader.core.logger import setup_logging
from kalman_trader.data.loader import CsvBarFeed, load_bars_csv
from kalman_trader.live.session import LiveSession
from kalman_trader.strategies.kalman_swap import SignalEngine
from kalman_trader.utils.telegram import TelegramNotifier, send_telegram
from kalman_trader.utils.timeframes import timeframe_seconds

logger = logging.getLogger("kalman_trader")


def _build_notifier(config: Config) -> TelegramNotifier:
    return TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id)


def _data_path(arg: Optional[Path], configured: Optional[str]) -> Optional[Path]:
    if arg is not None:
        return arg
    return Path(configured) if configured else None


def run_backtest(config_path: Optional[Path], data: Optional[Path]) -> int:
    """Run one backtest pass over a CSV of bars."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    path = _data_path(data, config.backtest_data)
    if path is None:
        logger.error("Backtest needs bar data: pass --data or set backtest.data_path in config.yaml")
        return 1
    bars = load_bars_csv(path, config.backtest_start, config.backtest_end)
    if not bars:
        logger.error("No bars in %s for the configured date range", path)
        return 1
    engine = BacktestEngine(SignalEngine.from_config(config))
    result = engine.run(bars)
    s = result.stats
    print("\n--- Backtest Results ---")
    print(f"Total trades: {s.total_trades} (wins: {s.winning_trades}, losses: {s.losing_trades})")
    print(f"Net profit: {s.net_profit:.2f} pts")
    print(f"Max drawdown: {s.max_drawdown:.2f} pts")
    print(f"Win rate: {s.win_rate * 100:.1f}%")
    print(f"Profit factor: {s.profit_factor:.2f}")
    print(f"Expectancy: {s.expectancy_ratio:.2f} pts/trade")
    return 0


def run_live(config_path: Optional[Path], data: Optional[Path]) -> int:
    """Follow a growing CSV of bars and trade it forward in time."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    path = _data_path(data, config.live_data)
    if path is None:
        logger.error("Live mode needs a bar feed: pass --data or set live.data_path in config.yaml")
        return 1
    interval = timeframe_seconds(config.timeframe)
    feed = CsvBarFeed(path)
    session = LiveSession(SignalEngine.from_config(config), taps=[_build_notifier(config)])
    session.load_history(feed.poll())
    send_telegram("Kalman trader starting (live)", config.telegram_bot_token, config.telegram_chat_id)
    stop = threading.Event()
    try:
        session.follow(feed, interval, stop)
    except KeyboardInterrupt:
        logger.info("Shutdown by user")
        stop.set()
    finally:
        session.close()
        send_telegram("Kalman trader stopped.", config.telegram_bot_token, config.telegram_chat_id)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Kalman swap trader CLI")
    parser.add_argument("mode", choices=["backtest", "live"], help="Run backtest or live")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--data", type=Path, default=None, help="CSV of bars (timestamp,open,high,low,close,volume)")
    args = parser.parse_args()
    try:
        if args.mode == "backtest":
            return run_backtest(args.config, args.data)
        return run_live(args.config, args.data)
    except TradingError as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
