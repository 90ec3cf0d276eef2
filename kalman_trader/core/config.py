"""
Load configuration from config.yaml and .env. Telegram secrets only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from kalman_trader.core.errors import ConfigError
from kalman_trader.core.session import ActiveSession

EXIT_POLICIES = ("mfe_capture", "trailing_stop")


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns a validated Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, str(default)).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    ind = data.get("indicators", {})
    spectral = data.get("spectral", {})
    entry = data.get("entry", {})
    exit_ = data.get("exit", {})
    session = data.get("session", {})
    backtest = data.get("backtest", {})
    live = data.get("live", {})
    telegram = data.get("telegram", {})
    logging_ = data.get("logging", {})

    config = Config(
        # Indicators
        cci_period=env_int("CCI_PERIOD", ind.get("cci_period", 2)),
        atr_period=env_int("ATR_PERIOD", ind.get("atr_period", 5)),
        wma_period=env_int("WMA_PERIOD", ind.get("wma_period", 30)),
        envelope_factor_fast=env_float("ENVELOPE_FACTOR_FAST", ind.get("envelope_factor_fast", 0.1)),
        envelope_factor_slow=env_float("ENVELOPE_FACTOR_SLOW", ind.get("envelope_factor_slow", 0.1)),
        ema_period=env_int("EMA_PERIOD", ind.get("ema_period", 3)),
        trend_sma_period=env_int("TREND_SMA_PERIOD", ind.get("trend_sma_period", 10)),
        swap_atr_period=env_int("SWAP_ATR_PERIOD", ind.get("swap_atr_period", 2)),
        fast_swap_factor=env_float("FAST_SWAP_FACTOR", ind.get("fast_swap_factor", 0.25)),
        slow_swap_factor=env_float("SLOW_SWAP_FACTOR", ind.get("slow_swap_factor", 0.3)),
        # Spectral smoother
        fast_window=env_int("FAST_WINDOW", spectral.get("fast_window", 2)),
        fast_cutoff_divisor=env_int("FAST_CUTOFF_DIVISOR", spectral.get("fast_cutoff_divisor", 2)),
        slow_window=env_int("SLOW_WINDOW", spectral.get("slow_window", 64)),
        slow_cutoff_divisor=env_int("SLOW_CUTOFF_DIVISOR", spectral.get("slow_cutoff_divisor", 128)),
        # Entry
        deviation_min=env_float("DEVIATION_MIN", entry.get("deviation_min", 7.0)),
        deviation_max=env_float("DEVIATION_MAX", entry.get("deviation_max", 15.0)),
        allow_same_bar_reentry=entry.get("allow_same_bar_reentry", False),
        # Exit
        exit_policy=env("EXIT_POLICY", exit_.get("policy", "mfe_capture")),
        activation_mfe=env_float("ACTIVATION_MFE", exit_.get("activation_mfe", 12.0)),
        capture_ratio=env_float("CAPTURE_RATIO", exit_.get("capture_ratio", 0.4)),
        confirm_bars=env_int("CONFIRM_BARS", exit_.get("confirm_bars", 1)),
        enable_fixed_sl=env_bool("ENABLE_FIXED_SL", exit_.get("enable_fixed_sl", False)),
        fixed_sl=env_float("FIXED_SL", exit_.get("fixed_sl", -50.0)),
        trail_activation=float(exit_.get("trail_activation", 10.0)),
        trail_distance=float(exit_.get("trail_distance", 10.0)),
        use_atr_trailing=exit_.get("use_atr_trailing", True),
        atr_trailing_mult=float(exit_.get("atr_trailing_mult", 0.55)),
        use_breakeven=exit_.get("use_breakeven", True),
        breakeven_activation=float(exit_.get("breakeven_activation", 10.0)),
        profit_target=float(exit_.get("profit_target", 100.0)),
        stop_loss_points=float(exit_.get("stop_loss_points", 100.0)),
        stop_loss_atr_mult=float(exit_.get("stop_loss_atr_mult", 4.5)),
        # Session
        session_start=env("SESSION_START", session.get("start", "09:17")),
        session_end=env("SESSION_END", session.get("end", "15:25")),
        session_utc_offset=env("SESSION_UTC_OFFSET", session.get("utc_offset", "+05:30")),
        # Backtest / live data
        backtest_data=backtest.get("data_path"),
        backtest_start=backtest.get("start_date"),
        backtest_end=backtest.get("end_date"),
        live_data=live.get("data_path"),
        timeframe=env("TIMEFRAME", live.get("timeframe", "1m")),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=logging_.get("level", "INFO"),
        log_dir=Path(logging_.get("log_dir", "logs")),
        log_file=logging_.get("log_file", "kalman_trader.log"),
    )
    config.validate()
    return config


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "cci_period", "atr_period", "wma_period", "envelope_factor_fast", "envelope_factor_slow",
        "ema_period", "trend_sma_period", "swap_atr_period", "fast_swap_factor", "slow_swap_factor",
        "fast_window", "fast_cutoff_divisor", "slow_window", "slow_cutoff_divisor",
        "deviation_min", "deviation_max", "allow_same_bar_reentry",
        "exit_policy", "activation_mfe", "capture_ratio", "confirm_bars", "enable_fixed_sl", "fixed_sl",
        "trail_activation", "trail_distance", "use_atr_trailing", "atr_trailing_mult",
        "use_breakeven", "breakeven_activation", "profit_target", "stop_loss_points", "stop_loss_atr_mult",
        "session_start", "session_end", "session_utc_offset",
        "backtest_data", "backtest_start", "backtest_end", "live_data", "timeframe",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
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
        deviation_min: float = 7.0,
        deviation_max: float = 15.0,
        allow_same_bar_reentry: bool = False,
        exit_policy: str = "mfe_capture",
        activation_mfe: float = 12.0,
        capture_ratio: float = 0.4,
        confirm_bars: int = 1,
        enable_fixed_sl: bool = False,
        fixed_sl: float = -50.0,
        trail_activation: float = 10.0,
        trail_distance: float = 10.0,
        use_atr_trailing: bool = True,
        atr_trailing_mult: float = 0.55,
        use_breakeven: bool = True,
        breakeven_activation: float = 10.0,
        profit_target: float = 100.0,
        stop_loss_points: float = 100.0,
        stop_loss_atr_mult: float = 4.5,
        session_start: str = "09:17",
        session_end: str = "15:25",
        session_utc_offset: str = "+05:30",
        backtest_data: Optional[str] = None,
        backtest_start: Optional[str] = None,
        backtest_end: Optional[str] = None,
        live_data: Optional[str] = None,
        timeframe: str = "1m",
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "kalman_trader.log",
    ):
        self.cci_period = cci_period
        self.atr_period = atr_period
        self.wma_period = wma_period
        self.envelope_factor_fast = envelope_factor_fast
        self.envelope_factor_slow = envelope_factor_slow
        self.ema_period = ema_period
        self.trend_sma_period = trend_sma_period
        self.swap_atr_period = swap_atr_period
        self.fast_swap_factor = fast_swap_factor
        self.slow_swap_factor = slow_swap_factor
        self.fast_window = fast_window
        self.fast_cutoff_divisor = fast_cutoff_divisor
        self.slow_window = slow_window
        self.slow_cutoff_divisor = slow_cutoff_divisor
        self.deviation_min = deviation_min
        self.deviation_max = deviation_max
        self.allow_same_bar_reentry = bool(allow_same_bar_reentry)
        self.exit_policy = exit_policy
        self.activation_mfe = activation_mfe
        self.capture_ratio = capture_ratio
        self.confirm_bars = confirm_bars
        self.enable_fixed_sl = bool(enable_fixed_sl)
        self.fixed_sl = fixed_sl
        self.trail_activation = trail_activation
        self.trail_distance = trail_distance
        self.use_atr_trailing = bool(use_atr_trailing)
        self.atr_trailing_mult = atr_trailing_mult
        self.use_breakeven = bool(use_breakeven)
        self.breakeven_activation = breakeven_activation
        self.profit_target = profit_target
        self.stop_loss_points = stop_loss_points
        self.stop_loss_atr_mult = stop_loss_atr_mult
        self.session_start = session_start
        self.session_end = session_end
        self.session_utc_offset = session_utc_offset
        self.backtest_data = backtest_data
        self.backtest_start = backtest_start
        self.backtest_end = backtest_end
        self.live_data = live_data
        self.timeframe = timeframe
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def session(self) -> ActiveSession:
        return ActiveSession.from_strings(self.session_start, self.session_end, self.session_utc_offset)

    def validate(self) -> None:
        """Raise ConfigError on anything a run could not start with."""
        for name in (
            "cci_period", "atr_period", "wma_period", "ema_period", "trend_sma_period",
            "swap_atr_period", "fast_window", "fast_cutoff_divisor", "slow_window",
            "slow_cutoff_divisor", "confirm_bars",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if self.deviation_min < 0 or self.deviation_min > self.deviation_max:
            raise ConfigError(
                f"invalid deviation band [{self.deviation_min}, {self.deviation_max}]"
            )
        if not 0.0 <= self.capture_ratio <= 1.0:
            raise ConfigError(f"capture_ratio must be within [0, 1], got {self.capture_ratio}")
        if self.exit_policy not in EXIT_POLICIES:
            raise ConfigError(f"unknown exit policy {self.exit_policy!r}; expected one of {EXIT_POLICIES}")
        self.session()
