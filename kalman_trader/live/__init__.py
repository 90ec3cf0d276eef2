"""Live (streaming) session."""

from kalman_trader.live.session import LiveSession

__all__ = ["LiveSession"]
