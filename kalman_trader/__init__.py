"""Kalman swap trader: indicator pipeline, signal engine, trade aggregation."""

__version__ = "0.1.0"
