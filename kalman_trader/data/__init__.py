"""Data: series store and bar ingestion."""

from kalman_trader.data.series_store import SeriesStore, Col, RAW_COLUMNS
from kalman_trader.data.loader import load_bars_csv, bars_from_frame, CsvBarFeed

__all__ = ["SeriesStore", "Col", "RAW_COLUMNS", "load_bars_csv", "bars_from_frame", "CsvBarFeed"]
