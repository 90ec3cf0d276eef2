"""Unit tests for indicators.pipeline."""

import numpy as np
import pytest

from kalman_trader.core.config import Config
from kalman_trader.core.errors import ConfigError, PreconditionError
from kalman_trader.core.session import ActiveSession
from kalman_trader.data.series_store import Col, RAW_COLUMNS, SeriesStore
from kalman_trader.indicators.pipeline import IndicatorPipeline, Step, kalman_pipeline, pipeline_from_config


def _identity(x):
    return x


def test_dag_rejects_input_before_producer():
    with pytest.raises(ConfigError):
        IndicatorPipeline([Step("wma", Col.WMA_ATR, (Col.ATR,), _identity)])


def test_dag_rejects_duplicate_output():
    steps = [
        Step("a", Col.ATR, (Col.CLOSE,), _identity),
        Step("b", Col.ATR, (Col.CLOSE,), _identity),
    ]
    with pytest.raises(ConfigError):
        IndicatorPipeline(steps)


def test_dag_rejects_overwriting_raw_column():
    with pytest.raises(ConfigError):
        IndicatorPipeline([Step("a", Col.CLOSE, (Col.OPEN,), _identity)])


def test_default_pipeline_order_is_valid():
    p = kalman_pipeline(ActiveSession())
    outputs = p.outputs
    assert outputs.index(Col.WMA_ATR) < outputs.index(Col.FAST_TEMPX)
    assert outputs.index(Col.EMA_SLOW_TEMPX) < outputs.index(Col.SLOW_KALMAN)
    assert outputs.index(Col.SLOW_KALMAN) < outputs.index(Col.SLOW_SWAP)


def test_run_adds_every_column(make_bars, wave_closes):
    store = SeriesStore.from_bars(make_bars(wave_closes))
    kalman_pipeline(ActiveSession()).run(store)
    n = len(wave_closes)
    for col in list(RAW_COLUMNS) + [Col.FAST_KALMAN, Col.SLOW_KALMAN, Col.FAST_SWAP, Col.SLOW_SWAP, Col.TREND_SWAP]:
        assert store.has(col)
        assert len(store.values(col)) == n
    for col in (Col.FAST_SWAP, Col.SLOW_SWAP, Col.TREND_SWAP):
        assert set(np.unique(store.values(col))) <= {-1.0, 0.0, 1.0}
    slow = store.values(Col.SLOW_KALMAN)
    assert (slow == np.round(slow)).all()
    assert store.values(Col.WMA_ATR)[:29].tolist() == [0.0] * 29


def test_run_twice_fails_with_column(make_bars):
    store = SeriesStore.from_bars(make_bars([100.0, 101.0, 102.0]))
    p = kalman_pipeline(ActiveSession())
    p.run(store)
    with pytest.raises(PreconditionError) as exc:
        p.run(store)
    assert exc.value.column == "ohlc4"
    assert exc.value.transform == "ohlc4"


def test_run_on_empty_store():
    with pytest.raises(PreconditionError):
        kalman_pipeline(ActiveSession()).run(SeriesStore())


def test_pipeline_from_config_rejects_bad_period():
    with pytest.raises(ConfigError):
        pipeline_from_config(Config(wma_period=0))
