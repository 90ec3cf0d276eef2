"""Unit tests for indicators.spectral."""

import numpy as np
import pytest

from kalman_trader.core.errors import ConfigError, PreconditionError
from kalman_trader.indicators.spectral import (
    SpectralKalmanSmoother,
    cutoff_bin,
    lowpass_last,
    lowpass_series,
    next_pow2,
    scalar_kalman,
)


def test_next_pow2_and_cutoff():
    assert [next_pow2(n) for n in (1, 2, 3, 5, 64, 65)] == [1, 2, 4, 8, 64, 128]
    assert cutoff_bin(64, 128) == 1
    assert cutoff_bin(2, 2) == 1
    assert cutoff_bin(64, 4) == 16
    assert cutoff_bin(8, 1) == 4


def test_lowpass_keeps_constant_on_power_of_two_windows():
    out = lowpass_series(np.full(100, 5.0), 64, 128)
    for i in (0, 1, 3, 7, 15, 31):
        assert out[i] == pytest.approx(5.0)
    assert np.allclose(out[63:], 5.0)


def test_lowpass_removes_high_frequency():
    n = 64
    t = np.arange(n)
    window = 10.0 + np.cos(np.pi * t)  # Nyquist component only
    assert lowpass_last(window, 4) == pytest.approx(10.0)


def test_batched_rows_match_single_window():
    rng = np.random.default_rng(7)
    src = rng.normal(100, 3, 200)
    out = lowpass_series(src, 16, 4)
    for i in (15, 99, 199):
        assert out[i] == pytest.approx(lowpass_last(src[i - 15:i + 1], 4))
    assert out[5] == pytest.approx(lowpass_last(src[:6], 4))


def test_scalar_kalman_gains_bounded_and_first_estimate():
    z = np.array([1.0, 2.0, 3.0, 2.5, 2.0])
    est, gains = scalar_kalman(z, r=1.0, q=0.01)
    assert est[0] == 1.0
    assert len(gains) == 4
    assert ((gains > 0) & (gains <= 1)).all()
    assert (np.diff(gains) <= 0).all()


def test_scalar_kalman_small_gain_when_measurement_noise_dominates():
    z = np.zeros(1000)
    _, gains = scalar_kalman(z, r=100.0, q=1e-4)
    assert gains[-1] < 0.01


def test_fast_smoother_is_identity_before_kalman():
    src = np.array([10.0, 12.0, 11.0, 15.0, 14.0])
    result = SpectralKalmanSmoother(2, 2).filter(src)
    assert np.allclose(result.fft_smoothed, src)
    assert result.r == pytest.approx(1e-6)
    assert result.q == pytest.approx(1e-6)
    assert (result.output == np.ceil(result.estimates)).all()


def test_smoother_output_is_integer_valued():
    rng = np.random.default_rng(3)
    src = np.cumsum(rng.normal(0, 2, 150)) + 22000
    out = SpectralKalmanSmoother(64, 128).smooth(src)
    assert len(out) == 150
    assert (out == np.round(out)).all()


def test_smoother_rejects_empty_and_bad_params():
    with pytest.raises(PreconditionError):
        SpectralKalmanSmoother().filter(np.array([]))
    with pytest.raises(ConfigError):
        SpectralKalmanSmoother(window=0)
    with pytest.raises(ConfigError):
        SpectralKalmanSmoother(cutoff_divisor=0)


def test_scalar_kalman_tracks_when_process_noise_matches():
    z = np.array([1.0, 5.0, 2.0, 8.0, 3.0])
    _, gains = scalar_kalman(z, r=1.0, q=1.0)
    assert gains[0] == pytest.approx(2 / 3)
    assert ((gains >= 0.5) & (gains <= 1)).all()


def test_lowpass_zero_padding_dilutes_constant_on_odd_windows():
    # window 5 pads to 8, so only 5/8 of the DC level survives
    out = lowpass_series(np.full(12, 8.0), 5, 128)
    assert np.allclose(out[4:], 5.0)
