"""Tests for numeric clamps and proportional sizing."""

import math

import pytest

from screenshot_export.core.clamps import (
    calculate_proportional_height,
    calculate_proportional_width,
    clamp,
    clamp_dimension,
    clamp_padding_size,
    clamp_watermark_opacity,
    clamp_watermark_size,
    round_half_up,
)

CLAMPS = [
    (clamp_padding_size, 0, 200),
    (clamp_watermark_size, 20, 200),
    (clamp_watermark_opacity, 0, 100),
    (clamp_dimension, 1, 10000),
]

SAMPLES = [
    -math.inf, -1000, -5, -0.5, 0, 0.4, 0.5, 1, 19.5, 20, 50.5,
    99.9, 100, 150, 199.5, 200, 201, 5000, 20000, math.inf,
]


class TestRounding:
    """Tests for round_half_up and clamp."""

    @pytest.mark.parametrize(
        "value, expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.4, 2), (-2.5, -2), (-2.6, -3)],
    )
    def test_round_half_up(self, value, expected):
        """Test that halves round towards positive infinity."""
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_round_half_up_non_finite(self, value):
        """Test that non-finite values raise ValueError."""
        with pytest.raises(ValueError):
            round_half_up(value)

    def test_clamp(self):
        """Test basic clamping."""
        assert clamp(5, 0, 10) == 5
        assert clamp(-1, 0, 10) == 0
        assert clamp(11, 0, 10) == 10


class TestClampProperties:
    """Monotonicity, idempotence and bounds of every clamp."""

    @pytest.mark.parametrize("fn, low, high", CLAMPS)
    def test_results_within_bounds(self, fn, low, high):
        """Test that every result lies in [low, high]."""
        for value in SAMPLES:
            assert low <= fn(value) <= high

    @pytest.mark.parametrize("fn, low, high", CLAMPS)
    def test_monotonic(self, fn, low, high):
        """Test that a larger input never gives a smaller output."""
        results = [fn(value) for value in sorted(SAMPLES)]
        assert results == sorted(results)

    @pytest.mark.parametrize("fn, low, high", CLAMPS)
    def test_idempotent(self, fn, low, high):
        """Test that clamping twice equals clamping once."""
        for value in SAMPLES:
            assert fn(fn(value)) == fn(value)

    @pytest.mark.parametrize("fn, low, high", CLAMPS)
    def test_infinity_maps_to_bounds(self, fn, low, high):
        """Test that infinite inputs clamp to the bounds instead of overflowing."""
        assert fn(math.inf) == high
        assert fn(-math.inf) == low

    @pytest.mark.parametrize("fn, low, high", CLAMPS)
    def test_nan_rejected(self, fn, low, high):
        """Test that NaN has no clamped value."""
        with pytest.raises(ValueError):
            fn(math.nan)

    def test_specific_values(self):
        """Test a few concrete clamp results."""
        assert clamp_padding_size(12.5) == 13
        assert clamp_watermark_size(10) == 20
        assert clamp_watermark_opacity(150) == 100
        assert clamp_dimension(0) == 1


class TestProportionalSizing:
    """Tests for aspect-preserving width/height helpers."""

    def test_proportional_height(self):
        """Test height for a new width."""
        assert calculate_proportional_height(640, 1280, 720) == 360
        assert calculate_proportional_height(100, 3, 2) == 67

    def test_proportional_width(self):
        """Test width for a new height."""
        assert calculate_proportional_width(360, 1280, 720) == 640

    def test_zero_original_dimension(self):
        """Test that zero-sized originals do not divide by zero."""
        assert calculate_proportional_height(100, 0, 50) == 50
        assert calculate_proportional_width(100, 50, 0) == 50
