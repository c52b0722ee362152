"""Numeric clamps and proportional sizing helpers."""

import math
from typing import Union

Number = Union[int, float]

PADDING_MIN_SIZE = 0
PADDING_MAX_SIZE = 200

WATERMARK_MIN_SIZE = 20
WATERMARK_MAX_SIZE = 200
WATERMARK_MIN_OPACITY = 0
WATERMARK_MAX_OPACITY = 100

MIN_DIMENSION = 1
MAX_DIMENSION = 10000


def round_half_up(value: Number) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    if not math.isfinite(value):
        raise ValueError(f"Cannot round non-finite value: {value!r}")
    return int(math.floor(value + 0.5))


def clamp(value: Number, low: Number, high: Number) -> Number:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def _clamp_rounded(value: Number, low: int, high: int) -> int:
    # Clamping first keeps +/-inf inside the bounds; NaN has no order.
    if math.isnan(value):
        raise ValueError("Cannot clamp NaN")
    return round_half_up(clamp(value, low, high))


def clamp_padding_size(value: Number) -> int:
    """Round and clamp a padding size to [0, 200] pixels."""
    return _clamp_rounded(value, PADDING_MIN_SIZE, PADDING_MAX_SIZE)


def clamp_watermark_size(value: Number) -> int:
    """Round and clamp a watermark size to [20, 200] percent."""
    return _clamp_rounded(value, WATERMARK_MIN_SIZE, WATERMARK_MAX_SIZE)


def clamp_watermark_opacity(value: Number) -> int:
    """Round and clamp a watermark opacity to [0, 100] percent."""
    return _clamp_rounded(value, WATERMARK_MIN_OPACITY, WATERMARK_MAX_OPACITY)


def clamp_dimension(value: Number) -> int:
    """Round and clamp an output dimension to [1, 10000] pixels."""
    return _clamp_rounded(value, MIN_DIMENSION, MAX_DIMENSION)


def calculate_proportional_height(
    new_width: Number, original_width: Number, original_height: Number
) -> int:
    """Height matching new_width at the original aspect ratio."""
    if original_width == 0:
        return int(original_height)
    return round_half_up(new_width * original_height / original_width)


def calculate_proportional_width(
    new_height: Number, original_width: Number, original_height: Number
) -> int:
    """Width matching new_height at the original aspect ratio."""
    if original_height == 0:
        return int(original_width)
    return round_half_up(new_height * original_width / original_height)
