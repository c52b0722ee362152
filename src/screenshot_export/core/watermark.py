"""Watermark layer: scaling, anchoring and translucent compositing of an overlay."""

from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from PIL import Image
from pydantic import ValidationError

from .clamps import clamp_watermark_opacity, clamp_watermark_size, round_half_up
from .exceptions import ConfigValidationError
from .models import WatermarkConfig, WatermarkPosition
from .surface import RenderSurface

# Distance between the overlay and the canvas edge for corner anchors
WATERMARK_INSET = 10
# The overlay never exceeds this share of the final canvas in either axis
WATERMARK_MAX_CANVAS_FRACTION = 0.5


def calculate_watermark_position(
    position: Union[WatermarkPosition, str],
    canvas_width: int,
    canvas_height: int,
    watermark_width: int,
    watermark_height: int,
    inset: int = WATERMARK_INSET,
) -> Tuple[int, int]:
    """
    Top-left corner of the overlay for an anchor.

    Args:
        position: Anchor (top_left, top_right, center, bottom_left, bottom_right)
        canvas_width: Width of the final canvas
        canvas_height: Height of the final canvas
        watermark_width: Width of the scaled overlay
        watermark_height: Height of the scaled overlay
        inset: Margin from the canvas edge for corner anchors

    Returns:
        Coordinates (x, y) for the overlay
    """
    position = WatermarkPosition(position)
    right = canvas_width - watermark_width - inset
    bottom = canvas_height - watermark_height - inset

    if position is WatermarkPosition.TOP_LEFT:
        return inset, inset
    if position is WatermarkPosition.TOP_RIGHT:
        return right, inset
    if position is WatermarkPosition.CENTER:
        return (canvas_width - watermark_width) // 2, (canvas_height - watermark_height) // 2
    if position is WatermarkPosition.BOTTOM_LEFT:
        return inset, bottom
    return right, bottom


def calculate_watermark_dimensions(
    original_width: int,
    original_height: int,
    size_percent: float,
    max_width: Optional[float] = None,
    max_height: Optional[float] = None,
) -> Tuple[int, int]:
    """
    Scaled overlay size preserving the native aspect ratio.

    The overlay is first scaled by size_percent (clamped to 20-200), then
    shrunk uniformly to fit max_width / max_height when given.
    """
    scale = clamp_watermark_size(size_percent) / 100
    width = original_width * scale
    height = original_height * scale

    if max_width and width > max_width:
        ratio = max_width / width
        width = max_width
        height *= ratio
    if max_height and height > max_height:
        ratio = max_height / height
        height = max_height
        width *= ratio

    return max(1, round_half_up(width)), max(1, round_half_up(height))


def apply_opacity(image: Image.Image, opacity_percent: float) -> Image.Image:
    """Copy of image with its alpha channel scaled by opacity_percent / 100."""
    opacity = clamp_watermark_opacity(opacity_percent) / 100
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    if opacity >= 1:
        return rgba.copy()

    pixels = np.array(rgba, dtype=np.float32)
    pixels[..., 3] = np.floor(pixels[..., 3] * opacity + 0.5)
    return Image.fromarray(pixels.astype(np.uint8), "RGBA")


def prepare_watermark(
    overlay: Image.Image, config: WatermarkConfig, canvas_width: int, canvas_height: int
) -> Tuple[Image.Image, Tuple[int, int]]:
    """Scaled, faded overlay and the position it should be drawn at."""
    width, height = calculate_watermark_dimensions(
        overlay.width,
        overlay.height,
        config.size,
        canvas_width * WATERMARK_MAX_CANVAS_FRACTION,
        canvas_height * WATERMARK_MAX_CANVAS_FRACTION,
    )
    scaled = overlay.convert("RGBA").resize((width, height), Image.Resampling.LANCZOS)
    faded = apply_opacity(scaled, config.opacity)
    scaled.close()

    position = calculate_watermark_position(
        config.position, canvas_width, canvas_height, width, height
    )
    return faded, position


def apply_watermark(
    surface: RenderSurface, overlay: Image.Image, config: WatermarkConfig
) -> Tuple[int, int, int, int]:
    """
    Draw the overlay onto the surface; opacity affects only the overlay.

    Returns:
        The (x, y, width, height) box the overlay was drawn into
    """
    faded, (x, y) = prepare_watermark(overlay, config, surface.width, surface.height)
    try:
        surface.draw_image(faded, (x, y))
        return x, y, faded.width, faded.height
    finally:
        faded.close()


def validate_watermark_config(config: Dict[str, Any]) -> WatermarkConfig:
    """
    Build a WatermarkConfig from partial settings, applying defaults.

    Raises:
        ConfigValidationError: If a value cannot be interpreted
    """
    values = {
        "enabled": config.get("enabled", False),
        "image_data": config.get("image_data", ""),
        "position": config.get("position", WatermarkPosition.BOTTOM_RIGHT),
        "size": config.get("size", 100),
        "opacity": config.get("opacity", 100),
    }
    try:
        return WatermarkConfig(**values)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid watermark config: {exc}") from exc


def watermark_config_preserves_settings(
    original: WatermarkConfig, stored: WatermarkConfig
) -> bool:
    return original.model_dump() == stored.model_dump()
