"""Padding layer: canvas growth and the backmost background fill."""

from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from .clamps import PADDING_MAX_SIZE, PADDING_MIN_SIZE, clamp_padding_size
from .colors import parse_color, to_pil
from .exceptions import ConfigValidationError
from .models import DEFAULT_BACKGROUND, PaddingConfig
from .surface import RenderSurface

clamp_size = clamp_padding_size


def effective_padding_size(config: Optional[PaddingConfig]) -> int:
    """Border width actually applied: 0 when padding is off or empty."""
    if config is None or not config.enabled or config.size <= 0:
        return 0
    return clamp_size(config.size)


def compute_padded_dimensions(
    width: int, height: int, config: Optional[PaddingConfig]
) -> Tuple[int, int]:
    """
    Size of the canvas once padding wraps an image of width x height.

    Args:
        width: Content width
        height: Content height
        config: Padding settings; None or disabled leaves the size unchanged

    Returns:
        Tuple of (padded width, padded height)
    """
    size = effective_padding_size(config)
    return width + 2 * size, height + 2 * size


def padding_fill_color(config: Optional[PaddingConfig]) -> Tuple[int, int, int, int]:
    """Background fill of the final canvas: the padding color, or white."""
    value = config.color if effective_padding_size(config) > 0 else DEFAULT_BACKGROUND
    color = parse_color(value)
    if color is None:
        raise ConfigValidationError(f"Invalid padding color: {value!r}")
    return to_pil(color)


def apply_padding(surface: RenderSurface, config: Optional[PaddingConfig]) -> None:
    """Fill the whole surface with the background; must run before any other layer."""
    surface.fill(padding_fill_color(config))


def validate_padding_config(config: Dict[str, Any]) -> PaddingConfig:
    """
    Build a PaddingConfig from partial settings, applying defaults.

    Missing keys fall back to disabled, white and 20px; sizes are clamped.

    Raises:
        ConfigValidationError: If the color or size cannot be interpreted
    """
    values = {
        "enabled": config.get("enabled", False),
        "color": config.get("color", DEFAULT_BACKGROUND),
        "size": config.get("size", 20),
    }
    try:
        return PaddingConfig(**values)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid padding config: {exc}") from exc


def padding_config_preserves_settings(original: PaddingConfig, stored: PaddingConfig) -> bool:
    return (
        original.enabled == stored.enabled
        and original.color == stored.color
        and original.size == stored.size
    )


def is_padding_size_valid(size: float) -> bool:
    return PADDING_MIN_SIZE <= size <= PADDING_MAX_SIZE
