"""Core utilities and shared components for the screenshot export pipeline."""

from .colors import format_hex, format_rgba, parse_color
from .exceptions import (
    ClipboardError,
    CompositionError,
    ConfigValidationError,
    DeliveryError,
    DownloadError,
    EffectDecodeError,
    RenderSurfaceUnavailable,
    ScreenshotExportError,
    SourceDecodeError,
    effect_error_handler,
    with_error_handling,
)
from .logging_config import get_logger, setup_logger
from .models import (
    BrowserFrameConfig,
    ExportConfig,
    ExportLayout,
    ExportResult,
    FrameStyle,
    PaddingConfig,
    RGBAColor,
    WatermarkConfig,
    WatermarkPosition,
)
from .pipeline import calculate_final_dimensions, compose, compose_sync

__all__ = [
    "BrowserFrameConfig",
    "ExportConfig",
    "ExportLayout",
    "ExportResult",
    "FrameStyle",
    "PaddingConfig",
    "RGBAColor",
    "WatermarkConfig",
    "WatermarkPosition",
    "calculate_final_dimensions",
    "compose",
    "compose_sync",
    "format_hex",
    "format_rgba",
    "parse_color",
    "setup_logger",
    "get_logger",
    "ScreenshotExportError",
    "CompositionError",
    "ConfigValidationError",
    "SourceDecodeError",
    "EffectDecodeError",
    "RenderSurfaceUnavailable",
    "DeliveryError",
    "ClipboardError",
    "DownloadError",
    "with_error_handling",
    "effect_error_handler",
]
