"""Custom exceptions and error handling utilities for the export pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Iterator, TypeVar

from PIL import Image, UnidentifiedImageError

from .logging_config import get_logger


class ScreenshotExportError(Exception):
    """Base exception for all screenshot export errors."""


class CompositionError(ScreenshotExportError):
    """Error raised while composing the final image."""


class ConfigValidationError(CompositionError):
    """Error raised for malformed or out-of-range configuration values."""


class SourceDecodeError(CompositionError):
    """Error raised when the source bitmap cannot be decoded."""


class EffectDecodeError(CompositionError):
    """Error raised when a frame header or watermark cannot be rasterized."""

    def __init__(self, effect: str, message: str):
        super().__init__(f"{effect}: {message}")
        self.effect = effect


class RenderSurfaceUnavailable(CompositionError):
    """Error raised when a drawing surface cannot be allocated."""


class DeliveryError(ScreenshotExportError):
    """Error raised when a finished export cannot be delivered."""


class ClipboardError(DeliveryError):
    """Error raised when writing the image to the clipboard fails."""


class DownloadError(DeliveryError):
    """Error raised when saving the image to a file fails."""


# Errors Pillow raises for truncated, unknown or hostile image data
DECODE_ERRORS = (
    UnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
    MemoryError,
)


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function so unexpected failures surface as CompositionError."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("pipeline")
        try:
            return func(*args, **kwargs)
        except ScreenshotExportError:
            logger.error(f"Export error in {func.__name__}", exc_info=True)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise CompositionError(str(exc)) from exc

    return wrapper  # type: ignore[return-value]


@contextmanager
def effect_error_handler(effect: str) -> Iterator[None]:
    """Context manager turning decode/raster failures of an effect into EffectDecodeError."""
    try:
        yield
    except ScreenshotExportError:
        raise
    except DECODE_ERRORS as exc:
        raise EffectDecodeError(effect, str(exc) or type(exc).__name__) from exc
