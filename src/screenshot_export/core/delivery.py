"""
Delivery adapters: file download and clipboard copy of a finished export.

Delivery failures raise DeliveryError subclasses, never composition errors,
so a caller can retry delivery without recomposing the image.
"""

import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from PIL import Image
from pydantic import BaseModel

from .exceptions import DECODE_ERRORS, ClipboardError, DownloadError
from .image_utils import split_data_url
from .logging_config import get_logger
from .models import ExportResult, ImageFormat
from .protocols import ClipboardProtocol

Deliverable = Union[ExportResult, str]

EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
}


class DownloadResult(BaseModel):
    """Outcome of saving an export to disk."""

    success: bool
    path: Optional[Path] = None
    filename: str = ""
    size_bytes: int = 0


class CopyResult(BaseModel):
    """Outcome of copying an export to the clipboard."""

    success: bool
    size_bytes: int = 0


def generate_timestamp_filename(
    prefix: str = "screenshot",
    extension: str = "png",
    now: Optional[datetime] = None,
) -> str:
    """
    Filename with a UTC ISO-8601 timestamp, e.g. screenshot_2024-01-15T10-30-45.png.

    Colons and dots of the timestamp become dashes and it is cut to 19
    characters, dropping the milliseconds.
    """
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = moment.isoformat(timespec="milliseconds").replace(":", "-").replace(".", "-")
    return f"{prefix}_{stamp[:19]}.{extension}"


def generate_screenshot_filename(now: Optional[datetime] = None) -> str:
    """Local-time filename in the form screenshot_YYYY-MM-DD_HH-mm-ss.png."""
    moment = now or datetime.now()
    return moment.strftime("screenshot_%Y-%m-%d_%H-%M-%S.png")


def extension_for_format(format: ImageFormat) -> str:
    return EXTENSIONS[format]


def data_url_to_bytes(data_url: str) -> bytes:
    """
    Payload of an image data URL.

    Raises:
        ValueError: If the string is not a data URL carrying an image
    """
    if not data_url or not data_url.startswith("data:image/"):
        raise ValueError("Invalid image data URL")
    return split_data_url(data_url)[1]


def result_to_bytes(item: Deliverable) -> bytes:
    """Encoded image bytes of an ExportResult or image data URL."""
    data_url = item.data_url if isinstance(item, ExportResult) else item
    return data_url_to_bytes(data_url)


def download_image(
    item: Deliverable,
    directory: Union[str, Path] = ".",
    filename: Optional[str] = None,
) -> DownloadResult:
    """
    Save an export into directory.

    Args:
        item: ExportResult or image data URL
        directory: Target folder, created if missing
        filename: File name; defaults to a timestamped name matching the format

    Returns:
        DownloadResult describing the written file

    Raises:
        DownloadError: If the data is not an image or the file cannot be written
    """
    logger = get_logger("delivery")
    try:
        payload = result_to_bytes(item)
    except ValueError as exc:
        raise DownloadError(f"Download failed: {exc}") from exc

    if not filename:
        fmt = item.format if isinstance(item, ExportResult) else "image/png"
        filename = generate_timestamp_filename(extension=extension_for_format(fmt))

    target = Path(directory) / filename
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
    except OSError as exc:
        logger.error(f"Could not write {target}: {exc}")
        raise DownloadError(f"Download failed: {exc}") from exc

    logger.info(f"Saved export to {target} ({len(payload)} bytes)")
    return DownloadResult(success=True, path=target, filename=filename, size_bytes=len(payload))


def to_png_bytes(payload: bytes) -> bytes:
    """Re-encode any decodable image as PNG; PNG input is returned unchanged."""
    if payload.startswith(b"\x89PNG\r\n\x1a\n"):
        return payload
    with Image.open(io.BytesIO(payload)) as image:
        image.load()
        output_stream = io.BytesIO()
        image.save(output_stream, format="PNG")
    return output_stream.getvalue()


def copy_image_to_clipboard(item: Deliverable, clipboard: ClipboardProtocol) -> CopyResult:
    """
    Write an export to the clipboard as PNG, the format clipboards accept.

    Raises:
        ClipboardError: If the data is not an image or the clipboard rejects it
    """
    logger = get_logger("delivery")
    try:
        png_bytes = to_png_bytes(result_to_bytes(item))
    except DECODE_ERRORS as exc:
        raise ClipboardError(f"Cannot copy to clipboard: {exc}") from exc

    try:
        clipboard.write_image(png_bytes)
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Clipboard write failed: {exc}")
        raise ClipboardError(
            "Cannot copy to clipboard. Please try downloading instead."
        ) from exc

    return CopyResult(success=True, size_bytes=len(png_bytes))
