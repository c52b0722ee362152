"""Image decoding, encoding and data-URL helpers."""

import asyncio
import base64
import binascii
import io
import threading
from typing import Any, Callable, Dict, Tuple, Union
from urllib.parse import unquote_to_bytes

from PIL import Image

from .clamps import clamp, round_half_up
from .exceptions import DECODE_ERRORS, SourceDecodeError
from .models import ImageFormat

EncodedImage = Union[str, bytes]

PIL_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
}


def split_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a ``data:`` URL into its media type and decoded payload.

    Args:
        data_url: URL such as "data:image/png;base64,iVBOR..."

    Returns:
        Tuple of (media type, payload bytes)

    Raises:
        ValueError: If the string is not a well-formed data URL
    """
    if not data_url.startswith("data:"):
        raise ValueError("Not a data URL")

    header, sep, payload = data_url[5:].partition(",")
    if not sep:
        raise ValueError("Data URL has no payload separator")

    params = header.split(";")
    media_type = params[0] or "text/plain"
    if "base64" in params[1:]:
        try:
            return media_type, base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 payload: {exc}") from exc
    return media_type, unquote_to_bytes(payload)


def to_image_bytes(data: EncodedImage) -> bytes:
    """Raw encoded bytes from either bytes or a data URL."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return split_data_url(data.strip())[1]


def decode_image(data: EncodedImage) -> Image.Image:
    """
    Decode an encoded image into a fully loaded RGBA image.

    Raises:
        Any of the Pillow decode errors; callers map them to the
        error type matching the image's role.
    """
    image_stream = io.BytesIO(to_image_bytes(data))
    with Image.open(image_stream) as image:
        image.load()
        return image.convert("RGBA")


def decode_source(data: EncodedImage) -> Image.Image:
    """Decode the source bitmap, raising SourceDecodeError on failure."""
    if not data:
        raise SourceDecodeError("Source image is empty")
    try:
        return decode_image(data)
    except DECODE_ERRORS as exc:
        raise SourceDecodeError(f"Failed to decode source image: {exc}") from exc


async def to_thread_closing(func: Callable[..., Image.Image], *args: Any) -> Image.Image:
    """
    Run an image-producing call in a worker thread.

    Cancelling the await cannot stop the thread, so an image it finishes
    after the caller has gone is closed instead of being left for the
    garbage collector.
    """
    lock = threading.Lock()
    state: Dict[str, Any] = {"abandoned": False, "image": None}

    def work() -> Image.Image:
        image = func(*args)
        with lock:
            if state["abandoned"]:
                image.close()
            else:
                state["image"] = image
        return image

    try:
        return await asyncio.to_thread(work)
    except asyncio.CancelledError:
        with lock:
            state["abandoned"] = True
            if state["image"] is not None:
                state["image"].close()
        raise


async def decode_image_async(data: EncodedImage) -> Image.Image:
    """Decode off the event loop; the caller awaits the single result."""
    return await to_thread_closing(decode_image, data)


async def decode_source_async(data: EncodedImage) -> Image.Image:
    return await to_thread_closing(decode_source, data)


def jpeg_quality(quality: float) -> int:
    """Map a [0, 1] quality to Pillow's JPEG scale."""
    return int(clamp(round_half_up(quality * 100), 1, 95))


def encode_image(
    image: Image.Image, format: ImageFormat = "image/png", quality: float = 0.92
) -> bytes:
    """
    Encode an image as PNG or JPEG.

    JPEG has no alpha channel, so it is dropped before encoding.
    """
    output_stream = io.BytesIO()
    pil_format = PIL_FORMATS[format]
    if pil_format == "JPEG":
        image.convert("RGB").save(
            output_stream, format=pil_format, quality=jpeg_quality(quality)
        )
    else:
        image.save(output_stream, format=pil_format)
    return output_stream.getvalue()


def to_data_url(payload: bytes, media_type: str = "image/png") -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def image_to_data_url(
    image: Image.Image, format: ImageFormat = "image/png", quality: float = 0.92
) -> str:
    return to_data_url(encode_image(image, format, quality), format)
