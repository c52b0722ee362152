"""
Composition pipeline.

Combines a source bitmap with the optional padding, browser frame and
watermark effects into one final image. Layers are drawn back to front:

1. background fill (padding color, or white when padding is off)
2. frame header and source image, the header above the image or, for
   ``url_bottom``, below it
3. watermark, over everything else

The final size and every layer offset come from
``calculate_final_dimensions``, which needs no rendering and always agrees
with the composed bitmap.
"""

import asyncio
from contextlib import ExitStack
from datetime import date
from typing import Optional

from PIL import Image

from .exceptions import CompositionError, effect_error_handler, with_error_handling
from .frame import calculate_frame_header_height, generate_frame
from .image_utils import (
    EncodedImage,
    decode_image_async,
    decode_source_async,
    image_to_data_url,
    to_thread_closing,
)
from .logging_config import get_logger
from .models import BrowserFrameConfig, ExportConfig, ExportLayout, ExportResult, FrameStyle
from .padding import apply_padding, effective_padding_size
from .surface import open_surface
from .watermark import apply_watermark


def calculate_final_dimensions(
    image_width: int, image_height: int, config: Optional[ExportConfig] = None
) -> ExportLayout:
    """
    Final canvas size and layer offsets for a source of the given size.

    Args:
        image_width: Source bitmap width
        image_height: Source bitmap height
        config: Export settings (None means no effects)

    Returns:
        ExportLayout with the canvas size, padding and header sizes, and the
        top-left corners of the source image and frame header
    """
    config = config or ExportConfig()
    frame = config.browser_frame

    padding_size = effective_padding_size(config.padding)
    frame_header_height = calculate_frame_header_height(frame)

    image_x = image_y = padding_size
    frame_x = frame_y = None
    if frame is not None:
        frame_x = padding_size
        if frame.style is FrameStyle.URL_BOTTOM:
            frame_y = padding_size + image_height
        else:
            frame_y = padding_size
            image_y = padding_size + frame_header_height

    return ExportLayout(
        width=image_width + 2 * padding_size,
        height=image_height + frame_header_height + 2 * padding_size,
        padding_size=padding_size,
        frame_header_height=frame_header_height,
        image_x=image_x,
        image_y=image_y,
        frame_x=frame_x,
        frame_y=frame_y,
    )


def render_frame_header(
    width: int, config: BrowserFrameConfig, today: Optional[date] = None
) -> Image.Image:
    """Rasterize the frame header, reporting failures as EffectDecodeError."""
    with effect_error_handler("browser_frame"):
        return generate_frame(width, config, today)


async def compose(
    source: EncodedImage,
    config: Optional[ExportConfig] = None,
    *,
    today: Optional[date] = None,
) -> ExportResult:
    """
    Compose the final export image.

    Decodes run one after another (source, frame header, watermark) and
    each result is drawn before the next decode starts. Every intermediate
    image and the drawing surface are released when this returns, raises or
    is cancelled.

    Args:
        source: Encoded PNG/JPEG as bytes or a data URL
        config: Export settings (None means no effects)
        today: Date printed in the frame header when include_date is set

    Returns:
        ExportResult with the bitmap, its data URL and its dimensions

    Raises:
        SourceDecodeError: The source cannot be decoded
        EffectDecodeError: The frame header or watermark cannot be rasterized
        RenderSurfaceUnavailable: No drawing surface of the final size
        ConfigValidationError: A color in the config is malformed
    """
    config = config or ExportConfig()
    logger = get_logger("pipeline")

    with ExitStack() as stack:
        source_image = await decode_source_async(source)
        stack.callback(source_image.close)

        layout = calculate_final_dimensions(source_image.width, source_image.height, config)
        logger.debug(
            f"Composing {source_image.width}x{source_image.height} -> "
            f"{layout.width}x{layout.height} (padding={layout.padding_size}, "
            f"frame_header={layout.frame_header_height})"
        )

        surface = stack.enter_context(open_surface(layout.width, layout.height))
        apply_padding(surface, config.padding)

        frame = config.browser_frame
        if frame is not None and layout.frame_y is not None:
            header = await to_thread_closing(
                render_frame_header, source_image.width, frame, today
            )
            stack.callback(header.close)
            if header.height != layout.frame_header_height:
                raise CompositionError(
                    f"Frame header is {header.height}px, expected {layout.frame_header_height}px"
                )

            if frame.style is FrameStyle.URL_BOTTOM:
                surface.draw_image(source_image, (layout.image_x, layout.image_y))
                surface.draw_image(header, (layout.frame_x, layout.frame_y))
            else:
                surface.draw_image(header, (layout.frame_x, layout.frame_y))
                surface.draw_image(source_image, (layout.image_x, layout.image_y))
        else:
            surface.draw_image(source_image, (layout.image_x, layout.image_y))

        watermark = config.watermark
        if watermark is not None:
            if not watermark.has_image:
                logger.warning("Watermark is enabled but has no image data; skipping it")
            else:
                with effect_error_handler("watermark"):
                    overlay = await decode_image_async(watermark.image_data)
                stack.callback(overlay.close)
                with effect_error_handler("watermark"):
                    box = apply_watermark(surface, overlay, watermark)
                logger.debug(f"Watermark drawn at {box}")

        bitmap = surface.finalize()

    if bitmap.size != layout.size:
        raise CompositionError(
            f"Composed {bitmap.width}x{bitmap.height}, expected {layout.width}x{layout.height}"
        )

    try:
        data_url = image_to_data_url(bitmap, config.format, config.quality)
    except (OSError, ValueError) as exc:
        raise CompositionError(f"Failed to encode {config.format}: {exc}") from exc

    return ExportResult(
        bitmap=bitmap,
        data_url=data_url,
        width=layout.width,
        height=layout.height,
        format=config.format,
    )


@with_error_handling
def compose_sync(
    source: EncodedImage,
    config: Optional[ExportConfig] = None,
    *,
    today: Optional[date] = None,
) -> ExportResult:
    """
    Blocking wrapper around compose().

    Must not be called from a running event loop; await compose() there.
    """
    return asyncio.run(compose(source, config, today=today))
