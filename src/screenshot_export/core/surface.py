"""
Explicit drawing surfaces.

A surface is created at a fixed size, passed to each draw step, read out
with ``finalize()`` and released. ``open_surface`` guarantees the release
on every exit path, including exceptions and task cancellation.
"""

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from PIL import Image

from .exceptions import RenderSurfaceUnavailable

# Largest side a browser canvas accepts
MAX_SURFACE_SIDE = 32767

Fill = Tuple[int, int, int, int]


class RenderSurface:
    """An RGBA drawing surface with source-over compositing."""

    def __init__(self, image: Image.Image):
        self._image: Optional[Image.Image] = image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def released(self) -> bool:
        return self._image is None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RenderSurfaceUnavailable("Surface has already been released")
        return self._image

    def fill(self, color: Fill) -> None:
        """Replace every pixel with color."""
        self.image.paste(color, (0, 0, self.width, self.height))

    def draw_image(self, layer: Image.Image, position: Tuple[int, int] = (0, 0)) -> None:
        """
        Composite layer over the surface with its top-left corner at position.

        Parts of the layer falling outside the surface are clipped.
        """
        if layer.mode != "RGBA":
            layer = layer.convert("RGBA")

        x, y = position
        if (x, y) == (0, 0) and layer.size == self.size:
            placed = layer
        else:
            placed = Image.new("RGBA", self.size, (0, 0, 0, 0))
            placed.paste(layer, (x, y))

        previous = self.image
        self._image = Image.alpha_composite(previous, placed)
        previous.close()
        if placed is not layer:
            placed.close()

    def finalize(self) -> Image.Image:
        """Copy of the surface pixels; the surface stays usable until released."""
        return self.image.copy()

    def release(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None


def create_surface(width: int, height: int, fill: Fill = (0, 0, 0, 0)) -> RenderSurface:
    """
    Allocate a surface of width x height pre-filled with fill.

    Raises:
        RenderSurfaceUnavailable: If the size is not drawable or allocation fails
    """
    if width <= 0 or height <= 0:
        raise RenderSurfaceUnavailable(f"Invalid surface size {width}x{height}")
    if width > MAX_SURFACE_SIDE or height > MAX_SURFACE_SIDE:
        raise RenderSurfaceUnavailable(
            f"Surface {width}x{height} exceeds the {MAX_SURFACE_SIDE}px limit"
        )

    try:
        image = Image.new("RGBA", (width, height), fill)
    except (MemoryError, ValueError) as exc:
        raise RenderSurfaceUnavailable(
            f"Could not allocate {width}x{height} surface: {exc}"
        ) from exc
    return RenderSurface(image)


@contextmanager
def open_surface(
    width: int, height: int, fill: Fill = (0, 0, 0, 0)
) -> Iterator[RenderSurface]:
    """Scoped surface that is released when the block exits."""
    surface = create_surface(width, height, fill)
    try:
        yield surface
    finally:
        surface.release()
