"""Shared data models for the screenshot export pipeline."""

from enum import Enum
from typing import Any, Literal, Optional, Union

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .clamps import clamp_padding_size, clamp_watermark_opacity, clamp_watermark_size

DEFAULT_BACKGROUND = "#ffffff"
DEFAULT_QUALITY = 0.92

ImageFormat = Literal["image/png", "image/jpeg"]


class FrameStyle(str, Enum):
    """Browser frame header styles."""

    MAC = "mac"
    WINDOWS = "windows"
    URL_TOP = "url_top"
    URL_BOTTOM = "url_bottom"


class WatermarkPosition(str, Enum):
    """Anchor points for the watermark overlay."""

    TOP_LEFT = "top_left"
    TOP_RIGHT = "top_right"
    CENTER = "center"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


class RGBAColor(BaseModel):
    """A color with 8-bit channels."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)
    a: int = Field(default=255, ge=0, le=255)


def _as_number(value: Any) -> float:
    try:
        return float(value)
    except TypeError as exc:
        raise ValueError(f"Expected a number, got {value!r}") from exc


def _require_color(value: str) -> str:
    from .colors import parse_color

    if parse_color(value) is None:
        raise ValueError(f"Invalid color: {value!r}")
    return value


class PaddingConfig(BaseModel):
    """Uniform colored border around the whole composition."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    color: str = DEFAULT_BACKGROUND
    size: int = 20

    @field_validator("size", mode="before")
    @classmethod
    def _clamp_size(cls, value: Any) -> int:
        return clamp_padding_size(_as_number(value))

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        return _require_color(value)


class BrowserFrameConfig(BaseModel):
    """Simulated browser chrome drawn above or below the screenshot."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    style: FrameStyle = FrameStyle.MAC
    include_url: bool = True
    include_date: bool = False
    url: str = ""


class WatermarkConfig(BaseModel):
    """Translucent overlay image placed at a fixed anchor."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    # Data URL or raw encoded image bytes; empty means "nothing to draw"
    image_data: Union[str, bytes] = ""
    position: WatermarkPosition = WatermarkPosition.BOTTOM_RIGHT
    size: int = 100
    opacity: int = 100

    @field_validator("size", mode="before")
    @classmethod
    def _clamp_size(cls, value: Any) -> int:
        return clamp_watermark_size(_as_number(value))

    @field_validator("opacity", mode="before")
    @classmethod
    def _clamp_opacity(cls, value: Any) -> int:
        return clamp_watermark_opacity(_as_number(value))

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)


class ExportConfig(BaseModel):
    """
    Everything the pipeline needs besides the source bitmap.

    Effect configs are stored as a tagged variant: an effect is either
    ``None`` (disabled) or a config whose ``enabled`` flag is True. Configs
    passed in with ``enabled=False`` (or padding with size 0) are dropped on
    construction, so the details of a disabled effect are never consulted.
    """

    model_config = ConfigDict(frozen=True)

    padding: Optional[PaddingConfig] = None
    browser_frame: Optional[BrowserFrameConfig] = None
    watermark: Optional[WatermarkConfig] = None
    format: ImageFormat = "image/png"
    quality: float = Field(default=DEFAULT_QUALITY, ge=0.0, le=1.0)

    @field_validator("padding")
    @classmethod
    def _active_padding(cls, value: Optional[PaddingConfig]) -> Optional[PaddingConfig]:
        if value is None or not value.enabled or value.size <= 0:
            return None
        return value

    @field_validator("browser_frame")
    @classmethod
    def _active_frame(
        cls, value: Optional[BrowserFrameConfig]
    ) -> Optional[BrowserFrameConfig]:
        if value is None or not value.enabled:
            return None
        return value

    @field_validator("watermark")
    @classmethod
    def _active_watermark(
        cls, value: Optional[WatermarkConfig]
    ) -> Optional[WatermarkConfig]:
        if value is None or not value.enabled:
            return None
        return value


class ExportLayout(BaseModel):
    """Final canvas size and where each layer lands, computed without rendering."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    padding_size: int = 0
    frame_header_height: int = 0
    image_x: int = 0
    image_y: int = 0
    frame_x: Optional[int] = None
    frame_y: Optional[int] = None

    @property
    def size(self) -> tuple:
        return (self.width, self.height)


class ExportResult(BaseModel):
    """The composed image, its encoded form and its dimensions."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    bitmap: Image.Image
    data_url: str
    width: int
    height: int
    format: ImageFormat = "image/png"
