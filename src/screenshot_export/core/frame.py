"""
Browser frame header rendering.

A frame header is described as a ``FrameScene``: a fixed-size list of typed
draw commands (rectangles, circles, lines and text). ``rasterize_scene``
turns the scene into an RGBA image whose height always equals
``get_frame_header_height`` for the same style and URL-bar setting, which is
what lets the pipeline reserve space before anything is drawn.
"""

from dataclasses import dataclass, field
from datetime import date
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont
from pydantic import ValidationError

from .clamps import round_half_up
from .colors import blend_over, parse_color, to_pil
from .exceptions import ConfigValidationError
from .models import BrowserFrameConfig, FrameStyle, RGBAColor

RGBA = Tuple[int, int, int, int]

MAX_URL_LENGTH = 50
DEFAULT_URL = "https://example.com"

FRAME_DIMENSIONS: Dict[str, Dict[str, int]] = {
    "mac": {
        "header_height": 38,
        "button_size": 12,
        "button_spacing": 8,
        "button_margin_left": 12,
        "url_bar_height": 28,
        "url_bar_margin": 8,
        "url_bar_radius": 6,
        "border_radius": 8,
    },
    "windows": {
        "header_height": 32,
        "button_width": 46,
        "button_height": 32,
        "url_bar_height": 28,
        "url_bar_margin": 8,
        "url_bar_radius": 4,
        "border_radius": 0,
    },
}

FRAME_COLORS: Dict[str, Dict[str, str]] = {
    "mac": {
        "background": "#e8e8e8",
        "border": "#d0d0d0",
        "close_button": "#ff5f57",
        "minimize_button": "#febc2e",
        "maximize_button": "#28c840",
        "button_border": "rgba(0, 0, 0, 0.1)",
        "url_bar_background": "#ffffff",
        "url_bar_border": "#d0d0d0",
        "text": "#333333",
        "date_text": "#888888",
        "secure_icon": "#28c840",
    },
    "windows": {
        "background": "#f0f0f0",
        "border": "#d0d0d0",
        "close_button": "#e81123",
        "minimize_button": "#333333",
        "maximize_button": "#333333",
        "url_bar_background": "#ffffff",
        "url_bar_border": "#d0d0d0",
        "text": "#333333",
        "date_text": "#888888",
        "secure_icon": "#28c840",
    },
}

FONT_CANDIDATES = {
    "mac": ("Arial.ttf", "arial.ttf", "Helvetica.ttc", "DejaVuSans.ttf"),
    "windows": ("segoeui.ttf", "Arial.ttf", "arial.ttf", "DejaVuSans.ttf"),
}


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[RGBA] = None
    outline: Optional[RGBA] = None
    stroke_width: int = 1
    radius: float = 0


@dataclass(frozen=True)
class CircleCommand:
    cx: float
    cy: float
    radius: float
    fill: Optional[RGBA] = None
    outline: Optional[RGBA] = None
    stroke_width: int = 1


@dataclass(frozen=True)
class LineCommand:
    x1: float
    y1: float
    x2: float
    y2: float
    color: RGBA
    width: int = 1


@dataclass(frozen=True)
class TextCommand:
    """Text vertically centred on ``y``; ``align="end"`` right-aligns it at ``x``."""

    x: float
    y: float
    text: str
    font_size: int
    color: RGBA
    align: str = "start"
    fonts: Tuple[str, ...] = ()


DrawCommand = Union[RectCommand, CircleCommand, LineCommand, TextCommand]


@dataclass
class FrameScene:
    """Fixed-size vector description of one frame header."""

    width: int
    height: int
    base_style: str
    commands: List[DrawCommand] = field(default_factory=list)

    def of_type(self, kind: type) -> List[DrawCommand]:
        return [command for command in self.commands if isinstance(command, kind)]


def get_base_style(style: Union[FrameStyle, str]) -> str:
    """Only ``windows`` renders Windows chrome; url_top and url_bottom use mac."""
    return "windows" if FrameStyle(style) is FrameStyle.WINDOWS else "mac"


def resolve_show_url(style: Union[FrameStyle, str], include_url: bool) -> bool:
    """URL-bar styles always show the URL bar."""
    return FrameStyle(style) in (FrameStyle.URL_TOP, FrameStyle.URL_BOTTOM) or include_url


def get_frame_header_height(base_style: Union[FrameStyle, str], show_url: bool) -> int:
    """Pixel height of the header for a base style, with or without the URL bar."""
    dims = FRAME_DIMENSIONS[get_base_style(base_style)]
    url_bar = dims["url_bar_height"] + dims["url_bar_margin"] * 2 if show_url else 0
    return dims["header_height"] + url_bar


def calculate_frame_header_height(config: Optional[BrowserFrameConfig]) -> int:
    """Header height a frame config adds to the canvas (0 when disabled)."""
    if config is None or not config.enabled:
        return 0
    return get_frame_header_height(
        get_base_style(config.style), resolve_show_url(config.style, config.include_url)
    )


def truncate_url(url: Optional[str]) -> str:
    display_url = url or DEFAULT_URL
    if len(display_url) > MAX_URL_LENGTH:
        return display_url[:MAX_URL_LENGTH] + "..."
    return display_url


def format_frame_date(day: Optional[date] = None) -> str:
    """Locale-formatted date shown at the right of the URL bar."""
    return (day or date.today()).strftime("%x")


def _color(value: str) -> RGBAColor:
    color = parse_color(value)
    if color is None:
        raise ValueError(f"Invalid frame palette color: {value!r}")
    return color


def _palette(base_style: str) -> Dict[str, RGBA]:
    return {name: to_pil(_color(value)) for name, value in FRAME_COLORS[base_style].items()}


def _mac_buttons(palette: Dict[str, RGBA]) -> List[DrawCommand]:
    dims = FRAME_DIMENSIONS["mac"]
    size = dims["button_size"]
    radius = size / 2
    cy = (dims["header_height"] - size) / 2 + radius
    border = _color(FRAME_COLORS["mac"]["button_border"])

    commands: List[DrawCommand] = []
    for index, name in enumerate(("close_button", "minimize_button", "maximize_button")):
        left = dims["button_margin_left"] + index * (size + dims["button_spacing"])
        fill = _color(FRAME_COLORS["mac"][name])
        outline = to_pil(blend_over(border, fill))
        commands.append(
            CircleCommand(left + radius, cy, radius, fill=palette[name], outline=outline)
        )
    return commands


def _windows_buttons(width: int, palette: Dict[str, RGBA]) -> List[DrawCommand]:
    dims = FRAME_DIMENSIONS["windows"]
    button_w = dims["button_width"]
    mid_y = dims["button_height"] / 2
    close_x = width - button_w
    maximize_x = close_x - button_w
    minimize_x = maximize_x - button_w

    def centre(x: float) -> float:
        return x + button_w / 2

    return [
        LineCommand(
            centre(minimize_x) - 5, mid_y, centre(minimize_x) + 5, mid_y,
            palette["minimize_button"],
        ),
        RectCommand(
            centre(maximize_x) - 5, mid_y - 5, 10, 10,
            outline=palette["maximize_button"],
        ),
        LineCommand(
            centre(close_x) - 5, mid_y - 5, centre(close_x) + 5, mid_y + 5,
            palette["close_button"],
        ),
        LineCommand(
            centre(close_x) + 5, mid_y - 5, centre(close_x) - 5, mid_y + 5,
            palette["close_button"],
        ),
    ]


def _lock_icon(x: float, y: float, color: RGBA) -> List[DrawCommand]:
    # Padlock: rounded shackle outline above a solid body
    return [
        RectCommand(x + 5, y + 2, 7, 8, outline=color, stroke_width=2, radius=3),
        RectCommand(x + 3, y + 7, 11, 9, fill=color, radius=1),
    ]


def _url_bar(
    width: int,
    base_style: str,
    palette: Dict[str, RGBA],
    url: str,
    show_date: bool,
    today: Optional[date],
) -> List[DrawCommand]:
    dims = FRAME_DIMENSIONS[base_style]
    margin = dims["url_bar_margin"]
    bar_height = dims["url_bar_height"]
    bar_y = dims["header_height"] + margin
    text_y = bar_y + bar_height / 2
    fonts = FONT_CANDIDATES[base_style]

    commands: List[DrawCommand] = [
        RectCommand(
            margin, bar_y, width - margin * 2, bar_height,
            fill=palette["url_bar_background"],
            outline=palette["url_bar_border"],
            radius=dims["url_bar_radius"],
        ),
    ]
    commands.extend(_lock_icon(margin + 10, bar_y + 6, palette["secure_icon"]))
    commands.append(
        TextCommand(margin + 35, text_y, truncate_url(url), 12, palette["text"], fonts=fonts)
    )
    if show_date:
        commands.append(
            TextCommand(
                width - margin - 10, text_y, format_frame_date(today), 11,
                palette["date_text"], align="end", fonts=fonts,
            )
        )
    return commands


def build_frame_scene(
    width: int, config: BrowserFrameConfig, today: Optional[date] = None
) -> FrameScene:
    """
    Describe the frame header for a given content width.

    Args:
        width: Width of the content the header sits on, in pixels
        config: Frame settings; url_top/url_bottom resolve to mac chrome
            and always show the URL bar
        today: Date to print when include_date is set (defaults to today)

    Returns:
        Scene whose height equals get_frame_header_height for the config
    """
    if width <= 0:
        raise ValueError(f"Frame width must be positive, got {width}")

    base_style = get_base_style(config.style)
    show_url = resolve_show_url(config.style, config.include_url)
    height = get_frame_header_height(base_style, show_url)
    dims = FRAME_DIMENSIONS[base_style]
    palette = _palette(base_style)

    scene = FrameScene(width=width, height=height, base_style=base_style)
    scene.commands.append(
        RectCommand(0, 0, width, height, fill=palette["background"], radius=dims["border_radius"])
    )
    scene.commands.append(RectCommand(0, height - 1, width, 1, fill=palette["border"]))

    if base_style == "mac":
        scene.commands.extend(_mac_buttons(palette))
    else:
        scene.commands.extend(_windows_buttons(width, palette))

    if show_url:
        scene.commands.extend(
            _url_bar(width, base_style, palette, config.url, config.include_date, today)
        )
    return scene


@lru_cache(maxsize=32)
def load_font(size: int, candidates: Tuple[str, ...] = ()) -> ImageFont.ImageFont:
    """First installed font from candidates, else Pillow's bundled default."""
    for name in candidates:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _draw_rect(draw: ImageDraw.ImageDraw, command: RectCommand) -> None:
    if command.width <= 0 or command.height <= 0:
        return
    box = (
        command.x,
        command.y,
        command.x + command.width - 1,
        command.y + command.height - 1,
    )
    if command.radius > 0:
        draw.rounded_rectangle(
            box,
            radius=command.radius,
            fill=command.fill,
            outline=command.outline,
            width=command.stroke_width,
        )
    else:
        draw.rectangle(
            box, fill=command.fill, outline=command.outline, width=command.stroke_width
        )


def _draw_text(draw: ImageDraw.ImageDraw, command: TextCommand) -> None:
    font = load_font(command.font_size, command.fonts)
    left, top, right, bottom = draw.textbbox((0, 0), command.text, font=font)
    text_width = right - left
    x = command.x - left
    if command.align == "end":
        x = command.x - text_width - left
    y = command.y - (bottom - top) / 2 - top
    draw.text((round_half_up(x), round_half_up(y)), command.text, fill=command.color, font=font)


def rasterize_scene(scene: FrameScene) -> Image.Image:
    """Render a frame scene into a transparent RGBA image of exactly its size."""
    image = Image.new("RGBA", (scene.width, scene.height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)

    for command in scene.commands:
        if isinstance(command, RectCommand):
            _draw_rect(draw, command)
        elif isinstance(command, CircleCommand):
            r = command.radius
            draw.ellipse(
                (command.cx - r, command.cy - r, command.cx + r, command.cy + r),
                fill=command.fill,
                outline=command.outline,
                width=command.stroke_width,
            )
        elif isinstance(command, LineCommand):
            draw.line(
                (command.x1, command.y1, command.x2, command.y2),
                fill=command.color,
                width=command.width,
            )
        elif isinstance(command, TextCommand):
            _draw_text(draw, command)
        else:
            raise TypeError(f"Unknown draw command: {command!r}")

    return image


def generate_frame(
    width: int, config: BrowserFrameConfig, today: Optional[date] = None
) -> Image.Image:
    """Rasterized frame header for a content width."""
    return rasterize_scene(build_frame_scene(width, config, today))


def validate_browser_frame_config(config: Dict[str, Any]) -> BrowserFrameConfig:
    """
    Build a BrowserFrameConfig from partial settings, applying defaults.

    Raises:
        ConfigValidationError: If the style or another value is not recognised
    """
    values = {
        "enabled": config.get("enabled", False),
        "style": config.get("style", FrameStyle.MAC),
        "include_url": config.get("include_url", True),
        "include_date": config.get("include_date", False),
        "url": config.get("url") or "",
    }
    try:
        return BrowserFrameConfig(**values)
    except ValidationError as exc:
        raise ConfigValidationError(f"Invalid browser frame config: {exc}") from exc


def browser_frame_config_preserves_settings(
    original: BrowserFrameConfig, stored: BrowserFrameConfig
) -> bool:
    return (
        original.enabled == stored.enabled
        and original.style == stored.style
        and original.include_url == stored.include_url
        and original.include_date == stored.include_date
        and original.url == stored.url
    )
