"""
Color parsing and formatting.

Colors arrive from the settings panels as strings in either hex
(``#RGB``, ``#RGBA``, ``#RRGGBB``, ``#RRGGBBAA``) or functional
(``rgb(r, g, b)`` / ``rgba(r, g, b, a)``) notation. Parsing never raises:
an unparseable color is reported as ``None`` so callers can treat it as a
validation state.
"""

import re
from typing import Optional, Tuple

from .clamps import clamp, round_half_up
from .models import RGBAColor

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_RGBA_PATTERN = re.compile(
    r"rgba?\s*\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*(\d*\.?\d+)\s*)?\)",
    re.IGNORECASE,
)


def parse_hex_color(value: str) -> Optional[RGBAColor]:
    """
    Parse a hex color string.

    Args:
        value: Color such as "#fff", "#ffff", "#ffffff" or "#ffffffff"

    Returns:
        Parsed color, or None if the string is not valid hex
    """
    digits = value[1:] if value.startswith("#") else value
    if not digits or not _HEX_DIGITS.fullmatch(digits):
        return None

    if len(digits) in (3, 4):
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) not in (6, 8):
        return None

    channels = [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
    if len(channels) == 3:
        channels.append(255)
    r, g, b, a = channels
    return RGBAColor(r=r, g=g, b=b, a=a)


def parse_rgba_color(value: str) -> Optional[RGBAColor]:
    """
    Parse an ``rgb()`` or ``rgba()`` color string.

    The alpha component is a float in [0, 1] and is stored as an 8-bit
    channel (``round(a * 255)``). Any channel out of range yields None.
    """
    match = _RGBA_PATTERN.fullmatch(value)
    if not match:
        return None

    r, g, b = (int(match.group(i)) for i in (1, 2, 3))
    alpha_text = match.group(4)
    if alpha_text is None:
        a = 255
    else:
        alpha = float(alpha_text)
        if alpha > 1:
            return None
        a = round_half_up(alpha * 255)

    if any(channel > 255 for channel in (r, g, b)):
        return None
    return RGBAColor(r=r, g=g, b=b, a=a)


def parse_color(value: str) -> Optional[RGBAColor]:
    """Parse any supported color string, returning None when it is not a color."""
    if not isinstance(value, str):
        return None

    trimmed = value.strip()
    if trimmed.startswith("#"):
        return parse_hex_color(trimmed)
    if trimmed.lower().startswith("rgb"):
        return parse_rgba_color(trimmed)
    return None


def _channel(value: float, high: int = 255) -> int:
    return int(clamp(round_half_up(value), 0, high))


def format_hex(color: RGBAColor) -> str:
    """Format as uppercase ``#RRGGBB``, or ``#RRGGBBAA`` when not fully opaque."""
    r, g, b, a = (_channel(c) for c in (color.r, color.g, color.b, color.a))
    if a == 255:
        return f"#{r:02X}{g:02X}{b:02X}"
    return f"#{r:02X}{g:02X}{b:02X}{a:02X}"


def format_rgba(color: RGBAColor) -> str:
    """Format as ``rgba(r, g, b, a)`` with alpha in [0, 1]."""
    r, g, b = (_channel(c) for c in (color.r, color.g, color.b))
    alpha = clamp(color.a / 255, 0, 1)
    return f"rgba({r}, {g}, {b}, {alpha:g})"


def colors_equal(first: str, second: str) -> bool:
    """Compare two color strings by their parsed channels."""
    a = parse_color(first)
    b = parse_color(second)
    if a is None or b is None:
        return False
    return a == b


def is_valid_color(value: str) -> bool:
    return parse_color(value) is not None


def hex_to_rgba(value: str) -> Optional[str]:
    color = parse_hex_color(value)
    return format_rgba(color) if color else None


def rgba_to_hex(value: str) -> Optional[str]:
    color = parse_rgba_color(value)
    return format_hex(color) if color else None


def to_pil(color: RGBAColor) -> Tuple[int, int, int, int]:
    """Color as the RGBA tuple Pillow drawing calls expect."""
    return (color.r, color.g, color.b, color.a)


def blend_over(top: RGBAColor, bottom: RGBAColor) -> RGBAColor:
    """Source-over composite of top onto an opaque bottom color."""
    alpha = top.a / 255
    r, g, b = (
        _channel(t * alpha + u * (1 - alpha))
        for t, u in ((top.r, bottom.r), (top.g, bottom.g), (top.b, bottom.b))
    )
    return RGBAColor(r=r, g=g, b=b, a=bottom.a)
