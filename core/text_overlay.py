from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from core.config import (
    DEFAULT_TEXT_BACKGROUND,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_FONT,
    DEFAULT_TEXT_SIZE,
    TEXT_PADDING,
)
from core.geometry import Point, Rect, Size

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]

_MEASURE_DRAW = ImageDraw.Draw(Image.new("L", (1, 1)))


@dataclass(frozen=True)
class TextOverlayState:
    text: str = ""
    font: str = DEFAULT_TEXT_FONT
    size: float = DEFAULT_TEXT_SIZE
    color: RGBA = DEFAULT_TEXT_COLOR
    background: RGBA = DEFAULT_TEXT_BACKGROUND
    # Display-space center of the box; None until the editor knows its layout
    anchor: Optional[Point] = None

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


@lru_cache(maxsize=64)
def load_font(name: str, size: int) -> ImageFont.FreeTypeFont:
    size = max(1, int(size))
    try:
        return ImageFont.truetype(name, size)
    except OSError:
        logger.warning("Font %r not found, using Pillow default", name)
        return ImageFont.load_default(size=size)


def text_extent(text: str, font: ImageFont.FreeTypeFont) -> Tuple[float, float, float, float]:
    """(left, top, width, height) of the inked text when drawn at (0, 0)."""
    l, t, r, b = _MEASURE_DRAW.multiline_textbbox((0, 0), text, font=font)
    return (float(l), float(t), float(r - l), float(b - t))


def measure_text(text: str, font_name: str, size: float) -> Size:
    if not text:
        return Size(0.0, 0.0)
    _, _, w, h = text_extent(text, load_font(font_name, int(round(size))))
    return Size(w, h)


def estimate_text_box(overlay: TextOverlayState) -> Size:
    """Rendered text size plus the badge padding on both sides."""
    text = measure_text(overlay.text, overlay.font, overlay.size)
    return Size(text.width + 2 * TEXT_PADDING, text.height + 2 * TEXT_PADDING)


def _clamp_axis(value: float, extent: float, lo: float, hi: float) -> float:
    half = extent * 0.5
    if extent > hi - lo:
        # Oversized: inverted range, box edges may not both leave the image
        low, high = hi - half, lo + half
    else:
        low, high = lo + half, hi - half
    return max(low, min(high, value))


def clamp_anchor(location: Point, box_size: Size, display_rect: Rect) -> Optional[Point]:
    """Clamp a box center against the image display rect, per axis.

    Returns None if the result is not finite.
    """
    if not location.is_finite:
        return None
    x = _clamp_axis(float(location.x), float(box_size.width), display_rect.min_x, display_rect.max_x)
    y = _clamp_axis(float(location.y), float(box_size.height), display_rect.min_y, display_rect.max_y)
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return Point(x, y)


def centered_anchor(display_rect: Rect) -> Point:
    return Point(display_rect.mid_x, display_rect.mid_y)


def move_anchor(overlay: TextOverlayState, location: Point, display_rect: Rect) -> TextOverlayState:
    anchor = clamp_anchor(location, estimate_text_box(overlay), display_rect)
    if anchor is None:
        return overlay
    return replace(overlay, anchor=anchor)
