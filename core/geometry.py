"""Mapping between image pixel space and scaled-to-fit display space.

Display space: origin top-left, y grows downward (widget coordinates).
Pixel space:   origin bottom-left, y grows upward.

Every y-axis inversion between the two lives in this module. Pillow boxes
are top-left, so ``pixel_rect_to_image_box`` is the only way pixel rects
reach ``Image.crop``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return not (self.width > 0 and self.height > 0)


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width * 0.5

    @property
    def mid_y(self) -> float:
        return self.y + self.height * 0.5

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return not (self.width > 0 and self.height > 0)

    def with_origin(self, x: float, y: float) -> "Rect":
        return Rect(x, y, self.width, self.height)

    def contains_point(self, p: Point) -> bool:
        return self.min_x <= p.x <= self.max_x and self.min_y <= p.y <= self.max_y


EMPTY_RECT = Rect(0.0, 0.0, 0.0, 0.0)
ZERO_SCALE = Size(0.0, 0.0)


def _positive(*values: float) -> bool:
    return all(math.isfinite(v) and v > 0 for v in values)


def display_rect_for_image(image_size: Size, container_size: Size) -> Rect:
    """Aspect-preserving fit of ``image_size`` inside ``container_size``, centered.

    Returns ``EMPTY_RECT`` when either size has no area.
    """
    iw, ih = float(image_size.width), float(image_size.height)
    cw, ch = float(container_size.width), float(container_size.height)
    if not _positive(iw, ih, cw, ch):
        return EMPTY_RECT

    image_aspect = iw / ih
    container_aspect = cw / ch
    if image_aspect > container_aspect:
        # Width is the constraint
        w = cw
        h = cw / image_aspect
    else:
        h = ch
        w = ch * image_aspect

    return Rect((cw - w) * 0.5, (ch - h) * 0.5, w, h)


def pixel_scale(image_size: Size, display_rect: Rect) -> Size:
    """Pixels per display unit on each axis, or ``ZERO_SCALE`` for a degenerate rect."""
    if display_rect.is_empty or not _positive(display_rect.width, display_rect.height):
        return ZERO_SCALE
    sx = float(image_size.width) / display_rect.width
    sy = float(image_size.height) / display_rect.height
    if not _positive(sx, sy):
        return ZERO_SCALE
    return Size(sx, sy)


def scale_is_valid(scale: Size) -> bool:
    return _positive(scale.width, scale.height)


def pixel_to_display(pixel_rect: Rect, display_rect: Rect, scale: Size) -> Rect:
    """Pixel-space rect (bottom-left origin) -> display-space rect (top-left origin)."""
    if not scale_is_valid(scale):
        return EMPTY_RECT
    image_height = display_rect.height * scale.height
    return Rect(
        display_rect.x + pixel_rect.x / scale.width,
        display_rect.y + (image_height - pixel_rect.max_y) / scale.height,
        pixel_rect.width / scale.width,
        pixel_rect.height / scale.height,
    )


def display_to_pixel_delta(dx: float, dy: float, scale: Size) -> Tuple[float, float]:
    # Display-down is pixel-up
    return (dx * scale.width, -dy * scale.height)


def display_point_to_pixel(point: Point, display_rect: Rect, scale: Size) -> Point:
    """Display-space point -> pixel-space point (bottom-left origin)."""
    rel_x = point.x - display_rect.x
    rel_y = point.y - display_rect.y
    return Point(rel_x * scale.width, (display_rect.height - rel_y) * scale.height)


def pixel_rect_to_image_box(rect: Rect, image_height: float) -> Tuple[float, float, float, float]:
    """Pixel-space rect -> Pillow ``(left, top, right, bottom)`` box (top-left origin)."""
    top = image_height - rect.max_y
    return (rect.min_x, top, rect.max_x, top + rect.height)


def remap_point(point: Point, old_rect: Rect, new_rect: Rect) -> Point:
    """Keep a point at the same relative position when its display rect moves or resizes."""
    if old_rect.is_empty or new_rect.is_empty:
        return Point(new_rect.mid_x, new_rect.mid_y)
    u = (point.x - old_rect.x) / old_rect.width
    v = (point.y - old_rect.y) / old_rect.height
    return Point(new_rect.x + u * new_rect.width, new_rect.y + v * new_rect.height)
