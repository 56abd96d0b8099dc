"""Crop rectangle editing.

The rect lives in pixel space (bottom-left origin, see ``core.geometry``).
Drags are driven by the cumulative display-space translation since the
gesture began, applied to a snapshot taken at ``begin_drag``. Per-frame
deltas are never accumulated.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from PIL import Image

from core.config import DEFAULT_CROP_FRACTION, HANDLE_DIAMETER, HANDLE_HIT_SLOP, MIN_CROP_SIZE
from core.geometry import (
    EMPTY_RECT,
    Point,
    Rect,
    Size,
    display_to_pixel_delta,
    pixel_rect_to_image_box,
    pixel_scale,
    pixel_to_display,
    scale_is_valid,
)

logger = logging.getLogger(__name__)


class Handle(Enum):
    MOVE = "move"
    TOP_LEFT = "top_left"
    TOP = "top"
    TOP_RIGHT = "top_right"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def position(self) -> Tuple[float, float]:
        """Fractional position on the display-space crop frame (0,0 = top-left)."""
        return _HANDLE_POSITIONS[self]

    @property
    def moves_left(self) -> bool:
        return self in (Handle.TOP_LEFT, Handle.LEFT, Handle.BOTTOM_LEFT)

    @property
    def moves_right(self) -> bool:
        return self in (Handle.TOP_RIGHT, Handle.RIGHT, Handle.BOTTOM_RIGHT)

    @property
    def moves_top(self) -> bool:
        return self in (Handle.TOP_LEFT, Handle.TOP, Handle.TOP_RIGHT)

    @property
    def moves_bottom(self) -> bool:
        return self in (Handle.BOTTOM_LEFT, Handle.BOTTOM, Handle.BOTTOM_RIGHT)


_HANDLE_POSITIONS = {
    Handle.MOVE: (0.5, 0.5),
    Handle.TOP_LEFT: (0.0, 0.0),
    Handle.TOP: (0.5, 0.0),
    Handle.TOP_RIGHT: (1.0, 0.0),
    Handle.LEFT: (0.0, 0.5),
    Handle.RIGHT: (1.0, 0.5),
    Handle.BOTTOM_LEFT: (0.0, 1.0),
    Handle.BOTTOM: (0.5, 1.0),
    Handle.BOTTOM_RIGHT: (1.0, 1.0),
}

RESIZE_HANDLES = tuple(h for h in Handle if h is not Handle.MOVE)


@dataclass(frozen=True)
class CropDrag:
    handle: Handle
    start_rect: Rect


@dataclass(frozen=True)
class CropState:
    image_size: Size
    rect: Rect
    drag: Optional[CropDrag] = None

    @property
    def is_dragging(self) -> bool:
        return self.drag is not None

    def satisfies_invariants(self, tol: float = 1e-6) -> bool:
        r = self.rect
        return (
            r.x >= -tol
            and r.y >= -tol
            and r.max_x <= self.image_size.width + tol
            and r.max_y <= self.image_size.height + tol
            and r.width >= min(MIN_CROP_SIZE, self.image_size.width) - tol
            and r.height >= min(MIN_CROP_SIZE, self.image_size.height) - tol
        )


def _default_extent(total: float) -> Tuple[float, float]:
    extent = total * DEFAULT_CROP_FRACTION
    # Small images: honor the minimum where possible, else take the whole axis
    extent = min(total, max(extent, MIN_CROP_SIZE))
    return ((total - extent) * 0.5, extent)


def default_crop_state(image_size: Size) -> CropState:
    x, w = _default_extent(float(image_size.width))
    y, h = _default_extent(float(image_size.height))
    return CropState(image_size=image_size, rect=Rect(x, y, w, h))


def move_rect(start: Rect, delta: Tuple[float, float], image_size: Size) -> Rect:
    dx, dy = delta
    x = max(0.0, min(start.x + dx, image_size.width - start.width))
    y = max(0.0, min(start.y + dy, image_size.height - start.height))
    return start.with_origin(x, y)


def resize_rect(
    start: Rect,
    current: Rect,
    handle: Handle,
    delta: Tuple[float, float],
    image_size: Size,
) -> Rect:
    """Apply a resize drag to ``start``, per axis.

    An axis whose proposed extent would break the minimum size or leave the
    image keeps its ``current`` extent. Nothing is clamped to the edge.
    """
    dx, dy = delta
    x, w = current.x, current.width
    y, h = current.y, current.height

    if handle.moves_left:
        nx = start.x + dx
        nw = start.max_x - nx
        if nw >= MIN_CROP_SIZE and nx >= 0:
            x, w = nx, nw
    elif handle.moves_right:
        nw = start.width + dx
        if nw >= MIN_CROP_SIZE and start.x + nw <= image_size.width:
            x, w = start.x, nw

    # Display "top" is the pixel-space max_y edge
    if handle.moves_top:
        nh = start.height + dy
        if nh >= MIN_CROP_SIZE and start.y + nh <= image_size.height:
            y, h = start.y, nh
    elif handle.moves_bottom:
        ny = start.y + dy
        nh = start.max_y - ny
        if nh >= MIN_CROP_SIZE and ny >= 0:
            y, h = ny, nh

    return Rect(x, y, w, h)


def begin_drag(state: CropState, handle: Handle) -> CropState:
    return replace(state, drag=CropDrag(handle=handle, start_rect=state.rect))


def update_drag(state: CropState, translation: Tuple[float, float], display_rect: Rect) -> CropState:
    """Apply the gesture's cumulative display-space ``translation``.

    Invalid scale, non-finite input, or no active drag leave ``state`` untouched.
    """
    if state.drag is None:
        return state
    scale = pixel_scale(state.image_size, display_rect)
    if not scale_is_valid(scale):
        return state
    delta = display_to_pixel_delta(float(translation[0]), float(translation[1]), scale)
    if not all(math.isfinite(v) for v in delta):
        return state

    drag = state.drag
    if drag.handle is Handle.MOVE:
        rect = move_rect(drag.start_rect, delta, state.image_size)
    else:
        rect = resize_rect(drag.start_rect, state.rect, drag.handle, delta, state.image_size)
    return replace(state, rect=rect)


def end_drag(state: CropState) -> CropState:
    return replace(state, drag=None)


def display_crop_rect(state: CropState, display_rect: Rect) -> Rect:
    scale = pixel_scale(state.image_size, display_rect)
    if not scale_is_valid(scale):
        return EMPTY_RECT
    return pixel_to_display(state.rect, display_rect, scale)


def handle_point(handle: Handle, frame: Rect) -> Point:
    fx, fy = handle.position
    return Point(frame.x + frame.width * fx, frame.y + frame.height * fy)


def hit_test(state: CropState, display_rect: Rect, point: Point) -> Optional[Handle]:
    """Which handle (or the move region) is under a display-space point."""
    frame = display_crop_rect(state, display_rect)
    if frame.is_empty:
        return None
    reach = HANDLE_DIAMETER * 0.5 + HANDLE_HIT_SLOP
    for handle in RESIZE_HANDLES:
        hp = handle_point(handle, frame)
        if abs(point.x - hp.x) <= reach and abs(point.y - hp.y) <= reach:
            return handle
    if frame.contains_point(point):
        return Handle.MOVE
    return None


def crop_image(image: Image.Image, rect: Rect) -> Image.Image:
    """Crop to a pixel-space rect, snapped to whole pixels. Returns a new image."""
    iw, ih = image.size
    left = max(0, min(int(round(rect.x)), iw - 1))
    bottom = max(0, min(int(round(rect.y)), ih - 1))
    w = max(1, min(int(round(rect.width)), iw - left))
    h = max(1, min(int(round(rect.height)), ih - bottom))
    box = pixel_rect_to_image_box(Rect(left, bottom, w, h), ih)
    logger.debug("crop %s -> box %s", rect, box)
    return image.crop(tuple(int(v) for v in box))
