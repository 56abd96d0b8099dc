from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Union

from PIL import Image, ImageDraw

from core.config import TEXT_CORNER_RADIUS, TEXT_PADDING
from core.filters import FilterType, apply_filter
from core.geometry import (
    Rect,
    Size,
    display_point_to_pixel,
    display_rect_for_image,
    pixel_rect_to_image_box,
    pixel_scale,
    scale_is_valid,
)
from core.text_overlay import TextOverlayState, centered_anchor, load_font, text_extent

logger = logging.getLogger(__name__)

FilterCatalog = Callable[[Union[str, FilterType], Image.Image], Optional[Image.Image]]


def render_text_badge(overlay: TextOverlayState, scale: float = 1.0) -> Optional[Image.Image]:
    """Text on its rounded background, sized ``scale`` times the display size.

    At scale 1.0 the badge matches ``estimate_text_box``.
    """
    if not overlay.has_text or not (scale > 0 and math.isfinite(scale)):
        return None
    font = load_font(overlay.font, max(1, int(round(overlay.size * scale))))
    left, top, w, h = text_extent(overlay.text, font)
    pad = TEXT_PADDING * scale
    bw = max(1, int(math.ceil(w + 2 * pad)))
    bh = max(1, int(math.ceil(h + 2 * pad)))

    badge = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
    ImageDraw.Draw(badge).rounded_rectangle(
        (0, 0, bw - 1, bh - 1),
        radius=TEXT_CORNER_RADIUS * scale,
        fill=tuple(overlay.background),
    )
    text_layer = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
    ImageDraw.Draw(text_layer).multiline_text(
        (pad - left, pad - top),
        overlay.text,
        font=font,
        fill=tuple(overlay.color),
    )
    return Image.alpha_composite(badge, text_layer)


def composite_text(image: Image.Image, overlay: TextOverlayState, container_size: Size) -> Image.Image:
    """Burn ``overlay`` into ``image`` at full pixel resolution.

    The anchor is mapped through the display rect of *this* image inside
    the container, so a filter that changed the extent is accounted for.
    """
    display_rect = display_rect_for_image(Size(image.width, image.height), container_size)
    scale = pixel_scale(Size(image.width, image.height), display_rect)
    if display_rect.is_empty or not scale_is_valid(scale):
        logger.warning("Skipping text overlay: degenerate display rect for %s", container_size)
        return image

    anchor = overlay.anchor if overlay.anchor is not None else centered_anchor(display_rect)
    if not anchor.is_finite:
        return image

    badge = render_text_badge(overlay, scale.height)
    if badge is None:
        return image

    center = display_point_to_pixel(anchor, display_rect, scale)
    rect = Rect(center.x - badge.width * 0.5, center.y - badge.height * 0.5, badge.width, badge.height)
    left, top, _, _ = pixel_rect_to_image_box(rect, image.height)

    base = image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    layer.paste(badge, (int(round(left)), int(round(top))))
    return Image.alpha_composite(base, layer)


def bake(
    image: Image.Image,
    filter_type: Union[str, FilterType] = FilterType.NONE,
    overlay: Optional[TextOverlayState] = None,
    container_size: Optional[Size] = None,
    catalog: FilterCatalog = apply_filter,
) -> Image.Image:
    """Final pixels for export: filter output, then the text overlay on top."""
    out = image
    if FilterType(filter_type) is not FilterType.NONE:
        filtered = catalog(filter_type, image)
        if filtered is None:
            logger.warning("Filter %s produced no output, keeping original", FilterType(filter_type).value)
        else:
            out = filtered

    if overlay is None or not overlay.has_text:
        return out
    if container_size is None:
        logger.warning("Skipping text overlay: no editor layout")
        return out
    return composite_text(out, overlay, container_size)
