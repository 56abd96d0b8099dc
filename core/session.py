"""Edit session: Filter -> Crop -> Text -> Save over one working image.

The session is owned by the editor on the UI thread. Geometry state is
replaced, never mutated; the UI reads the current values back after
each call.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Tuple, Union

from PIL import Image

from core.compositor import FilterCatalog, bake
from core.crop import CropState, Handle, begin_drag, crop_image, default_crop_state, end_drag, update_drag
from core.filters import FilterType, apply_filter
from core.geometry import Point, Rect, Size, display_rect_for_image, remap_point
from core.io import ImageFormat, SaveAction, write_image
from core.text_overlay import TextOverlayState, centered_anchor, clamp_anchor, estimate_text_box, move_anchor

logger = logging.getLogger(__name__)


class EditSession:
    def __init__(
        self,
        source_path: Union[str, Path],
        image: Image.Image,
        text_defaults: Optional[TextOverlayState] = None,
        catalog: FilterCatalog = apply_filter,
    ):
        self.source_path = Path(source_path)
        self.image = image
        self.filter = FilterType.NONE
        self.crop: Optional[CropState] = None
        self.text = text_defaults if text_defaults is not None else TextOverlayState()
        self.container_size: Optional[Size] = None
        self._catalog = catalog
        self._preview: Optional[Image.Image] = None
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("edit session is closed")

    # ---- filter ----
    def set_filter(self, filter_type: Union[str, FilterType]) -> None:
        self._check_open()
        ftype = FilterType(filter_type)
        if ftype is self.filter:
            return
        old_rect = self.display_rect()
        self.filter = ftype
        self._preview = None
        logger.info("Filter set to %s", ftype.value)
        self._relayout_text(old_rect)

    def preview_image(self) -> Image.Image:
        """Working image with the filter applied (no text), cached until it changes."""
        self._check_open()
        if self._preview is None:
            out = None
            if self.filter is not FilterType.NONE:
                out = self._catalog(self.filter, self.image)
                if out is None:
                    logger.warning("Filter %s produced no output, previewing original", self.filter.value)
            self._preview = out if out is not None else self.image
        return self._preview

    def display_rect(self) -> Rect:
        """Where the preview image sits inside the editor canvas."""
        if self.container_size is None:
            return Rect(0.0, 0.0, 0.0, 0.0)
        preview = self.preview_image()
        return display_rect_for_image(Size(preview.width, preview.height), self.container_size)

    def set_container_size(self, size: Size) -> None:
        self._check_open()
        old_rect = self.display_rect()
        self.container_size = size
        self._relayout_text(old_rect)

    def _relayout_text(self, old_rect: Rect) -> None:
        new_rect = self.display_rect()
        if new_rect.is_empty:
            return
        if self.text.anchor is None or old_rect.is_empty:
            anchor = self.text.anchor if self.text.anchor is not None else centered_anchor(new_rect)
        else:
            anchor = remap_point(self.text.anchor, old_rect, new_rect)
        clamped = clamp_anchor(anchor, estimate_text_box(self.text), new_rect)
        if clamped is not None:
            self.text = replace(self.text, anchor=clamped)

    # ---- crop ----
    def open_crop(self) -> CropState:
        self._check_open()
        self.crop = default_crop_state(Size(self.image.width, self.image.height))
        return self.crop

    def crop_begin(self, handle: Handle) -> None:
        if self.crop is not None:
            self.crop = begin_drag(self.crop, handle)

    def crop_drag(self, translation: Tuple[float, float], crop_display_rect: Rect) -> None:
        if self.crop is not None:
            self.crop = update_drag(self.crop, translation, crop_display_rect)

    def crop_end(self) -> None:
        if self.crop is not None:
            self.crop = end_drag(self.crop)

    def apply_crop(self) -> Image.Image:
        self._check_open()
        if self.crop is None:
            return self.image
        old_rect = self.display_rect()
        rect = self.crop.rect
        self.image = crop_image(self.image, rect)
        self.crop = None
        self._preview = None
        logger.info("Cropped to %dx%d", self.image.width, self.image.height)
        self._relayout_text(old_rect)
        return self.image

    def cancel_crop(self) -> None:
        self.crop = None

    # ---- text ----
    def set_text(self, text: str) -> None:
        self._check_open()
        self.text = replace(self.text, text=text)
        self._reclamp_text()

    def set_text_style(
        self,
        font: Optional[str] = None,
        size: Optional[float] = None,
        color: Optional[Tuple[int, int, int, int]] = None,
        background: Optional[Tuple[int, int, int, int]] = None,
    ) -> None:
        self._check_open()
        changes = {}
        if font is not None:
            changes["font"] = font
        if size is not None:
            changes["size"] = float(size)
        if color is not None:
            changes["color"] = tuple(color)
        if background is not None:
            changes["background"] = tuple(background)
        self.text = replace(self.text, **changes)
        self._reclamp_text()

    def _reclamp_text(self) -> None:
        rect = self.display_rect()
        if rect.is_empty or self.text.anchor is None:
            return
        clamped = clamp_anchor(self.text.anchor, estimate_text_box(self.text), rect)
        if clamped is not None:
            self.text = replace(self.text, anchor=clamped)

    def drag_text(self, location: Point) -> None:
        self._check_open()
        rect = self.display_rect()
        if rect.is_empty:
            return
        self.text = move_anchor(self.text, location, rect)

    # ---- output ----
    def bake(self) -> Image.Image:
        self._check_open()
        return bake(
            self.image,
            self.filter,
            self.text if self.text.has_text else None,
            self.container_size,
            catalog=self._catalog,
        )

    def save(self, fmt: Union[str, ImageFormat], action: SaveAction) -> Path:
        """Bake and write; raises ``EncodeFailure`` / ``WriteFailure``."""
        final = self.bake()
        return write_image(final, self.source_path, fmt, action)

    def close(self) -> None:
        self.crop = None
        self._preview = None
        self._closed = True
