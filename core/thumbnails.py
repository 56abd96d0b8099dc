from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

from PIL import Image, ImageOps

from core.config import THUMB_SIZE


def load_thumbnail(path: Union[str, Path], size: Tuple[int, int] = THUMB_SIZE) -> Image.Image:
    """Decode ``path`` and cover-crop it to ``size`` (like a scaled-to-fill tile)."""
    with Image.open(path) as img:
        # Decode at reduced resolution where the codec supports it (JPEG)
        img.draft("RGB", (size[0] * 2, size[1] * 2))
        img = ImageOps.exif_transpose(img).convert("RGBA")
    return ImageOps.fit(img, size, method=Image.Resampling.BILINEAR)
