from __future__ import annotations

import io
import logging
import os
import shutil
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from PIL import Image, ImageOps

from core.config import EDITED_SUFFIX, JPEG_QUALITY
from core.errors import EncodeFailure, WriteFailure

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ImageFormat(str, Enum):
    JPG = "jpg"
    PNG = "png"
    WEBP = "webp"
    JPEG = "jpeg"


class SaveAction(Enum):
    REPLACE = "replace"
    CREATE_NEW = "create_new"


def load_image_rgba(path: PathLike) -> Image.Image:
    with Image.open(path) as img:
        # Honor camera orientation, then convert to RGBA for consistent alpha work
        return ImageOps.exif_transpose(img).convert("RGBA")


def encode_image(img: Image.Image, fmt: Union[str, ImageFormat]) -> Optional[bytes]:
    """Encode to bytes, or None when the format has no encoder path (webp)."""
    fmt = ImageFormat(fmt)
    buf = io.BytesIO()
    if fmt is ImageFormat.PNG:
        img.save(buf, format="PNG")
    elif fmt in (ImageFormat.JPG, ImageFormat.JPEG):
        rgba = img.convert("RGBA")
        # JPEG has no alpha: flatten onto white
        flat = Image.new("RGB", rgba.size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.getchannel("A"))
        flat.save(buf, format="JPEG", quality=JPEG_QUALITY)
    else:
        return None
    return buf.getvalue()


def ordered_formats(preferred: Optional[str] = None) -> List[ImageFormat]:
    """Formats for the save menu, with ``preferred`` (the last format saved) first."""
    formats = list(ImageFormat)
    try:
        first = ImageFormat(str(preferred).lower())
    except ValueError:
        return formats
    formats.remove(first)
    return [first] + formats


def save_target(src_path: PathLike, fmt: Union[str, ImageFormat], action: SaveAction) -> Path:
    src = Path(src_path)
    ext = ImageFormat(fmt).value
    if action is SaveAction.REPLACE:
        return src.with_suffix(f".{ext}")
    return src.with_name(f"{src.stem}{EDITED_SUFFIX}.{ext}")


def write_image(
    img: Image.Image,
    src_path: PathLike,
    fmt: Union[str, ImageFormat],
    action: SaveAction,
) -> Path:
    """Encode and write next to ``src_path``; returns the written path.

    Nothing touches the disk unless encoding succeeded.
    """
    fmt = ImageFormat(fmt)
    target = save_target(src_path, fmt, action)
    try:
        data = encode_image(img, fmt)
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"Failed to convert image to {fmt.value} format: {exc}") from exc
    if data is None:
        raise EncodeFailure(f"Failed to convert image to {fmt.value} format.")
    # Sibling temp file renamed over the target; the old image survives a failed write
    tmp = target.with_name(f".{target.name}.tmp")
    try:
        tmp.write_bytes(data)
        if target.exists():
            shutil.copymode(target, tmp)
        os.replace(tmp, target)
    except OSError as exc:
        _discard(tmp)
        raise WriteFailure(f"Failed to save image: {exc}") from exc
    logger.info("Saved %s (%d bytes)", target, len(data))
    return target


def _discard(tmp: Path) -> None:
    try:
        tmp.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", tmp, exc)
