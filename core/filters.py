"""Filter catalog: ``name -> filter`` over Pillow images.

Filters may return a different extent than their input (blur, bloom and
gloom grow the canvas by the blur reach), so callers must read the output
size rather than assume it.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Callable, Dict, Optional, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFilter, ImageOps

from core.adjustments import (
    Grade,
    color_matrix_rgba,
    gradient_map_rgba,
    grade_rgba,
    np_rgba_to_pil,
    pil_to_np_rgba,
    vignette_rgba,
)

logger = logging.getLogger(__name__)

BLUR_RADIUS = 10.0
BLOOM_RADIUS = 10.0
BLOOM_INTENSITY = 0.5
CRYSTAL_CELL = 20
POINT_RADIUS = 6
PIXEL_BLOCK = 8


class FilterType(str, Enum):
    NONE = "none"
    SEPIA = "sepia"
    NOIR = "noir"
    CHROME = "chrome"
    INSTANT = "instant"
    PROCESS = "process"
    VIGNETTE = "vignette"
    MONO = "mono"
    COMIC = "comic"
    CRYSTALLIZE = "crystallize"
    POINTILLIZE = "pointillize"
    BLOOM = "bloom"
    GLOOM = "gloom"
    SHARPEN = "sharpen"
    UNSHARP_MASK = "unsharp_mask"
    GAUSSIAN_BLUR = "gaussian_blur"
    PIXELLATE = "pixellate"
    THERMAL = "thermal"
    XRAY = "xray"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    FilterType.NONE: "None",
    FilterType.SEPIA: "Sepia",
    FilterType.NOIR: "Noir",
    FilterType.CHROME: "Chrome",
    FilterType.INSTANT: "Instant",
    FilterType.PROCESS: "Process",
    FilterType.VIGNETTE: "Vignette",
    FilterType.MONO: "Mono",
    FilterType.COMIC: "Comic",
    FilterType.CRYSTALLIZE: "Crystallize",
    FilterType.POINTILLIZE: "Pointillize",
    FilterType.BLOOM: "Bloom",
    FilterType.GLOOM: "Gloom",
    FilterType.SHARPEN: "Sharpen",
    FilterType.UNSHARP_MASK: "Unsharp Mask",
    FilterType.GAUSSIAN_BLUR: "Blur",
    FilterType.PIXELLATE: "Pixellate",
    FilterType.THERMAL: "Thermal",
    FilterType.XRAY: "X-Ray",
}


def _on_rgb(img: Image.Image, fn: Callable[[Image.Image], Image.Image]) -> Image.Image:
    """Run a Pillow filter on the color bands only, keeping alpha."""
    alpha = img.getchannel("A")
    rgb = fn(img.convert("RGB"))
    out = rgb.convert("RGBA")
    out.putalpha(alpha)
    return out


def _blur_reach(radius: float) -> int:
    return int(math.ceil(3.0 * radius))


def _grown_blur(img: Image.Image, radius: float) -> tuple[Image.Image, Image.Image]:
    """(padded original, blurred) on a canvas grown by the blur reach."""
    pad = _blur_reach(radius)
    canvas = Image.new("RGBA", (img.width + 2 * pad, img.height + 2 * pad), (0, 0, 0, 0))
    canvas.paste(img, (pad, pad))
    # Premultiplied so transparent margins do not darken the spill
    blurred = canvas.convert("RGBa").filter(ImageFilter.GaussianBlur(radius)).convert("RGBA")
    return canvas, blurred


def _gaussian_blur(img: Image.Image) -> Image.Image:
    return _grown_blur(img, BLUR_RADIUS)[1]


def _bloom(img: Image.Image) -> Image.Image:
    base, blurred = _grown_blur(img, BLOOM_RADIUS)
    b = pil_to_np_rgba(base).astype(np.float32) / 255.0
    g = pil_to_np_rgba(blurred).astype(np.float32) / 255.0
    out = b.copy()
    out[..., :3] = 1.0 - (1.0 - b[..., :3]) * (1.0 - g[..., :3] * BLOOM_INTENSITY)
    out[..., 3] = np.maximum(b[..., 3], g[..., 3])
    return np_rgba_to_pil(np.clip(out * 255.0, 0, 255).astype(np.uint8))


def _gloom(img: Image.Image) -> Image.Image:
    base, blurred = _grown_blur(img, BLOOM_RADIUS)
    b = pil_to_np_rgba(base).astype(np.float32) / 255.0
    g = pil_to_np_rgba(blurred).astype(np.float32) / 255.0
    out = b.copy()
    out[..., :3] = b[..., :3] * (1.0 - BLOOM_INTENSITY * (1.0 - g[..., :3]))
    out[..., 3] = np.maximum(b[..., 3], g[..., 3])
    return np_rgba_to_pil(np.clip(out * 255.0, 0, 255).astype(np.uint8))


def _graded(grade: Grade) -> Callable[[Image.Image], Image.Image]:
    def run(img: Image.Image) -> Image.Image:
        return np_rgba_to_pil(grade_rgba(pil_to_np_rgba(img), grade))

    return run


def _sepia(img: Image.Image) -> Image.Image:
    matrix = (
        (0.393, 0.769, 0.189),
        (0.349, 0.686, 0.168),
        (0.272, 0.534, 0.131),
    )
    return np_rgba_to_pil(color_matrix_rgba(pil_to_np_rgba(img), matrix))


def _vignette(img: Image.Image) -> Image.Image:
    return np_rgba_to_pil(vignette_rgba(pil_to_np_rgba(img), intensity=1.0, radius=1.0))


def _thermal(img: Image.Image) -> Image.Image:
    stops = ((0, 0, 0), (20, 0, 140), (180, 0, 160), (240, 40, 0), (255, 220, 0), (255, 255, 255))
    return np_rgba_to_pil(gradient_map_rgba(pil_to_np_rgba(img), stops))


def _xray(img: Image.Image) -> Image.Image:
    stops = ((235, 245, 255), (120, 140, 165), (10, 15, 30))
    return np_rgba_to_pil(gradient_map_rgba(pil_to_np_rgba(img), stops))


def _comic(img: Image.Image) -> Image.Image:
    def run(rgb: Image.Image) -> Image.Image:
        poster = ImageOps.posterize(rgb, 3)
        edges = np.array(rgb.convert("L").filter(ImageFilter.FIND_EDGES), dtype=np.uint8)
        arr = np.array(poster, dtype=np.uint8)
        arr[edges > 40] = 0
        return Image.fromarray(arr)

    return _on_rgb(img, run)


def _pixellate(img: Image.Image) -> Image.Image:
    w, h = img.size
    small = img.resize((max(1, w // PIXEL_BLOCK), max(1, h // PIXEL_BLOCK)), resample=Image.Resampling.BOX)
    return small.resize((w, h), resample=Image.Resampling.NEAREST)


def _crystallize(img: Image.Image) -> Image.Image:
    arr = pil_to_np_rgba(img)
    h, w = arr.shape[:2]
    cell = CRYSTAL_CELL
    gh, gw = h // cell + 1, w // cell + 1
    rng = np.random.default_rng(0)
    seed_x = (np.arange(gw)[None, :] + rng.random((gh, gw))) * cell
    seed_y = (np.arange(gh)[:, None] + rng.random((gh, gw))) * cell

    yy, xx = np.mgrid[0:h, 0:w]
    cy, cx = yy // cell, xx // cell
    best = np.full((h, w), np.inf, dtype=np.float64)
    by, bx = cy.copy(), cx.copy()
    # Nearest seed is always within the 3x3 neighboring cells
    for oy in (-1, 0, 1):
        for ox in (-1, 0, 1):
            ny = np.clip(cy + oy, 0, gh - 1)
            nx = np.clip(cx + ox, 0, gw - 1)
            d = (seed_x[ny, nx] - xx) ** 2 + (seed_y[ny, nx] - yy) ** 2
            closer = d < best
            best[closer] = d[closer]
            by[closer] = ny[closer]
            bx[closer] = nx[closer]

    px = np.clip(seed_x.astype(np.int64), 0, w - 1)
    py = np.clip(seed_y.astype(np.int64), 0, h - 1)
    colors = arr[py, px]
    return np_rgba_to_pil(np.ascontiguousarray(colors[by, bx]))


def _pointillize(img: Image.Image) -> Image.Image:
    arr = pil_to_np_rgba(img)
    h, w = arr.shape[:2]
    out = Image.new("RGBA", (w, h), (255, 255, 255, 255))
    draw = ImageDraw.Draw(out)
    step = POINT_RADIUS * 2
    rng = np.random.default_rng(0)
    r = POINT_RADIUS
    for y in range(0, h, step):
        for x in range(0, w, step):
            jx = int(min(w - 1, x + rng.integers(0, step)))
            jy = int(min(h - 1, y + rng.integers(0, step)))
            color = tuple(int(v) for v in arr[jy, jx])
            draw.ellipse((jx - r, jy - r, jx + r, jy + r), fill=color)
    out.putalpha(img.getchannel("A"))
    return out


_FILTERS: Dict[FilterType, Callable[[Image.Image], Image.Image]] = {
    FilterType.SEPIA: _sepia,
    FilterType.NOIR: _graded(Grade(saturation=0.0, contrast=1.35, gamma=0.9)),
    FilterType.CHROME: _graded(Grade(contrast=1.15, saturation=1.35)),
    FilterType.INSTANT: _graded(Grade(saturation=0.8, temperature=12, fade=0.12)),
    FilterType.PROCESS: _graded(Grade(contrast=1.1, saturation=0.9, temperature=-14)),
    FilterType.VIGNETTE: _vignette,
    FilterType.MONO: _graded(Grade(saturation=0.0)),
    FilterType.COMIC: _comic,
    FilterType.CRYSTALLIZE: _crystallize,
    FilterType.POINTILLIZE: _pointillize,
    FilterType.BLOOM: _bloom,
    FilterType.GLOOM: _gloom,
    FilterType.SHARPEN: lambda img: _on_rgb(img, lambda rgb: rgb.filter(ImageFilter.SHARPEN)),
    FilterType.UNSHARP_MASK: lambda img: _on_rgb(
        img, lambda rgb: rgb.filter(ImageFilter.UnsharpMask(radius=2.5, percent=50, threshold=0))
    ),
    FilterType.GAUSSIAN_BLUR: _gaussian_blur,
    FilterType.PIXELLATE: _pixellate,
    FilterType.THERMAL: _thermal,
    FilterType.XRAY: _xray,
}


def apply_filter(name: Union[str, FilterType], image: Image.Image) -> Optional[Image.Image]:
    """Run ``image`` through the named filter.

    Returns None when the name is unknown or the filter fails; ``none`` is
    the identity.
    """
    try:
        ftype = FilterType(name)
    except ValueError:
        logger.warning("Unknown filter %r", name)
        return None
    if ftype is FilterType.NONE:
        return image
    try:
        return _FILTERS[ftype](image.convert("RGBA"))
    except (ValueError, OSError, MemoryError) as exc:
        logger.warning("Filter %s failed: %s", ftype.value, exc)
        return None
