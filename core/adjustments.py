from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class Grade:
    """Photo-effect look parameters. Defaults are the identity."""

    brightness: float = 1.0
    contrast: float = 1.0
    saturation: float = 1.0
    gamma: float = 1.0
    temperature: int = 0
    fade: float = 0.0


def _check_rgba(rgba: np.ndarray) -> None:
    if rgba.dtype != np.uint8 or rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError("rgba must be HxWx4 uint8")


def luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114


def grade_rgba(rgba: np.ndarray, grade: Grade) -> np.ndarray:
    _check_rgba(rgba)
    out = rgba.astype(np.float32).copy()
    rgb = out[..., :3]

    rgb *= float(max(0.1, grade.brightness))

    # Contrast around mid-gray
    c = float(max(0.1, grade.contrast))
    rgb = (rgb - 127.5) * c + 127.5

    y = luma(rgb)
    s = float(max(0.0, grade.saturation))
    rgb = y[..., None] + (rgb - y[..., None]) * s

    # Warm/cool shift
    t = int(max(-100, min(100, int(grade.temperature))))
    if t != 0:
        shift = float(t) * 1.25
        rgb[..., 0] += shift
        rgb[..., 2] -= shift

    # Lift blacks toward gray (instant-film fade)
    f = float(max(0.0, min(1.0, grade.fade)))
    if f > 0.0:
        rgb = rgb * (1.0 - f) + 127.5 * f

    g = float(max(0.1, grade.gamma))
    rgb = np.clip(rgb, 0.0, 255.0) / 255.0
    rgb = np.power(rgb, 1.0 / g) * 255.0

    out[..., :3] = np.clip(rgb, 0.0, 255.0)
    return out.astype(np.uint8)


def color_matrix_rgba(rgba: np.ndarray, matrix: Sequence[Sequence[float]]) -> np.ndarray:
    """Apply a 3x3 RGB matrix, alpha untouched."""
    _check_rgba(rgba)
    m = np.asarray(matrix, dtype=np.float32)
    if m.shape != (3, 3):
        raise ValueError("matrix must be 3x3")
    out = rgba.copy()
    rgb = rgba[..., :3].astype(np.float32) @ m.T
    out[..., :3] = np.clip(rgb, 0.0, 255.0).astype(np.uint8)
    return out


def gradient_map_rgba(rgba: np.ndarray, stops: Sequence[Sequence[int]]) -> np.ndarray:
    """Map luminance onto evenly spaced color stops."""
    _check_rgba(rgba)
    colors = np.asarray(stops, dtype=np.float32)
    xs = np.linspace(0.0, 255.0, num=len(colors))
    y = luma(rgba[..., :3].astype(np.float32))
    out = rgba.copy()
    for ch in range(3):
        out[..., ch] = np.clip(np.interp(y, xs, colors[:, ch]), 0, 255).astype(np.uint8)
    return out


def vignette_rgba(rgba: np.ndarray, intensity: float = 1.0, radius: float = 1.0) -> np.ndarray:
    _check_rgba(rgba)
    h, w = rgba.shape[:2]
    yy, xx = np.mgrid[0:h, 0:w].astype(np.float32)
    nx = (xx - (w - 1) * 0.5) / max(1.0, w * 0.5)
    ny = (yy - (h - 1) * 0.5) / max(1.0, h * 0.5)
    d = np.sqrt(nx * nx + ny * ny) / max(0.1, float(radius))
    falloff = np.clip(1.0 - float(intensity) * np.clip(d - 0.5, 0.0, None) ** 2 * 1.6, 0.0, 1.0)
    out = rgba.copy()
    out[..., :3] = np.clip(rgba[..., :3].astype(np.float32) * falloff[..., None], 0, 255).astype(np.uint8)
    return out


def pil_to_np_rgba(img: Image.Image) -> np.ndarray:
    arr = np.array(img.convert("RGBA"), dtype=np.uint8)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError("Expected RGBA image")
    return arr


def np_rgba_to_pil(arr: np.ndarray) -> Image.Image:
    # HxWx4 uint8 is inferred as RGBA
    return Image.fromarray(arr)
