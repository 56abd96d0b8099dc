from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from core.config import (
    DEFAULT_TEXT_BACKGROUND,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_FONT,
    DEFAULT_TEXT_SIZE,
    THUMB_SIZE,
)

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1


@dataclass
class AppSettings:
    last_folder: Optional[str] = None
    log_level: str = "INFO"

    # Text overlay defaults for new edit sessions
    text_font: str = DEFAULT_TEXT_FONT
    text_size: float = DEFAULT_TEXT_SIZE
    text_color: Tuple[int, int, int, int] = DEFAULT_TEXT_COLOR
    text_background: Tuple[int, int, int, int] = DEFAULT_TEXT_BACKGROUND

    save_format: str = "png"
    thumb_w: int = THUMB_SIZE[0]
    thumb_h: int = THUMB_SIZE[1]


def default_settings_path() -> Path:
    override = os.environ.get("PIXVIEW_SETTINGS")
    if override:
        return Path(override)
    return Path.home() / ".config" / "pixview" / "settings.json"


def _rgba_from_raw(raw, fallback: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:
    if not isinstance(raw, list) or len(raw) != 4:
        return fallback
    try:
        return tuple(max(0, min(255, int(v))) for v in raw)  # type: ignore[return-value]
    except (TypeError, ValueError):
        return fallback


def save_settings(path: str, settings: AppSettings) -> None:
    settings_file = Path(path)
    payload = {
        "version": SETTINGS_VERSION,
        "settings": {
            "last_folder": settings.last_folder,
            "log_level": settings.log_level,
            "text_font": settings.text_font,
            "text_size": settings.text_size,
            "text_color": list(settings.text_color),
            "text_background": list(settings.text_background),
            "save_format": settings.save_format,
            "thumb_w": settings.thumb_w,
            "thumb_h": settings.thumb_h,
        },
    }
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def load_settings(path: str) -> AppSettings:
    """Read settings, falling back to defaults for a missing or unreadable file."""
    settings_file = Path(path)
    try:
        raw = json.loads(settings_file.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return AppSettings()
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings %s: %s", settings_file, exc)
        return AppSettings()

    s = raw.get("settings") if isinstance(raw, dict) else None
    if not isinstance(s, dict):
        logger.warning("Ignoring malformed settings %s: no settings object", settings_file)
        return AppSettings()

    def field(key: str, convert, default):
        value = s.get(key, default)
        try:
            return convert(value)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring bad setting %s=%r: %s", key, value, exc)
            return default

    last_folder = s.get("last_folder")
    return AppSettings(
        last_folder=last_folder if isinstance(last_folder, str) else None,
        log_level=field("log_level", lambda v: str(v).upper(), "INFO"),
        text_font=field("text_font", str, DEFAULT_TEXT_FONT),
        text_size=field("text_size", float, DEFAULT_TEXT_SIZE),
        text_color=_rgba_from_raw(s.get("text_color"), DEFAULT_TEXT_COLOR),
        text_background=_rgba_from_raw(s.get("text_background"), DEFAULT_TEXT_BACKGROUND),
        save_format=field("save_format", lambda v: str(v).lower(), "png"),
        thumb_w=field("thumb_w", int, THUMB_SIZE[0]),
        thumb_h=field("thumb_h", int, THUMB_SIZE[1]),
    )
