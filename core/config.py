"""Application configuration constants."""

from __future__ import annotations

APP_NAME = "PixView"
APP_VERSION = "1.0"

# Crop
MIN_CROP_SIZE = 50.0
DEFAULT_CROP_FRACTION = 0.8

# Crop handles (display px)
HANDLE_DIAMETER = 12
HANDLE_HIT_SLOP = 10

# Text overlay
TEXT_PADDING = 10
TEXT_CORNER_RADIUS = 8
TEXT_SIZE_MIN = 10
TEXT_SIZE_MAX = 200
DEFAULT_TEXT_FONT = "DejaVuSans.ttf"
DEFAULT_TEXT_SIZE = 50.0
DEFAULT_TEXT_COLOR = (255, 255, 255, 255)
DEFAULT_TEXT_BACKGROUND = (0, 0, 0, 128)

# Label -> font file looked up by Pillow on the system font path
FONT_CHOICES = (
    ("Sans", "DejaVuSans.ttf"),
    ("Sans Bold", "DejaVuSans-Bold.ttf"),
    ("Serif", "DejaVuSerif.ttf"),
    ("Mono", "DejaVuSansMono.ttf"),
)

# Files
SUPPORTED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "heic", "tiff", "bmp", "webp"})
EDITED_SUFFIX = "-edited"
JPEG_QUALITY = 95

# Viewer
TIMELINE_WINDOW = 50
SWIPE_MIN_DISTANCE = 50
THUMB_SIZE = (80, 60)
# One visible window plus slack for stepping back and forth
THUMB_CACHE_LIMIT = 4 * TIMELINE_WINDOW
CONTROLS_HIDE_MS = 3000

# Background work
SAVE_WORKERS = 2
