from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image
from PySide6.QtCore import QObject, QRunnable, Signal

from core.errors import DirectoryReadFailure
from core.library import list_images, resolve_open_target
from core.thumbnails import load_thumbnail
from ui.canvas_widget import pil_rgba_to_qimage

logger = logging.getLogger(__name__)


class FolderScanSignals(QObject):
    finished = Signal(object, object, object)  # folder, paths, selecting
    failed = Signal(str)


class FolderScanTask(QRunnable):
    """Lists a folder off the UI thread; results arrive through queued signals."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = path
        self.signals = FolderScanSignals()

    def run(self) -> None:
        folder, selecting = resolve_open_target(self.path)
        try:
            paths = list_images(folder)
        except DirectoryReadFailure as exc:
            logger.warning("Folder scan failed for %s: %s", folder, exc)
            self.signals.failed.emit(exc.user_message)
            return
        self.signals.finished.emit(folder, paths, selecting)


class ThumbnailSignals(QObject):
    loaded = Signal(str, object)  # path, QImage


class ThumbnailTask(QRunnable):
    def __init__(self, path: Path, size: Tuple[int, int]):
        super().__init__()
        self.path = path
        self.size = size
        self.signals = ThumbnailSignals()

    def run(self) -> None:
        qimg: Optional[object] = None
        try:
            qimg = pil_rgba_to_qimage(load_thumbnail(self.path, self.size))
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            # Undecodable files keep their placeholder tile
            logger.debug("No thumbnail for %s: %s", self.path, exc)
        finally:
            # The strip clears its pending entry only on this signal
            self.signals.loaded.emit(str(self.path), qimg)


class SaveSignals(QObject):
    """Bridges a ``concurrent.futures`` callback back onto the UI thread."""

    done = Signal(object)  # Future
