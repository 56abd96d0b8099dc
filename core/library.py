"""The folder of images being browsed and the current selection."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from send2trash import send2trash

from core.config import SUPPORTED_EXTENSIONS, TIMELINE_WINDOW
from core.errors import DirectoryReadFailure, TrashFailure
from core.io import SaveAction

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def is_supported(path: Path) -> bool:
    return path.suffix[1:].lower() in SUPPORTED_EXTENSIONS


def list_images(folder: PathLike) -> List[Path]:
    """Supported images directly inside ``folder``, sorted by filename."""
    root = Path(folder)
    try:
        entries = list(root.iterdir())
    except OSError as exc:
        raise DirectoryReadFailure(f"Could not read folder contents: {exc}") from exc
    images = [p for p in entries if p.is_file() and is_supported(p)]
    images.sort(key=lambda p: p.name)
    return images


def move_to_trash(path: PathLike) -> None:
    try:
        send2trash(str(path))
    except OSError as exc:
        raise TrashFailure(f"Failed to move image to Trash: {exc}") from exc
    logger.info("Moved %s to trash", path)


def resolve_open_target(path: PathLike) -> tuple[Path, Optional[Path]]:
    """(folder to list, file to select) for a path chosen by the user."""
    p = Path(path)
    if p.is_dir():
        return p, None
    return p.parent, p


class ImageLibrary:
    def __init__(self) -> None:
        self.folder: Optional[Path] = None
        self.paths: List[Path] = []
        self.current_index: Optional[int] = None

    @property
    def current_path(self) -> Optional[Path]:
        if self.current_index is None or not (0 <= self.current_index < len(self.paths)):
            return None
        return self.paths[self.current_index]

    @property
    def current_name(self) -> str:
        p = self.current_path
        return p.name if p is not None else "No Image Selected"

    def __len__(self) -> int:
        return len(self.paths)

    def set_listing(self, folder: PathLike, paths: List[Path], selecting: Optional[PathLike] = None) -> None:
        """Install a folder listing, selecting ``selecting`` if present, else the first image.

        An empty listing clears the library and raises ``DirectoryReadFailure``.
        """
        self.folder = Path(folder)
        if not paths:
            self.paths = []
            self.current_index = None
            raise DirectoryReadFailure("No supported images found in the selected folder.")
        self.paths = list(paths)
        self.current_index = 0
        if selecting is not None:
            target = Path(selecting)
            for idx, p in enumerate(self.paths):
                if p == target:
                    self.current_index = idx
                    break
        logger.info("Loaded %d images from %s", len(self.paths), self.folder)

    def open(self, path: PathLike) -> None:
        """Synchronous open of a file or folder (the UI runs ``list_images`` on a worker)."""
        folder, selecting = resolve_open_target(path)
        self.set_listing(folder, list_images(folder), selecting)

    def next(self) -> bool:
        if self.current_index is None or self.current_index >= len(self.paths) - 1:
            return False
        self.current_index += 1
        return True

    def previous(self) -> bool:
        if self.current_index is None or self.current_index <= 0:
            return False
        self.current_index -= 1
        return True

    def select(self, index: int) -> bool:
        if not (0 <= index < len(self.paths)):
            return False
        self.current_index = index
        return True

    def timeline_window(self, span: int = TIMELINE_WINDOW) -> range:
        """Indices of the thumbnails shown around the current image."""
        if self.current_index is None:
            return range(0, 0)
        lo = max(0, self.current_index - span)
        hi = min(len(self.paths), self.current_index + span + 1)
        return range(lo, hi)

    def delete_current(self) -> Optional[Path]:
        """Move the current image to the system trash and drop it from the listing."""
        index = self.current_index
        path = self.current_path
        if index is None or path is None:
            return None
        move_to_trash(path)
        del self.paths[index]
        if not self.paths:
            self.current_index = None
        elif index >= len(self.paths):
            self.current_index = len(self.paths) - 1
        return path

    def record_saved(self, source: PathLike, written: PathLike, action: SaveAction) -> None:
        """Reflect a finished save in the listing."""
        source, written = Path(source), Path(written)
        if action is SaveAction.CREATE_NEW:
            if self.folder is not None:
                self.set_listing(self.folder, list_images(self.folder), written)
            return
        if source == written:
            return
        for idx, p in enumerate(self.paths):
            if p == source:
                self.paths[idx] = written
                break
