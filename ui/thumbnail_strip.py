from __future__ import annotations
from collections import OrderedDict
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from PySide6.QtCore import QSize, Qt, QThreadPool
from PySide6.QtGui import QColor, QIcon, QPixmap
from PySide6.QtWidgets import QAbstractItemView, QListView, QListWidget, QListWidgetItem, QWidget

from core.config import THUMB_CACHE_LIMIT, THUMB_SIZE
from ui.workers import ThumbnailTask


class ThumbnailStrip(QListWidget):
    """
    Horizontal strip of thumbnails around the current image:
    - Each item stores its index into the library in Qt.UserRole
    - Thumbnails decode on the thread pool and are cached by path, so
      completion order does not matter
    - The cache keeps the most recently shown tiles, up to cache_limit
    """
    def __init__(
        self,
        on_select: Callable[[int], None],
        thumb_size: Tuple[int, int] = THUMB_SIZE,
        cache_limit: int = THUMB_CACHE_LIMIT,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._on_select = on_select
        self._thumb_size = thumb_size
        self._cache_limit = max(1, cache_limit)
        self._cache: "OrderedDict[str, QPixmap]" = OrderedDict()
        self._pending: set[str] = set()
        self._items: Dict[str, QListWidgetItem] = {}
        self._tasks: List[ThumbnailTask] = []

        self.setViewMode(QListView.IconMode)
        self.setFlow(QListView.LeftToRight)
        self.setWrapping(False)
        self.setMovement(QListView.Static)
        self.setIconSize(QSize(*thumb_size))
        self.setSpacing(5)
        self.setFixedHeight(thumb_size[1] + 24)
        self.setHorizontalScrollMode(QAbstractItemView.ScrollPerPixel)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        # Arrow keys belong to the main window, never to the strip
        self.setFocusPolicy(Qt.NoFocus)
        self.setStyleSheet("QListWidget { background: rgba(0, 0, 0, 128); border: none; }")
        self.itemClicked.connect(self._clicked)

        self._placeholder = QPixmap(*thumb_size)
        self._placeholder.fill(QColor(80, 80, 80))

    def show_window(self, paths: List[Path], indices: range, current: Optional[int]) -> None:
        self.blockSignals(True)
        self.clear()
        self._items.clear()
        for idx in indices:
            key = str(paths[idx])
            pm = self._cached(key)
            item = QListWidgetItem(QIcon(pm if pm is not None else self._placeholder), "")
            item.setData(Qt.UserRole, idx)
            item.setToolTip(paths[idx].name)
            self.addItem(item)
            self._items[key] = item
            if idx == current:
                item.setSelected(True)
                self.setCurrentItem(item)
            if key not in self._cache:
                self._request(paths[idx])
        self.blockSignals(False)
        if self.currentItem() is not None:
            self.scrollToItem(self.currentItem(), QAbstractItemView.PositionAtCenter)

    def _request(self, path: Path) -> None:
        key = str(path)
        if key in self._pending:
            return
        self._pending.add(key)
        task = ThumbnailTask(path, self._thumb_size)
        task.signals.loaded.connect(self._loaded)
        self._tasks.append(task)
        QThreadPool.globalInstance().start(task)

    def _loaded(self, key: str, qimg) -> None:
        self._pending.discard(key)
        self._tasks = [t for t in self._tasks if str(t.path) != key]
        if qimg is None:
            return
        pm = QPixmap.fromImage(qimg)
        self._store(key, pm)
        item = self._items.get(key)
        if item is not None:
            item.setIcon(QIcon(pm))

    def _cached(self, key: str) -> Optional[QPixmap]:
        pm = self._cache.get(key)
        if pm is not None:
            self._cache.move_to_end(key)
        return pm

    def _store(self, key: str, pm: QPixmap) -> None:
        self._cache[key] = pm
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_limit:
            self._cache.popitem(last=False)

    def forget(self, path: Path) -> None:
        self._cache.pop(str(path), None)

    def _clicked(self, item: QListWidgetItem) -> None:
        idx = item.data(Qt.UserRole)
        if idx is not None:
            self._on_select(int(idx))
