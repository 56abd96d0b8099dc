from __future__ import annotations

import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image

try:
    from PySide6.QtCore import Qt, QThreadPool
    from PySide6.QtGui import QPixmap
    from PySide6.QtTest import QTest
    from PySide6.QtWidgets import QApplication

    from core.settings import AppSettings
    from ui.main_window import MainWindow
    from ui.thumbnail_strip import ThumbnailStrip
    from ui.workers import ThumbnailTask
except ImportError as exc:
    QT_MISSING = f"Qt unavailable: {exc}"
else:
    QT_MISSING = ""


def setUpModule() -> None:
    global _app
    if not QT_MISSING:
        _app = QApplication.instance() or QApplication([])


def _focused(window):
    return QApplication.focusWidget() or window


@unittest.skipIf(QT_MISSING, QT_MISSING)
class ArrowNavigationTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        folder = Path(self._td.name)
        self.paths = []
        for name in ("a.png", "b.png", "c.png"):
            path = folder / name
            Image.new("RGB", (8, 6), (200, 10, 10)).save(path)
            self.paths.append(path)
        self.window = MainWindow(settings=AppSettings())
        self.window._scan_finished(folder, self.paths, self.paths[0])
        self.window.show()
        self.window.activateWindow()
        QTest.qWaitForWindowActive(self.window)

    def tearDown(self) -> None:
        self.window.close()
        QThreadPool.globalInstance().waitForDone(5000)
        QApplication.processEvents()
        self._td.cleanup()

    def test_canvas_takes_focus_and_strip_refuses_it(self) -> None:
        self.assertEqual(self.window.canvas.focusPolicy(), Qt.StrongFocus)
        self.assertEqual(self.window.strip.focusPolicy(), Qt.NoFocus)

    def test_arrows_step_through_the_folder(self) -> None:
        QTest.keyClick(_focused(self.window), Qt.Key_Right)
        self.assertEqual(self.window.library.current_index, 1)
        QTest.keyClick(_focused(self.window), Qt.Key_Right)
        self.assertEqual(self.window.library.current_index, 2)
        QTest.keyClick(_focused(self.window), Qt.Key_Left)
        self.assertEqual(self.window.library.current_index, 1)

    def test_arrows_still_navigate_after_clicking_a_thumbnail(self) -> None:
        QApplication.processEvents()
        strip = self.window.strip
        rect = strip.visualItemRect(strip.item(2))
        QTest.mouseClick(strip.viewport(), Qt.LeftButton, Qt.NoModifier, rect.center())
        self.assertEqual(self.window.library.current_index, 2)
        self.assertIsNot(QApplication.focusWidget(), strip)

        QTest.keyClick(_focused(self.window), Qt.Key_Left)
        self.assertEqual(self.window.library.current_index, 1)


@unittest.skipIf(QT_MISSING, QT_MISSING)
class ThumbnailCacheTests(unittest.TestCase):
    def test_cache_drops_least_recently_used(self) -> None:
        strip = ThumbnailStrip(on_select=lambda idx: None, cache_limit=2)
        pm = QPixmap(4, 4)
        strip._store("a", pm)
        strip._store("b", pm)
        self.assertIsNotNone(strip._cached("a"))
        strip._store("c", pm)
        self.assertEqual(list(strip._cache), ["a", "c"])
        self.assertIsNone(strip._cached("b"))


@unittest.skipIf(QT_MISSING, QT_MISSING)
class ThumbnailTaskTests(unittest.TestCase):
    def _run(self, error: Exception):
        task = ThumbnailTask(Path("/pics/a.png"), (8, 6))
        got = []
        task.signals.loaded.connect(lambda key, qimg: got.append((key, qimg)))
        with mock.patch("ui.workers.load_thumbnail", side_effect=error):
            task.run()
        return got

    def test_decode_failures_report_an_empty_tile(self) -> None:
        for error in (Image.DecompressionBombError("huge"), OSError("truncated"), ValueError("bad")):
            with self.subTest(error=type(error).__name__):
                self.assertEqual(self._run(error), [(str(Path("/pics/a.png")), None)])

    def test_unexpected_errors_still_report_before_raising(self) -> None:
        task = ThumbnailTask(Path("/pics/a.png"), (8, 6))
        got = []
        task.signals.loaded.connect(lambda key, qimg: got.append(key))
        with mock.patch("ui.workers.load_thumbnail", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                task.run()
        self.assertEqual(got, [str(Path("/pics/a.png"))])


if __name__ == "__main__":
    unittest.main()
