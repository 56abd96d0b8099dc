from __future__ import annotations

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from core.errors import DirectoryReadFailure, TrashFailure
from core.io import SaveAction
from core.library import ImageLibrary, list_images, resolve_open_target


def _touch(folder: Path, *names: str) -> None:
    for name in names:
        (folder / name).write_bytes(b"x")


class ListImagesTests(unittest.TestCase):
    def test_filters_by_extension_case_insensitively_and_sorts(self) -> None:
        with TemporaryDirectory() as td:
            root = Path(td)
            _touch(root, "c.png", "a.JPG", "b.HeIc", "notes.txt", "noext")
            (root / "sub.png").mkdir()
            names = [p.name for p in list_images(root)]
        self.assertEqual(names, ["a.JPG", "b.HeIc", "c.png"])

    def test_missing_folder_raises(self) -> None:
        with TemporaryDirectory() as td:
            with self.assertRaises(DirectoryReadFailure):
                list_images(Path(td) / "missing")

    def test_resolve_open_target(self) -> None:
        with TemporaryDirectory() as td:
            root = Path(td)
            _touch(root, "a.png")
            self.assertEqual(resolve_open_target(root), (root, None))
            self.assertEqual(resolve_open_target(root / "a.png"), (root, root / "a.png"))


class ImageLibraryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        self.root = Path(self._td.name)
        _touch(self.root, "a.png", "b.png", "c.png")
        self.library = ImageLibrary()

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_open_folder_selects_first(self) -> None:
        self.library.open(self.root)
        self.assertEqual(len(self.library), 3)
        self.assertEqual(self.library.current_name, "a.png")

    def test_open_file_selects_it(self) -> None:
        self.library.open(self.root / "b.png")
        self.assertEqual(self.library.current_index, 1)

    def test_navigation_stops_at_ends(self) -> None:
        self.library.open(self.root)
        self.assertFalse(self.library.previous())
        self.assertTrue(self.library.next())
        self.assertTrue(self.library.next())
        self.assertFalse(self.library.next())
        self.assertEqual(self.library.current_name, "c.png")
        self.assertTrue(self.library.select(0))
        self.assertFalse(self.library.select(3))
        self.assertEqual(self.library.current_index, 0)

    def test_empty_folder_is_reported(self) -> None:
        with TemporaryDirectory() as td:
            _touch(Path(td), "readme.txt")
            with self.assertRaises(DirectoryReadFailure) as ctx:
                self.library.open(td)
        self.assertEqual(ctx.exception.user_message, "No supported images found in the selected folder.")
        self.assertIsNone(self.library.current_path)
        self.assertEqual(self.library.current_name, "No Image Selected")

    def test_timeline_window_is_bounded(self) -> None:
        paths = [self.root / f"{i:03d}.png" for i in range(200)]
        self.library.set_listing(self.root, paths, paths[100])
        window = self.library.timeline_window()
        self.assertEqual((window.start, window.stop), (50, 151))
        self.library.select(0)
        self.assertEqual(self.library.timeline_window(), range(0, 51))

    def test_delete_moves_to_trash_and_keeps_position(self) -> None:
        self.library.open(self.root / "b.png")
        with mock.patch("core.library.send2trash") as trash:
            removed = self.library.delete_current()
        trash.assert_called_once_with(str(self.root / "b.png"))
        self.assertEqual(removed, self.root / "b.png")
        self.assertEqual(self.library.current_name, "c.png")

    def test_delete_last_selects_previous(self) -> None:
        self.library.open(self.root / "c.png")
        with mock.patch("core.library.send2trash"):
            self.library.delete_current()
        self.assertEqual(self.library.current_name, "b.png")

    def test_delete_only_image_clears_selection(self) -> None:
        self.library.set_listing(self.root, [self.root / "a.png"])
        with mock.patch("core.library.send2trash"):
            self.library.delete_current()
        self.assertIsNone(self.library.current_index)
        self.assertEqual(len(self.library), 0)

    def test_trash_error_is_reported_and_listing_kept(self) -> None:
        self.library.open(self.root)
        with mock.patch("core.library.send2trash", side_effect=OSError("no trash")):
            with self.assertRaises(TrashFailure):
                self.library.delete_current()
        self.assertEqual(len(self.library), 3)

    def test_record_saved_create_new_rescans_and_selects(self) -> None:
        self.library.open(self.root / "a.png")
        written = self.root / "a-edited.png"
        written.write_bytes(b"x")
        self.library.record_saved(self.root / "a.png", written, SaveAction.CREATE_NEW)
        self.assertEqual(len(self.library), 4)
        self.assertEqual(self.library.current_path, written)

    def test_record_saved_replace_swaps_entry(self) -> None:
        self.library.open(self.root / "b.png")
        self.library.record_saved(self.root / "b.png", self.root / "b.jpg", SaveAction.REPLACE)
        self.assertEqual(self.library.current_name, "b.jpg")
        self.assertEqual(len(self.library), 3)


if __name__ == "__main__":
    unittest.main()
