from __future__ import annotations

import unittest
from unittest import mock

from PIL import Image

from core.filters import FilterType, apply_filter


class FilterCatalogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.image = Image.new("RGBA", (40, 30), (200, 120, 40, 255))
        self.image.paste((20, 40, 220, 255), (0, 0, 20, 30))

    def test_none_is_identity(self) -> None:
        self.assertIs(apply_filter("none", self.image), self.image)

    def test_unknown_name_gives_none(self) -> None:
        with self.assertLogs("core.filters", level="WARNING"):
            self.assertIsNone(apply_filter("kaleidoscope", self.image))

    def test_every_filter_returns_an_image(self) -> None:
        for ftype in FilterType:
            with self.subTest(filter=ftype.value):
                out = apply_filter(ftype, self.image)
                self.assertIsInstance(out, Image.Image)
                self.assertEqual(out.mode, "RGBA")
                self.assertTrue(ftype.label)

    def test_blur_family_grows_extent(self) -> None:
        for ftype in (FilterType.GAUSSIAN_BLUR, FilterType.BLOOM, FilterType.GLOOM):
            with self.subTest(filter=ftype.value):
                self.assertEqual(apply_filter(ftype, self.image).size, (100, 90))

    def test_other_filters_keep_extent(self) -> None:
        for ftype in (FilterType.SEPIA, FilterType.CRYSTALLIZE, FilterType.PIXELLATE, FilterType.COMIC):
            with self.subTest(filter=ftype.value):
                self.assertEqual(apply_filter(ftype, self.image).size, (40, 30))

    def test_mono_removes_saturation(self) -> None:
        r, g, b, a = apply_filter(FilterType.MONO, self.image).getpixel((30, 15))
        self.assertEqual((r, g, b), (r, r, r))
        self.assertEqual(a, 255)

    def test_filter_error_gives_none(self) -> None:
        with mock.patch.dict("core.filters._FILTERS", {FilterType.SEPIA: mock.Mock(side_effect=ValueError("bad"))}):
            with self.assertLogs("core.filters", level="WARNING"):
                self.assertIsNone(apply_filter(FilterType.SEPIA, self.image))


if __name__ == "__main__":
    unittest.main()
