from __future__ import annotations

import unittest

from PIL import Image

from core.compositor import bake, composite_text, render_text_badge
from core.filters import FilterType
from core.geometry import Point, Size
from core.text_overlay import TextOverlayState, estimate_text_box

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)


def _grow_catalog(name, image):
    """Stand-in filter that pads a 100x100 image to 140x140 with green."""
    out = Image.new("RGBA", (image.width + 40, image.height + 40), GREEN)
    out.paste(image, (20, 20))
    return out


def _failing_catalog(name, image):
    return None


class RenderTextBadgeTests(unittest.TestCase):
    def test_no_text_gives_no_badge(self) -> None:
        self.assertIsNone(render_text_badge(TextOverlayState(text="")))

    def test_badge_matches_estimated_box_at_display_scale(self) -> None:
        overlay = TextOverlayState(text="Hello", size=30)
        badge = render_text_badge(overlay)
        box = estimate_text_box(overlay)
        self.assertLessEqual(abs(badge.width - box.width), 1)
        self.assertLessEqual(abs(badge.height - box.height), 1)

    def test_badge_scales_with_pixel_density(self) -> None:
        overlay = TextOverlayState(text="Hello", size=30)
        small = render_text_badge(overlay, 1.0)
        large = render_text_badge(overlay, 2.0)
        self.assertGreater(large.width, small.width * 1.5)


class BakeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.image = Image.new("RGBA", (100, 100), (0, 0, 255, 255))
        self.overlay = TextOverlayState(
            text="Hi", size=20, color=RED, background=RED, anchor=Point(50, 50)
        )

    def test_text_lands_on_enlarged_filter_output(self) -> None:
        out = bake(self.image, FilterType.GAUSSIAN_BLUR, self.overlay, Size(100, 100), catalog=_grow_catalog)
        self.assertEqual(out.size, (140, 140))
        # Display center (50, 50) maps to pixel (70, 70) of the grown image
        self.assertEqual(out.getpixel((70, 70)), RED)
        self.assertEqual(out.getpixel((1, 1)), GREEN)

    def test_text_is_scaled_to_output_resolution(self) -> None:
        big = self.image.resize((400, 400))
        out = bake(big, FilterType.NONE, self.overlay, Size(100, 100))
        badge = render_text_badge(self.overlay)
        red = sum(1 for px in out.getdata() if px == RED)
        # Four times the display size on each axis
        self.assertGreater(red, badge.width * badge.height * 8)

    def test_failed_filter_keeps_original(self) -> None:
        out = bake(self.image, FilterType.SEPIA, None, Size(100, 100), catalog=_failing_catalog)
        self.assertIs(out, self.image)

    def test_degenerate_container_skips_text(self) -> None:
        out = composite_text(self.image, self.overlay, Size(0, 0))
        self.assertIs(out, self.image)

    def test_no_layout_skips_text(self) -> None:
        out = bake(self.image, FilterType.NONE, self.overlay, None)
        self.assertIs(out, self.image)

    def test_input_is_not_mutated(self) -> None:
        before = self.image.tobytes()
        bake(self.image, FilterType.NONE, self.overlay, Size(100, 100))
        self.assertEqual(self.image.tobytes(), before)

    def test_unset_anchor_is_centered(self) -> None:
        overlay = TextOverlayState(text="Hi", size=20, color=RED, background=RED)
        out = bake(self.image, FilterType.NONE, overlay, Size(300, 100))
        self.assertEqual(out.getpixel((50, 50)), RED)
        self.assertEqual(out.getpixel((2, 2)), (0, 0, 255, 255))


if __name__ == "__main__":
    unittest.main()
