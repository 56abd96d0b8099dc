from __future__ import annotations

import random
import unittest

from PIL import Image

from core.crop import (
    RESIZE_HANDLES,
    CropState,
    Handle,
    begin_drag,
    crop_image,
    default_crop_state,
    end_drag,
    hit_test,
    update_drag,
)
from core.geometry import Point, Rect, Size, display_rect_for_image


class DefaultCropTests(unittest.TestCase):
    def test_default_is_centered_eighty_percent(self) -> None:
        state = default_crop_state(Size(1000, 500))
        self.assertEqual(state.rect, Rect(100.0, 50.0, 800.0, 400.0))
        self.assertFalse(state.is_dragging)

    def test_small_image_uses_minimum_or_whole_axis(self) -> None:
        state = default_crop_state(Size(55, 30))
        self.assertAlmostEqual(state.rect.width, 50.0)
        self.assertAlmostEqual(state.rect.x, 2.5)
        self.assertEqual((state.rect.y, state.rect.height), (0.0, 30.0))


class CropDragTests(unittest.TestCase):
    def _drag(self, state: CropState, handle: Handle, *translations, display=Rect(0, 0, 1000, 1000)) -> CropState:
        state = begin_drag(state, handle)
        for t in translations:
            state = update_drag(state, t, display)
        return end_drag(state)

    def test_move_clamps_exactly_to_origin(self) -> None:
        state = CropState(Size(1000, 1000), Rect(50, 50, 200, 200))
        # Display is half size: 1 display unit = 2 pixels; dragging down-left
        out = self._drag(state, Handle.MOVE, (-1000, 1000), display=Rect(0, 0, 500, 500))
        self.assertEqual(out.rect, Rect(0.0, 0.0, 200.0, 200.0))

    def test_move_uses_cumulative_translation_from_snapshot(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        out = self._drag(state, Handle.MOVE, (10, 0), (20, 0), (30, 0))
        self.assertEqual(out.rect.x, 130.0)

    def test_top_handle_grows_upward_in_pixel_space(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        out = self._drag(state, Handle.TOP, (0, -50))
        self.assertEqual(out.rect, Rect(100.0, 100.0, 200.0, 250.0))

    def test_bottom_handle_moves_origin(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        out = self._drag(state, Handle.BOTTOM, (0, 40))
        self.assertEqual(out.rect, Rect(100.0, 60.0, 200.0, 240.0))

    def test_rejected_axis_keeps_last_valid_extent(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        out = self._drag(state, Handle.RIGHT, (50, 0), (-180, 0))
        self.assertEqual(out.rect, Rect(100.0, 100.0, 250.0, 200.0))

    def test_left_past_edge_is_rejected(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        out = self._drag(state, Handle.LEFT, (-150, 0))
        self.assertEqual(out.rect, Rect(100.0, 100.0, 200.0, 200.0))

    def test_corner_rejects_each_axis_independently(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        # x shrinks below the minimum, y grows normally
        out = self._drag(state, Handle.TOP_RIGHT, (-190, -30))
        self.assertEqual(out.rect, Rect(100.0, 100.0, 200.0, 230.0))

    def test_exact_minimum_and_edge_are_accepted(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        self.assertEqual(self._drag(state, Handle.RIGHT, (-150, 0)).rect.width, 50.0)
        self.assertEqual(self._drag(state, Handle.RIGHT, (700, 0)).rect.max_x, 1000.0)

    def test_idle_or_degenerate_updates_are_no_ops(self) -> None:
        state = CropState(Size(1000, 1000), Rect(100, 100, 200, 200))
        self.assertIs(update_drag(state, (10, 10), Rect(0, 0, 100, 100)), state)
        dragging = begin_drag(state, Handle.MOVE)
        self.assertIs(update_drag(dragging, (10, 10), Rect(0, 0, 0, 0)), dragging)
        self.assertIs(update_drag(dragging, (float("inf"), 0), Rect(0, 0, 100, 100)), dragging)

    def test_random_gestures_keep_invariants(self) -> None:
        rng = random.Random(1234)
        image = Size(1200, 800)
        display = display_rect_for_image(image, Size(900, 700))
        state = default_crop_state(image)
        handles = list(Handle)
        for _ in range(300):
            state = begin_drag(state, rng.choice(handles))
            for _ in range(rng.randint(1, 6)):
                t = (rng.uniform(-900, 900), rng.uniform(-700, 700))
                state = update_drag(state, t, display)
                self.assertTrue(state.satisfies_invariants(), state.rect)
            state = end_drag(state)


class HitTestTests(unittest.TestCase):
    def setUp(self) -> None:
        self.state = CropState(Size(1000, 1000), Rect(100, 100, 800, 800))
        # Frame on screen: (50, 50) to (450, 450)
        self.display = Rect(0, 0, 500, 500)

    def test_handles_and_move_region(self) -> None:
        self.assertIs(hit_test(self.state, self.display, Point(52, 48)), Handle.TOP_LEFT)
        self.assertIs(hit_test(self.state, self.display, Point(450, 450)), Handle.BOTTOM_RIGHT)
        self.assertIs(hit_test(self.state, self.display, Point(250, 50)), Handle.TOP)
        self.assertIs(hit_test(self.state, self.display, Point(250, 250)), Handle.MOVE)

    def test_outside_frame_misses(self) -> None:
        self.assertIsNone(hit_test(self.state, self.display, Point(5, 250)))

    def test_every_resize_handle_is_reachable(self) -> None:
        self.assertEqual(len(RESIZE_HANDLES), 8)
        for handle in RESIZE_HANDLES:
            fx, fy = handle.position
            p = Point(50 + 400 * fx, 50 + 400 * fy)
            self.assertIs(hit_test(self.state, self.display, p), handle)


class CropImageTests(unittest.TestCase):
    def _two_tone(self) -> Image.Image:
        img = Image.new("RGBA", (200, 100), (0, 0, 255, 255))
        img.paste((255, 0, 0, 255), (0, 0, 200, 50))  # top half red
        return img

    def test_dimensions_match_rect(self) -> None:
        out = crop_image(self._two_tone(), Rect(10.4, 20, 49.6, 30))
        self.assertEqual(out.size, (50, 30))

    def test_pixel_space_origin_is_bottom_left(self) -> None:
        img = self._two_tone()
        self.assertEqual(crop_image(img, Rect(0, 0, 50, 30)).getpixel((5, 5)), (0, 0, 255, 255))
        self.assertEqual(crop_image(img, Rect(0, 70, 50, 30)).getpixel((5, 5)), (255, 0, 0, 255))

    def test_source_is_not_modified(self) -> None:
        img = self._two_tone()
        crop_image(img, Rect(0, 0, 50, 50))
        self.assertEqual(img.size, (200, 100))


if __name__ == "__main__":
    unittest.main()
