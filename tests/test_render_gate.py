import unittest

import numpy as np

from _fixtures import RecordingSurface
from pose_kit.types import Detection, Dimensions, Keypoint
from pose_kit.visualize import render_if_confident

try:
    import cv2  # type: ignore
except ImportError:  # pragma: no cover
    cv2 = None

THRESHOLD = 0.5
SIZE = Dimensions(100, 80)


def _det(score: float, confidences=(0.9, 0.5, 0.2, 0.51)) -> Detection:
    kps = tuple(Keypoint(10.0 * (i + 1), 20.0, c) for i, c in enumerate(confidences))
    return Detection(box=(10.0, 10.0, 90.0, 70.0), score=score, keypoints=kps)


class TestRenderGate(unittest.TestCase):
    def test_score_equal_to_threshold_is_not_drawn(self) -> None:
        surface = RecordingSurface()
        render_if_confident(_det(THRESHOLD), THRESHOLD, SIZE, surface, object())
        self.assertEqual(surface.calls, [])

    def test_score_below_threshold_is_not_drawn(self) -> None:
        surface = RecordingSurface()
        render_if_confident(_det(0.1), THRESHOLD, SIZE, surface, object())
        self.assertEqual(surface.calls, [])

    def test_score_just_above_threshold_is_drawn(self) -> None:
        surface = RecordingSurface()
        render_if_confident(_det(THRESHOLD + 1e-6), THRESHOLD, SIZE, surface, object())
        self.assertEqual(
            surface.calls[:4],
            [
                ("resize", 100, 80),
                ("clear", 100, 80),
                ("draw_image", 100, 80),
                ("stroke_rect", 10.0, 10.0, 80.0, 60.0),
            ],
        )

    def test_keypoints_use_their_own_confidence(self) -> None:
        surface = RecordingSurface()
        render_if_confident(_det(0.9), THRESHOLD, SIZE, surface, object(), keypoint_radius=3)
        circles = surface.named("fill_circle")
        # 0.9 and 0.51 pass; 0.5 (equal) and 0.2 are omitted.
        self.assertEqual(circles, [("fill_circle", 10.0, 20.0, 3), ("fill_circle", 40.0, 20.0, 3)])

    def test_box_is_drawn_even_without_confident_keypoints(self) -> None:
        surface = RecordingSurface()
        render_if_confident(_det(0.9, confidences=(0.1, 0.2)), THRESHOLD, SIZE, surface, object())
        self.assertEqual(len(surface.named("stroke_rect")), 1)
        self.assertEqual(surface.named("fill_circle"), [])


@unittest.skipIf(cv2 is None, "opencv-python is not installed")
class TestOpenCVSurface(unittest.TestCase):
    def test_draw_pose_marks_box_and_keypoint(self) -> None:
        from pose_kit.visualize import RenderStyle, draw_pose

        image = np.full((80, 100, 3), 30, dtype=np.uint8)
        det = Detection(box=(10.0, 10.0, 90.0, 70.0), score=0.9, keypoints=(Keypoint(50.0, 40.0, 0.95),))
        out = draw_pose(image, det, threshold=THRESHOLD, style=RenderStyle())

        self.assertEqual(out.shape, image.shape)
        self.assertEqual(tuple(out[10, 50]), (0, 255, 0))
        self.assertEqual(tuple(out[40, 50]), (0, 0, 255))
        self.assertEqual(tuple(out[5, 5]), (30, 30, 30))
        self.assertEqual(int(image[40, 50, 2]), 30)

    def test_draw_pose_below_threshold_returns_plain_copy(self) -> None:
        from pose_kit.visualize import draw_pose

        image = np.full((80, 100, 3), 30, dtype=np.uint8)
        out = draw_pose(image, _det(0.2), threshold=THRESHOLD)
        self.assertIsNot(out, image)
        self.assertTrue(np.array_equal(out, image))

    def test_surface_scales_source_to_requested_size(self) -> None:
        from pose_kit.visualize import OpenCVSurface

        surface = OpenCVSurface()
        surface.resize(20, 10)
        surface.draw_image(np.full((5, 10, 3), 200, dtype=np.uint8), 20, 10)
        self.assertEqual(surface.canvas.shape, (10, 20, 3))
        self.assertTrue(np.all(surface.canvas == 200))

    def test_surface_accepts_bgra_and_gray_sources(self) -> None:
        from pose_kit.visualize import OpenCVSurface

        bgra = np.zeros((10, 20, 4), dtype=np.uint8)
        bgra[..., 0] = 10
        bgra[..., 1] = 20
        bgra[..., 2] = 30
        bgra[..., 3] = 255
        surface = OpenCVSurface()
        surface.resize(20, 10)
        surface.draw_image(bgra, 20, 10)
        self.assertEqual(surface.canvas.shape, (10, 20, 3))
        self.assertEqual(tuple(surface.canvas[5, 5]), (10, 20, 30))

        surface.draw_image(np.full((10, 20), 77, dtype=np.uint8), 20, 10)
        self.assertEqual(tuple(surface.canvas[5, 5]), (77, 77, 77))

    def test_render_gate_draws_bgra_frame(self) -> None:
        from pose_kit.visualize import OpenCVSurface

        frame = np.full((80, 100, 4), 40, dtype=np.uint8)
        surface = OpenCVSurface()
        render_if_confident(_det(0.9), THRESHOLD, SIZE, surface, frame)
        self.assertEqual(surface.canvas.shape, (80, 100, 3))
        self.assertEqual(tuple(surface.canvas[75, 95]), (40, 40, 40))

    def test_draw_pose_at_threshold_returns_plain_copy(self) -> None:
        from pose_kit.visualize import draw_pose

        image = np.full((80, 100, 3), 30, dtype=np.uint8)
        out = draw_pose(image, _det(THRESHOLD), threshold=THRESHOLD)
        self.assertTrue(np.array_equal(out, image))


if __name__ == "__main__":
    unittest.main()
