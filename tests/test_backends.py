import unittest

from pose_kit.backends import infer_input_geometry
from pose_kit.types import Dimensions


class TestInputGeometry(unittest.TestCase):
    def test_nchw(self) -> None:
        self.assertEqual(infer_input_geometry([1, 3, 640, 640]), (Dimensions(640, 640), "nchw"))

    def test_nhwc(self) -> None:
        self.assertEqual(infer_input_geometry([1, 480, 640, 3]), (Dimensions(640, 480), "nhwc"))

    def test_dynamic_axes(self) -> None:
        self.assertEqual(infer_input_geometry(["batch", 3, "height", "width"]), (None, "nchw"))
        self.assertEqual(infer_input_geometry([None, None, None, 3]), (None, "nhwc"))

    def test_not_an_image_input(self) -> None:
        self.assertEqual(infer_input_geometry([1, 56]), (None, None))
        self.assertEqual(infer_input_geometry([1, 8, 8, 8]), (None, None))


if __name__ == "__main__":
    unittest.main()
