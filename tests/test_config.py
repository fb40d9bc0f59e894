import json
import tempfile
import unittest
from pathlib import Path

from pose_kit.config import PoseRunConfig, load_run_config


class TestRunConfig(unittest.TestCase):
    def _write_config(self, payload: dict) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "run.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_load_ok(self) -> None:
        path = self._write_config(
            {
                "schema_version": 1,
                "model_path": "models/yolov8n-pose.onnx",
                "backend": "onnxruntime",
                "layout": "nchw",
                "conf_threshold": 0.4,
                "keypoint_radius": 3,
                "notes": "test",
            }
        )
        cfg = load_run_config(path)
        self.assertIsInstance(cfg, PoseRunConfig)
        self.assertEqual(cfg.model_path, "models/yolov8n-pose.onnx")
        self.assertEqual(cfg.backend, "onnxruntime")
        self.assertEqual(cfg.layout, "nchw")
        self.assertEqual(cfg.conf_threshold, 0.4)
        self.assertEqual(cfg.keypoint_radius, 3)
        self.assertTrue(cfg.bgr_to_rgb)
        self.assertEqual(cfg.notes, "test")

    def test_defaults(self) -> None:
        cfg = load_run_config(self._write_config({"model_path": "m.onnx"}))
        self.assertEqual(cfg.schema_version, 1)
        self.assertIsNone(cfg.backend)
        self.assertEqual(cfg.input_size, 640)
        self.assertEqual(cfg.conf_threshold, 0.5)

    def test_unknown_keys_rejected(self) -> None:
        path = self._write_config({"model_path": "m.onnx", "iou_threshold": 0.5})
        with self.assertRaises(ValueError):
            load_run_config(path)

    def test_missing_model_path_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_run_config(self._write_config({"conf_threshold": 0.5}))

    def test_threshold_out_of_range_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_run_config(self._write_config({"model_path": "m.onnx", "conf_threshold": 1.5}))

    def test_bool_is_not_a_number(self) -> None:
        with self.assertRaises(ValueError):
            load_run_config(self._write_config({"model_path": "m.onnx", "conf_threshold": True}))

    def test_unknown_backend_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_run_config(self._write_config({"model_path": "m.onnx", "backend": "tensorflowjs"}))

    def test_invalid_json_rejected(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "run.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_run_config(path)

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_run_config(Path("/nonexistent/run.json"))


if __name__ == "__main__":
    unittest.main()
