import importlib.util
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

try:
    import cv2  # type: ignore  # noqa: F401
except ImportError:  # pragma: no cover
    cv2 = None

_SCRIPT = Path(__file__).resolve().parents[1] / "Scripts" / "run_pose.py"


class _PipelineLoaded(Exception):
    pass


def _load_script():
    spec = importlib.util.spec_from_file_location("run_pose_script", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@unittest.skipIf(cv2 is None, "opencv-python is not installed")
class TestRunPoseScript(unittest.TestCase):
    def _pipeline_kwargs(self, argv, payload=None) -> dict:
        script = _load_script()
        if payload is not None:
            tmpdir = tempfile.TemporaryDirectory()
            self.addCleanup(tmpdir.cleanup)
            path = Path(tmpdir.name) / "run.json"
            path.write_text(json.dumps(payload), encoding="utf-8")
            argv = argv + ["--config", str(path)]

        captured = {}

        def fake_load_pipeline(model_path, **kwargs):
            captured["model_path"] = model_path
            captured.update(kwargs)
            raise _PipelineLoaded()

        with mock.patch.object(script, "load_pipeline", fake_load_pipeline), mock.patch(
            "sys.argv", ["run_pose.py"] + argv
        ):
            with self.assertRaises(_PipelineLoaded):
                script.main()
        return captured

    def test_config_bgr_to_rgb_false_reaches_pipeline(self) -> None:
        kwargs = self._pipeline_kwargs([], {"model_path": "m.onnx", "bgr_to_rgb": False})
        self.assertEqual(kwargs["model_path"], "m.onnx")
        self.assertIs(kwargs["bgr_input"], False)
        self.assertIsNone(kwargs["preprocess_cfg"])

    def test_config_with_layout_keeps_channel_order(self) -> None:
        kwargs = self._pipeline_kwargs([], {"model_path": "m.onnx", "layout": "nhwc", "bgr_to_rgb": False})
        self.assertIs(kwargs["bgr_input"], False)
        self.assertEqual(kwargs["preprocess_cfg"].layout, "nhwc")
        self.assertFalse(kwargs["preprocess_cfg"].bgr_to_rgb)

    def test_without_config_frames_are_treated_as_bgr(self) -> None:
        kwargs = self._pipeline_kwargs(["--model", "x.onnx"])
        self.assertEqual(kwargs["model_path"], "x.onnx")
        self.assertIs(kwargs["bgr_input"], True)


if __name__ == "__main__":
    unittest.main()
