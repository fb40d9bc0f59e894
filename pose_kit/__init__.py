"""
Post-processing helpers for single-subject YOLO pose models.

Letterbox an arbitrary frame into the square model input, pick the best
detection from the raw (1, 56, 8400) output, map it back to source pixels and
draw it. Core pieces need only NumPy; OpenCV is used for resize/pad/drawing.
"""

from .types import KEYPOINT_NAMES, Detection, Dimensions, Keypoint, LetterboxParams
from .letterbox import compute_letterbox, project_point
from .preprocess import PreprocessConfig, TensorArena, preprocess
from .postprocess import OutputShapeError, PoseDecodeConfig, PosePostprocessor, argmax_objectness, select_best
from .unmap import transform_coordinate, unmap_detection
from .visualize import DrawSurface, OpenCVSurface, RenderStyle, draw_pose, render_if_confident
from .runtime import PosePipeline, find_project_root, load_pipeline, resolve_path
from .live import LiveRunner
from .config import PoseRunConfig, load_run_config

__all__ = [
    "KEYPOINT_NAMES",
    "Detection",
    "Dimensions",
    "Keypoint",
    "LetterboxParams",
    "compute_letterbox",
    "project_point",
    "PreprocessConfig",
    "TensorArena",
    "preprocess",
    "OutputShapeError",
    "PoseDecodeConfig",
    "PosePostprocessor",
    "argmax_objectness",
    "select_best",
    "transform_coordinate",
    "unmap_detection",
    "DrawSurface",
    "OpenCVSurface",
    "RenderStyle",
    "draw_pose",
    "render_if_confident",
    "PosePipeline",
    "find_project_root",
    "load_pipeline",
    "resolve_path",
    "LiveRunner",
    "PoseRunConfig",
    "load_run_config",
]
