from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from .letterbox import compute_letterbox
from .postprocess import PoseDecodeConfig, PosePostprocessor, SelectionPolicy, argmax_objectness
from .preprocess import PreprocessConfig, TensorArena, preprocess
from .types import Detection, Dimensions, LetterboxParams
from .visualize import DrawSurface, render_if_confident

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery, so model paths like `models/yolov8n-pose.onnx`
    resolve the same way from scripts, tests and notebooks.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`
    (or the project root when root is "auto"/None).
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    params: LetterboxParams


class PosePipeline:
    """
    Single-subject pose pipeline: letterbox -> inference -> best detection -> unmap.

    `infer_fn` is the opaque model call: it receives the batched input blob and
    returns the raw pose-head output. When an arena is given, every call reuses
    its buffers, so the blob returned by `preprocess()` is only valid until the
    next call.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        model_dims: Dimensions = Dimensions(640, 640),
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        preprocess_cfg: PreprocessConfig = PreprocessConfig(),
        decode_cfg: PoseDecodeConfig = PoseDecodeConfig(),
        policy: SelectionPolicy = argmax_objectness,
        arena: Optional[TensorArena] = None,
    ):
        self._infer_fn = infer_fn
        self.model_dims = model_dims
        self.backend = backend
        self.backend_name = backend_name
        self.preprocess_cfg = preprocess_cfg
        self.post = PosePostprocessor(decode_cfg, policy=policy)
        self.arena = arena

    def preprocess(self, image: np.ndarray) -> PreprocessResult:
        if image is None or not hasattr(image, "shape"):
            raise TypeError("image must be a NumPy array.")
        params = compute_letterbox(Dimensions.from_shape(image.shape), self.model_dims)
        blob = preprocess(image, params, self.model_dims, self.preprocess_cfg, arena=self.arena)
        return PreprocessResult(blob=blob, params=params)

    def __call__(self, image: np.ndarray) -> Detection:
        prep = self.preprocess(image)
        raw = self._infer_fn(prep.blob)
        return self.post.process(raw, prep.params)

    def run(self, image: np.ndarray, surface: DrawSurface, threshold: float = 0.5, keypoint_radius: float = 5) -> Detection:
        """
        Full per-frame pass including the render gate. Returns the source-space detection.
        """

        detection = self(image)
        sizing = Dimensions.from_shape(image.shape)
        render_if_confident(detection, threshold, sizing, surface, image, keypoint_radius=keypoint_radius)
        return detection


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    preprocess_cfg: Optional[PreprocessConfig] = None,
    decode_cfg: PoseDecodeConfig = PoseDecodeConfig(),
    policy: SelectionPolicy = argmax_objectness,
    arena: Optional[TensorArena] = None,
    bgr_input: bool = True,
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
    input_size: int = 640,
) -> PosePipeline:
    """
    Create a pipeline for a pose model on disk.

        pipe = load_pipeline("models/yolov8n-pose.onnx")
        det = pipe(cv2.imread("person.jpg"))

    Args:
        model_path: path to the model file; relative paths resolve against the project root by default
        backend: "onnxruntime" or "torchscript"; None infers it from the extension
        preprocess_cfg: overrides the layout/BGR handling derived from the backend
        bgr_input: frames come from OpenCV (BGR) and are flipped to RGB before inference
        input_size: square input side used when the backend cannot report it
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    infer_backend: Any
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        infer_backend = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=onnx_providers))
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        infer_backend = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, half=torch_half, input_size=input_size),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    model_dims = infer_backend.input_dims or Dimensions(input_size, input_size)
    if preprocess_cfg is None:
        preprocess_cfg = PreprocessConfig(layout=infer_backend.layout or "nchw", bgr_to_rgb=bgr_input)

    logger.debug("pipeline: backend=%s model_dims=%s layout=%s", chosen, model_dims, preprocess_cfg.layout)
    return PosePipeline(
        infer_backend.infer,
        model_dims=model_dims,
        backend=infer_backend,
        backend_name=chosen,
        preprocess_cfg=preprocess_cfg,
        decode_cfg=decode_cfg,
        policy=policy,
        arena=arena,
    )
