from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from .types import Dimensions, LetterboxParams


@dataclass(frozen=True)
class PreprocessConfig:
    """
    - layout: "nhwc" -> (1, H, W, C) (TF/TFLite style), "nchw" -> (1, C, H, W) (ONNX/Torch exports)
    - bgr_to_rgb: flip channel order first (frames decoded by OpenCV are BGR)
    - input_scale: divisor that maps raw pixel intensities to [0, 1]
    """

    layout: str = "nhwc"
    bgr_to_rgb: bool = False
    input_scale: float = 255.0

    def __post_init__(self) -> None:
        if self.layout not in ("nhwc", "nchw"):
            raise ValueError(f"layout must be 'nhwc' or 'nchw', got {self.layout!r}")
        if self.input_scale <= 0:
            raise ValueError("input_scale must be > 0")


class TensorArena:
    """
    Pool of reusable NumPy buffers for the intermediates of one pipeline run.

    Under continuous video the same geometry repeats every frame, so buffers
    are keyed by name and only reallocated when shape/dtype change. `frame()`
    scopes a single run; buffers handed out inside it are overwritten by the
    next run, so callers must not hold on to them.
    """

    def __init__(self) -> None:
        self._pool: Dict[str, np.ndarray] = {}
        self._in_frame = False
        self.runs = 0
        self.allocations = 0

    def buffer(self, name: str, shape: Tuple[int, ...], dtype=np.float32) -> np.ndarray:
        buf = self._pool.get(name)
        if buf is None or buf.shape != tuple(shape) or buf.dtype != np.dtype(dtype):
            buf = np.empty(shape, dtype=dtype)
            self._pool[name] = buf
            self.allocations += 1
        return buf

    @contextmanager
    def frame(self) -> Iterator["TensorArena"]:
        if self._in_frame:
            raise RuntimeError("TensorArena.frame() does not nest; one pipeline run at a time.")
        self._in_frame = True
        try:
            yield self
        finally:
            self._in_frame = False
            self.runs += 1

    def release(self) -> None:
        self._pool.clear()

    @property
    def nbytes(self) -> int:
        return sum(b.nbytes for b in self._pool.values())


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for preprocess(). Install with `pip install opencv-python`.") from e
    return cv2


def preprocess(
    pixels: np.ndarray,
    params: LetterboxParams,
    model: Dimensions,
    cfg: PreprocessConfig = PreprocessConfig(),
    arena: Optional[TensorArena] = None,
) -> np.ndarray:
    """
    Normalize -> zero pad (letterbox) -> bilinear resize -> add batch axis.

    Padding happens before the resize, so the aspect ratio of the source is
    preserved inside the model input.

    Args:
        pixels: (H, W, C) or (H, W) image, intensities in [0, input_scale]
        params: output of compute_letterbox() for this image
        model: model input dimensions
        arena: optional buffer pool; when given, all intermediates live in it

    Returns:
        float32 blob shaped (1, H, W, C) or (1, C, H, W) depending on cfg.layout
    """

    cv2 = _require_cv2()

    if pixels is None or not hasattr(pixels, "shape"):
        raise TypeError("pixels must be a NumPy array.")
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.ndim not in (2, 3):
        raise ValueError(f"Expected image shape (H, W[, C]), got {pixels.shape}")

    src_h, src_w = pixels.shape[:2]
    if (src_w, src_h) != (params.source_width, params.source_height):
        raise ValueError(
            f"Image is {src_w}x{src_h} but letterbox params were computed for "
            f"{params.source_width}x{params.source_height}."
        )

    if cfg.bgr_to_rgb and pixels.ndim == 3:
        pixels = pixels[:, :, ::-1]

    extra = pixels.shape[2:]
    target = params.target_size

    if arena is None:
        normalized = np.divide(pixels, cfg.input_scale, dtype=np.float32)
        padded = cv2.copyMakeBorder(
            normalized, params.top, params.bottom, params.left, params.right, cv2.BORDER_CONSTANT, value=0
        )
        resized = cv2.resize(padded, (model.width, model.height), interpolation=cv2.INTER_LINEAR)
    else:
        normalized = arena.buffer("normalized", (src_h, src_w) + extra)
        np.divide(pixels, cfg.input_scale, out=normalized)
        padded = arena.buffer("padded", (target, target) + extra)
        padded = cv2.copyMakeBorder(
            normalized,
            params.top,
            params.bottom,
            params.left,
            params.right,
            cv2.BORDER_CONSTANT,
            dst=padded,
            value=0,
        )
        resized = arena.buffer("resized", (model.height, model.width) + extra)
        resized = cv2.resize(padded, (model.width, model.height), dst=resized, interpolation=cv2.INTER_LINEAR)

    if resized.ndim == 2:
        resized = resized[:, :, None]
    if cfg.layout == "nchw":
        resized = np.transpose(resized, (2, 0, 1))

    if arena is None:
        return np.ascontiguousarray(resized)[None, ...]

    batched = arena.buffer("batched", (1,) + resized.shape)
    np.copyto(batched[0], resized)
    return batched
