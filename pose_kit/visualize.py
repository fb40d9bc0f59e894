from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple

import numpy as np

from .types import Detection, Dimensions


class DrawSurface(Protocol):
    """
    Minimal canvas capability set used by the render gate.
    """

    def resize(self, width: int, height: int) -> None: ...

    def clear(self, width: int, height: int) -> None: ...

    def draw_image(self, source: Any, width: int, height: int) -> None: ...

    def stroke_rect(self, x: float, y: float, width: float, height: float) -> None: ...

    def fill_circle(self, x: float, y: float, radius: float) -> None: ...


@dataclass(frozen=True)
class RenderStyle:
    # BGR (OpenCV order)
    box_color: Tuple[int, int, int] = (0, 255, 0)
    keypoint_color: Tuple[int, int, int] = (0, 0, 255)
    line_width: int = 2
    keypoint_radius: int = 5


def render_if_confident(
    detection: Detection,
    threshold: float,
    sizing: Dimensions,
    surface: DrawSurface,
    source: Any,
    keypoint_radius: float = 5,
) -> None:
    """
    Draw one detection if its score clears the threshold.

    Two independent gates share the same threshold: the whole detection is
    skipped unless `score > threshold`; inside a drawn detection each keypoint
    is drawn only when its own confidence is `> threshold`.
    """

    if detection.score <= threshold:
        return

    w, h = sizing.width, sizing.height
    surface.resize(w, h)
    surface.clear(w, h)
    surface.draw_image(source, w, h)

    x1, y1, x2, y2 = detection.box
    surface.stroke_rect(x1, y1, x2 - x1, y2 - y1)

    for kp in detection.keypoints:
        if kp.confidence > threshold:
            surface.fill_circle(kp.x, kp.y, keypoint_radius)


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for OpenCVSurface. Install with `pip install opencv-python`.") from e
    return cv2


class OpenCVSurface:
    """
    DrawSurface backed by a BGR NumPy canvas.
    """

    def __init__(self, style: RenderStyle = RenderStyle()):
        self._cv2 = _require_cv2()
        self.style = style
        self.canvas: Optional[np.ndarray] = None

    def resize(self, width: int, height: int) -> None:
        if self.canvas is None or self.canvas.shape[:2] != (height, width):
            self.canvas = np.zeros((height, width, 3), dtype=np.uint8)

    def clear(self, width: int, height: int) -> None:
        self.resize(width, height)
        self.canvas[...] = 0

    def draw_image(self, source: Any, width: int, height: int) -> None:
        if source is None or not hasattr(source, "shape"):
            raise TypeError("source must be a NumPy array (BGR).")
        img = source
        if img.ndim not in (2, 3):
            raise ValueError(f"Expected image shape (H, W[, C]), got {img.shape}")
        if img.ndim == 3 and img.shape[2] == 1:
            img = img[:, :, 0]
        if img.ndim == 2:
            img = self._cv2.cvtColor(img, self._cv2.COLOR_GRAY2BGR)
        elif img.shape[2] == 4:
            img = self._cv2.cvtColor(img, self._cv2.COLOR_BGRA2BGR)
        elif img.shape[2] != 3:
            raise ValueError(f"Expected a gray, BGR or BGRA source, got shape {img.shape}")
        if img.shape[:2] != (height, width):
            img = self._cv2.resize(img, (width, height), interpolation=self._cv2.INTER_LINEAR)
        self.resize(width, height)
        self.canvas[...] = img

    def stroke_rect(self, x: float, y: float, width: float, height: float) -> None:
        p1 = (int(round(x)), int(round(y)))
        p2 = (int(round(x + width)), int(round(y + height)))
        self._cv2.rectangle(self.canvas, p1, p2, self.style.box_color, thickness=self.style.line_width)

    def fill_circle(self, x: float, y: float, radius: float) -> None:
        center = (int(round(x)), int(round(y)))
        self._cv2.circle(
            self.canvas,
            center,
            int(round(radius)),
            self.style.keypoint_color,
            thickness=-1,
            lineType=self._cv2.LINE_AA,
        )


def draw_pose(
    image_bgr: np.ndarray,
    detection: Detection,
    *,
    threshold: float = 0.5,
    style: RenderStyle = RenderStyle(),
) -> np.ndarray:
    """
    Draw box + keypoints on an OpenCV BGR image and return a copy.

    Detections below the threshold return an unannotated copy.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    surface = OpenCVSurface(style)
    render_if_confident(
        detection,
        threshold,
        Dimensions.from_shape(image_bgr.shape),
        surface,
        image_bgr,
        keypoint_radius=style.keypoint_radius,
    )
    if surface.canvas is None:
        return image_bgr.copy()
    return surface.canvas
