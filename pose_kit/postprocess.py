from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .types import Detection, Keypoint, LetterboxParams
from .unmap import unmap_detection

SelectionPolicy = Callable[[np.ndarray], int]


class OutputShapeError(ValueError):
    """
    Raised when the inference output does not match the configured pose head layout.
    """


def argmax_objectness(scores: np.ndarray) -> int:
    """
    Index of the highest objectness score. No threshold, no NMS; ties go to the
    lowest anchor index.
    """

    if scores.size == 0:
        raise OutputShapeError("Cannot select from an empty score vector.")
    return int(np.argmax(scores))


@dataclass(frozen=True)
class PoseDecodeConfig:
    """
    Layout of a single-class pose head.

    Channels per anchor: [cx, cy, w, h, objectness, kp1_x, kp1_y, kp1_conf, ...].
    - num_anchors: expected anchor count (8400 for a 640x640 YOLOv8 head); None accepts any
    - channels_first: True for (1, C, A) exports, False for (1, A, C)
    """

    num_keypoints: int = 17
    keypoint_dims: int = 3
    num_anchors: Optional[int] = 8400
    channels_first: bool = True

    @property
    def num_channels(self) -> int:
        return 5 + self.num_keypoints * self.keypoint_dims


class PosePostprocessor:
    """
    Picks the single best pose from a raw pose-head output.

    Supported layouts (per image):
    - (1, C, A) or (C, A): channels first, e.g. 56 x 8400
    - (1, A, C) or (A, C): with channels_first=False
    - flat buffer of C * A values in the same order as the channels-first/last layout

    The selection policy is pluggable so a multi-detection variant can replace
    the argmax without touching decoding.
    """

    def __init__(self, cfg: PoseDecodeConfig = PoseDecodeConfig(), policy: SelectionPolicy = argmax_objectness):
        if cfg.keypoint_dims < 2:
            raise ValueError("keypoint_dims must be >= 2 (x, y[, conf]).")
        self.cfg = cfg
        self.policy = policy

    def select(self, raw: np.ndarray) -> Detection:
        """
        Best detection in model-space coordinates.
        """

        rows = self._decode(raw)
        idx = self.policy(rows[:, 4])
        if not 0 <= idx < rows.shape[0]:
            raise IndexError(f"Selection policy returned anchor {idx}, valid range is [0, {rows.shape[0]}).")
        return self._to_detection(rows[idx])

    def process(self, raw: np.ndarray, params: LetterboxParams) -> Detection:
        """
        Best detection mapped back to source-image coordinates.
        """

        return unmap_detection(self.select(raw), params)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _decode(self, raw: np.ndarray) -> np.ndarray:
        """
        Return an (A, C) view of the output. For channels-first tensors this is a
        transposed view, no data is reordered.
        """

        p = np.asarray(raw)
        c = self.cfg.num_channels

        if p.ndim == 3:
            if p.shape[0] != 1:
                raise OutputShapeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]

        if p.ndim == 1:
            if p.size == 0 or p.size % c != 0:
                raise OutputShapeError(f"Flat output of {p.size} values is not a multiple of {c} channels.")
            anchors = p.size // c
            p = p.reshape((c, anchors)) if self.cfg.channels_first else p.reshape((anchors, c))

        if p.ndim != 2:
            raise OutputShapeError(f"Unsupported pose output shape: {np.shape(raw)}")

        rows = p.T if self.cfg.channels_first else p
        if rows.shape[1] != c:
            raise OutputShapeError(
                f"Expected {c} channels (5 + {self.cfg.num_keypoints}x{self.cfg.keypoint_dims}), "
                f"got output shape {np.shape(raw)}."
            )
        if self.cfg.num_anchors is not None and rows.shape[0] != self.cfg.num_anchors:
            raise OutputShapeError(f"Expected {self.cfg.num_anchors} anchors, got output shape {np.shape(raw)}.")
        return rows

    def _to_detection(self, row: np.ndarray) -> Detection:
        # Copy out of the inference-owned buffer before converting.
        row = np.array(row, dtype=np.float64)
        cx, cy, w, h, score = (float(v) for v in row[:5])
        x1 = cx - w / 2
        y1 = cy - h / 2

        kd = self.cfg.keypoint_dims
        kps = row[5:].reshape(self.cfg.num_keypoints, kd)
        keypoints = tuple(
            Keypoint(float(k[0]), float(k[1]), float(k[2]) if kd > 2 else 1.0) for k in kps
        )
        return Detection(box=(x1, y1, x1 + w, y1 + h), score=score, keypoints=keypoints)


_DEFAULT = PosePostprocessor()


def select_best(raw: np.ndarray) -> Detection:
    """
    Best detection from a (1, 56, 8400) YOLOv8-pose output, in model space.
    """

    return _DEFAULT.select(raw)
