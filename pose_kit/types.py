from dataclasses import dataclass
from typing import NamedTuple, Sequence, Tuple

# COCO order, as emitted by YOLOv8-pose style heads.
KEYPOINT_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

BoundingBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Dimensions:
    """
    Width/height pair for a source image, video frame or model input.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Dimensions must be positive, got {self.width}x{self.height}")

    @classmethod
    def from_shape(cls, shape: Sequence[int]) -> "Dimensions":
        # NumPy image shape: (H, W) or (H, W, C)
        if len(shape) < 2:
            raise ValueError(f"Expected an image shape (H, W[, C]), got {tuple(shape)}")
        return cls(width=int(shape[1]), height=int(shape[0]))


@dataclass(frozen=True)
class LetterboxParams:
    """
    Parameters of one letterbox transform (source -> square canvas -> model input).

    `scale` is always derived from the model width. `scale_x`/`scale_y` carry the
    per-axis factors so non-square model inputs still map back exactly; for a
    square model input all three are equal.
    """

    scale: float
    x_offset: int
    y_offset: int
    source_width: int
    source_height: int
    scale_x: float
    scale_y: float

    @property
    def target_size(self) -> int:
        return max(self.source_width, self.source_height)

    @property
    def left(self) -> int:
        return self.x_offset

    @property
    def right(self) -> int:
        return self.target_size - self.source_width - self.x_offset

    @property
    def top(self) -> int:
        return self.y_offset

    @property
    def bottom(self) -> int:
        return self.target_size - self.source_height - self.y_offset

    @property
    def source_dims(self) -> Dimensions:
        return Dimensions(self.source_width, self.source_height)


class Keypoint(NamedTuple):
    x: float
    y: float
    confidence: float


@dataclass(frozen=True)
class Detection:
    """
    Single pose detection: corner-format box, objectness score and keypoints.

    Coordinates are either in model space or source space depending on which
    stage produced the value; every stage returns a new instance.
    """

    box: BoundingBox
    score: float
    keypoints: Tuple[Keypoint, ...]

    def as_xyxy(self) -> BoundingBox:
        return self.box

    def keypoint(self, name: str) -> Keypoint:
        try:
            idx = KEYPOINT_NAMES.index(name)
        except ValueError as e:
            raise KeyError(f"Unknown keypoint name: {name!r}") from e
        return self.keypoints[idx]
