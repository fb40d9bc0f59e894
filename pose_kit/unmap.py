from .types import Detection, Keypoint, LetterboxParams


def transform_coordinate(coord: float, scale: float, offset: float) -> float:
    return coord * scale - offset


def unmap_detection(detection: Detection, params: LetterboxParams) -> Detection:
    """
    Map a model-space detection back to source-image pixels.

    Inverse of letterbox + resize: scale up to the square canvas, then remove
    the left/top padding. Results are not clamped to the source bounds.
    """

    sx, sy = params.scale_x, params.scale_y
    dx, dy = params.x_offset, params.y_offset

    x1, y1, x2, y2 = detection.box
    box = (
        transform_coordinate(x1, sx, dx),
        transform_coordinate(y1, sy, dy),
        transform_coordinate(x2, sx, dx),
        transform_coordinate(y2, sy, dy),
    )
    keypoints = tuple(
        Keypoint(transform_coordinate(kp.x, sx, dx), transform_coordinate(kp.y, sy, dy), kp.confidence)
        for kp in detection.keypoints
    )
    return Detection(box=box, score=detection.score, keypoints=keypoints)
