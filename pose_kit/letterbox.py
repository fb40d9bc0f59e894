from typing import Tuple

from .types import Dimensions, LetterboxParams


def compute_letterbox(source: Dimensions, model: Dimensions) -> LetterboxParams:
    """
    Center the source inside a virtual square canvas of side max(w, h), then
    map that square onto the model input.

    Padding on the shorter axis is split floor(diff / 2) before and the
    remainder after, so an odd difference leaves the extra pixel on the
    right/bottom edge.

    Returns:
        LetterboxParams with the offsets (left/top padding) and the scale that
        maps model-space coordinates back to the square canvas.
    """

    target = max(source.width, source.height)
    pad_w = target - source.width
    pad_h = target - source.height

    scale_x = target / model.width
    scale_y = target / model.height

    return LetterboxParams(
        scale=scale_x,
        x_offset=pad_w // 2,
        y_offset=pad_h // 2,
        source_width=source.width,
        source_height=source.height,
        scale_x=scale_x,
        scale_y=scale_y,
    )


def project_point(params: LetterboxParams, x: float, y: float) -> Tuple[float, float]:
    """
    Forward mapping of a source-space point into model space.
    """

    return (x + params.x_offset) / params.scale_x, (y + params.y_offset) / params.scale_y
