"""
Optional inference backends for pose_kit.

Backends are kept in a separate module so core functionality (letterbox,
selection, unmapping) stays lightweight and can be used without installing
inference runtimes.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..types import Dimensions


def infer_input_geometry(shape: Sequence[object]) -> Tuple[Optional[Dimensions], Optional[str]]:
    """
    Guess (model dims, layout) from a 4-D input shape such as [1, 3, 640, 640]
    or [1, 640, 640, 3]. Dynamic axes (None / symbolic names) yield None.
    """

    if len(shape) != 4:
        return None, None
    dims = [d if isinstance(d, int) and d > 0 else None for d in shape]
    _, a, b, c = dims
    if a in (1, 3) and c not in (1, 3):
        layout, h, w = "nchw", b, c
    elif c in (1, 3):
        layout, h, w = "nhwc", a, b
    else:
        return None, None
    if h is None or w is None:
        return None, layout
    return Dimensions(width=w, height=h), layout


__all__ = ["infer_input_geometry"]
