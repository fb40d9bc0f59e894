from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

_BACKENDS = ("onnxruntime", "torchscript")
_LAYOUTS = ("nhwc", "nchw")


@dataclass(frozen=True)
class PoseRunConfig:
    model_path: str
    schema_version: int = 1
    backend: Optional[str] = None
    input_size: int = 640
    layout: Optional[str] = None
    bgr_to_rgb: bool = True
    conf_threshold: float = 0.5
    keypoint_radius: int = 5
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("run config schema_version must be 1")
        if not self.model_path:
            raise ValueError("model_path must be a non-empty string")
        if self.backend is not None and self.backend not in _BACKENDS:
            raise ValueError(f"backend must be one of {_BACKENDS}, got {self.backend!r}")
        if self.input_size < 32:
            raise ValueError("input_size must be >= 32")
        if self.layout is not None and self.layout not in _LAYOUTS:
            raise ValueError(f"layout must be one of {_LAYOUTS}, got {self.layout!r}")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be within [0, 1]")
        if self.keypoint_radius <= 0:
            raise ValueError("keypoint_radius must be > 0")


def _require_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string if provided")
    return value


def load_run_config(path: Path) -> PoseRunConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Run config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid run config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Run config must be a JSON object")

    allowed = {
        "schema_version",
        "model_path",
        "backend",
        "input_size",
        "layout",
        "bgr_to_rgb",
        "conf_threshold",
        "keypoint_radius",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown run config keys: {unknown}")

    if "model_path" not in payload:
        raise ValueError("Missing required key: model_path")
    model_path = payload["model_path"]
    if not isinstance(model_path, str):
        raise ValueError("model_path must be a string")

    bgr_to_rgb = payload.get("bgr_to_rgb", True)
    if not isinstance(bgr_to_rgb, bool):
        raise ValueError("bgr_to_rgb must be a boolean")

    return PoseRunConfig(
        schema_version=_require_int(payload, "schema_version", 1),
        model_path=model_path,
        backend=_optional_str(payload, "backend"),
        input_size=_require_int(payload, "input_size", 640),
        layout=_optional_str(payload, "layout"),
        bgr_to_rgb=bgr_to_rgb,
        conf_threshold=_require_number(payload, "conf_threshold", 0.5),
        keypoint_radius=_require_int(payload, "keypoint_radius", 5),
        notes=_optional_str(payload, "notes"),
    )
