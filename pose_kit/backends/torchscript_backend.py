from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np

from ..types import Dimensions

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    TorchScript modules do not expose their input shape, so the geometry is
    declared here.

    - device: "cpu" or "cuda" (if available)
    - half: cast input to float16 (only if the model expects it)
    - output_index: if the model returns multiple outputs, select this index
    - input_size: square model input side (Ultralytics exports use 640)
    - layout: "nchw" for Ultralytics/PyTorch exports
    """

    device: str = "cpu"
    half: bool = False
    output_index: int = 0
    input_size: int = 640
    layout: str = "nchw"


class TorchScriptBackend:
    """
    TorchScript backend using `torch.jit.load`; inference runs under `torch.no_grad()`.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.device = torch.device(cfg.device)
        self.half = cfg.half
        self.output_index = cfg.output_index
        self.input_dims = Dimensions(cfg.input_size, cfg.input_size)
        self.layout = cfg.layout

        model = torch.jit.load(str(self.model_path), map_location=self.device)
        model.eval()
        self.model = model
        logger.info("loaded %s on %s", self.model_path.name, self.device)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.as_tensor(blob, device=self.device)
        x = x.half() if self.half else x.float()

        with torch.no_grad():
            y = self.model(x.contiguous())

        if isinstance(y, (tuple, list)):
            y = y[self.output_index]
        return y.detach().to("cpu").float().numpy()
