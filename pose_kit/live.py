from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from typing import Any, Callable, Optional, Protocol, Tuple

from .runtime import PosePipeline
from .types import Detection, Dimensions
from .visualize import DrawSurface, render_if_confident

logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    def read(self) -> Tuple[bool, Any]: ...


class LiveRunner:
    """
    Synchronous per-frame loop: read -> pipeline -> render.

    Frames never overlap; the next frame is read only after the current one has
    been rendered, so slow inference lowers the frame rate instead of queueing.
    `stop()` may be called from another thread (or from `on_frame`); a frame
    whose inference was in flight when stop() happened is not drawn.
    """

    def __init__(
        self,
        pipeline: PosePipeline,
        capture: FrameSource,
        surface: DrawSurface,
        *,
        threshold: float = 0.5,
        keypoint_radius: float = 5,
        on_frame: Optional[Callable[[Detection, DrawSurface], None]] = None,
    ):
        self.pipeline = pipeline
        self.capture = capture
        self.surface = surface
        self.threshold = threshold
        self.keypoint_radius = keypoint_radius
        self.on_frame = on_frame
        self._stopped = threading.Event()
        self._lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return not self._stopped.is_set()

    def start(self) -> None:
        """
        Re-arm a stopped runner. `run()` never clears a pending stop on its own.
        """

        with self._lock:
            self._stopped.clear()

    def stop(self) -> None:
        with self._lock:
            self._generation += 1
            self._stopped.set()

    def _is_live(self, generation: int) -> bool:
        with self._lock:
            return not self._stopped.is_set() and generation == self._generation

    def step(self, frame: Any) -> Optional[Detection]:
        """
        Process one frame. Returns None (and draws nothing) if the runner was
        stopped while the frame was in flight.
        """

        with self._lock:
            generation = self._generation
        arena = self.pipeline.arena
        with arena.frame() if arena is not None else nullcontext():
            detection = self.pipeline(frame)
            if not self._is_live(generation):
                logger.debug("dropping frame from generation %d after stop", generation)
                return None
            render_if_confident(
                detection,
                self.threshold,
                Dimensions.from_shape(frame.shape),
                self.surface,
                frame,
                keypoint_radius=self.keypoint_radius,
            )
        return detection

    def run(self, max_frames: int = 0) -> int:
        """
        Pull frames until the source is exhausted, stop() is called or
        `max_frames` frames (0 = no limit) were processed.

        A stop() issued before the loop starts is honoured: the loop returns
        without reading a frame. Call start() first to reuse a stopped runner.

        Returns the number of frames processed.
        """

        if max_frames < 0:
            raise ValueError("max_frames must be >= 0")

        processed = 0
        logger.info("live loop started (generation %d)", self._generation)
        try:
            while self.running:
                ok, frame = self.capture.read()
                if not ok or frame is None:
                    break

                detection = self.step(frame)
                if detection is None:
                    break

                processed += 1
                if self.on_frame is not None:
                    self.on_frame(detection, self.surface)
                if max_frames and processed >= max_frames:
                    break
        finally:
            release = getattr(self.capture, "release", None)
            if callable(release):
                release()
            logger.info("live loop stopped after %d frames", processed)
        return processed
