"""
Detection pipeline for the overlay system.

One cycle runs capture -> preprocess -> infer -> postprocess -> render,
strictly in that order. Every cycle takes a generation number when it starts;
if a newer cycle has started by the time this one reaches the render step,
its render is discarded instead of overwriting the newer frame.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from detection.postprocess import Postprocessor
from detection.preprocess import Preprocessor
from inference.backend import InferenceAdapter
from models.config import Config
from models.detection import Detection
from observation.base import VideoElement
from overlay.renderer import OverlayRenderer
from overlay.surface import DrawingSurface, SurfaceUnavailable


@dataclass
class CycleResult:
    """
    Outcome of one detection cycle.

    Attributes:
        generation: Generation number taken when the cycle started.
        detections: Accepted detections in model row order.
        rendered: Whether the overlay was painted for this cycle.
        stale: True when a newer cycle started first and the render was dropped.
        has_detections: Whether at least one detection was drawn.
        latency_ms: Wall time of the cycle.
    """
    generation: int
    detections: List[Detection] = field(default_factory=list)
    rendered: bool = False
    stale: bool = False
    has_detections: bool = False
    latency_ms: float = 0.0


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    cycle_count: int = 0
    skipped_count: int = 0
    stale_count: int = 0
    detection_count: int = 0
    last_cycle_ms: float = 0.0
    last_cycle_time: Optional[float] = None
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class DetectionPipeline:
    """
    Runs detection cycles against a video element and a drawing surface.

    Example:
        pipeline = DetectionPipeline(preprocessor, adapter, postprocessor,
                                     renderer, DrawingSurface(640, 640))
        result = pipeline.run_cycle(player)
    """

    def __init__(
        self,
        preprocessor: Preprocessor,
        adapter: InferenceAdapter,
        postprocessor: Postprocessor,
        renderer: OverlayRenderer,
        surface: DrawingSurface,
        stats_log_interval: float = 60.0,
    ):
        if surface is None or surface.disposed:
            raise SurfaceUnavailable("Drawing surface is not available")
        self.preprocessor = preprocessor
        self.adapter = adapter
        self.postprocessor = postprocessor
        self.renderer = renderer
        self.surface = surface
        self.stats_log_interval = stats_log_interval
        self.stats = PipelineStats()
        self.has_detections = False
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._callbacks: List[Callable[[CycleResult], None]] = []

    @property
    def generation(self) -> int:
        return self._generation

    def add_callback(self, callback: Callable[[CycleResult], None]) -> None:
        """
        Add a callback to be called after each completed cycle.

        Args:
            callback: Function taking the CycleResult.
        """
        self._callbacks.append(callback)

    def begin_cycle(self) -> int:
        """Take the next generation number."""
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._generation

    def run_cycle(self, video: VideoElement) -> Optional[CycleResult]:
        """
        Run one full cycle.

        Returns None when no frame could be captured (the cycle is skipped).
        InferenceFailure propagates to the caller; the tensor is released
        either way.
        """
        started = time.perf_counter()

        frame = self.preprocessor.capture(video, self.surface)
        if frame is None:
            self.stats.skipped_count += 1
            return None

        generation = self.begin_cycle()

        with self.preprocessor.acquire(self.surface.image) as tensor:
            output = self.adapter.infer(tensor)
        del tensor

        detections = self.postprocessor.process(output)
        result = CycleResult(generation=generation, detections=detections)

        if self.is_current(generation):
            result.has_detections = self.renderer.render(self.surface, frame, detections)
            result.rendered = not self.surface.disposed
            if result.rendered:
                self.has_detections = result.has_detections
        else:
            result.stale = True
            self.stats.stale_count += 1
            logging.debug(
                f"Discarding stale render: generation={generation}, current={self._generation}"
            )

        result.latency_ms = (time.perf_counter() - started) * 1000
        self.stats.cycle_count += 1
        self.stats.detection_count += len(detections)
        self.stats.last_cycle_ms = result.latency_ms
        self.stats.last_cycle_time = time.time()

        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        self._handle_periodic_tasks()
        return result

    def _handle_periodic_tasks(self) -> None:
        """Log statistics periodically."""
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.stats_log_interval:
            logging.info(
                f"Pipeline stats: cycles={self.stats.cycle_count}, "
                f"skipped={self.stats.skipped_count}, stale={self.stats.stale_count}, "
                f"detections={self.stats.detection_count}, "
                f"last_cycle_ms={self.stats.last_cycle_ms:.1f}"
            )
            self.stats.last_stats_log_time = now


def create_pipeline_from_config(
    config: Config,
    adapter: InferenceAdapter,
    surface: Optional[DrawingSurface] = None,
) -> DetectionPipeline:
    """
    Factory function to build a DetectionPipeline from the typed config.

    Raises:
        SurfaceUnavailable: If the surface cannot be created.
    """
    if surface is None:
        width, height = config.detection.frame_size
        surface = DrawingSurface(width, height)

    return DetectionPipeline(
        preprocessor=Preprocessor(config.detection),
        adapter=adapter,
        postprocessor=Postprocessor(config.detection),
        renderer=OverlayRenderer(config.overlay),
        surface=surface,
        stats_log_interval=config.scheduler.stats_log_interval,
    )
