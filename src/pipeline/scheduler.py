"""
Fixed-interval scheduler driving the detection pipeline.

States:
    idle     model or video not ready yet
    running  timer active; each tick runs one cycle unless the video is
             paused or ended
    stopped  timer cancelled (teardown); terminal

The model is loaded once, optionally on a background thread. A failed load
is logged and leaves the scheduler idle for good; there is no retry.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Callable, Optional

from inference.backend import InferenceAdapter, InferenceFailure, InferenceModel
from models.config import SchedulerConfig
from observation.base import VideoElement
from .engine import CycleResult, DetectionPipeline


class SchedulerState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class FrameScheduler:
    """
    Drives DetectionPipeline.run_cycle at a fixed cadence.

    Ticks run on a single timer thread and each cycle finishes within its
    tick, so scheduler-driven cycles never overlap. Missed ticks are dropped,
    not queued.
    """

    def __init__(
        self,
        pipeline: DetectionPipeline,
        adapter: InferenceAdapter,
        config: Optional[SchedulerConfig] = None,
    ):
        self.pipeline = pipeline
        self.adapter = adapter
        self.config = config or SchedulerConfig()
        self._video: Optional[VideoElement] = None
        self._state = SchedulerState.IDLE
        self._state_lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._load_thread: Optional[threading.Thread] = None
        self.load_error: Optional[BaseException] = None
        self.tick_count = 0
        self.failure_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def video(self) -> Optional[VideoElement]:
        return self._video

    @property
    def is_running(self) -> bool:
        return self._state == SchedulerState.RUNNING

    def attach_video(self, video: VideoElement) -> None:
        """Provide the video element; may trigger idle -> running."""
        self._video = video
        self._maybe_start()

    def set_model(self, model: InferenceModel) -> None:
        """Provide the loaded model; may trigger idle -> running."""
        self.adapter.set_model(model)
        self._maybe_start()

    def load_model(
        self,
        loader: Callable[[], InferenceModel],
        background: bool = True,
    ) -> Optional[threading.Thread]:
        """
        Load the model once via loader().

        With background=True the load runs on its own thread, which is
        returned so callers can join it.
        """
        if background:
            self._load_thread = threading.Thread(
                target=self._load, args=(loader,), name="model-loader", daemon=True
            )
            self._load_thread.start()
            return self._load_thread
        self._load(loader)
        return None

    def _load(self, loader: Callable[[], InferenceModel]) -> None:
        try:
            model = loader()
        except Exception as e:
            self.load_error = e
            logging.error(f"Error loading model: {e}")
            return

        if self._state == SchedulerState.STOPPED:
            logging.info("Model loaded after scheduler stopped; ignoring")
            return
        logging.info("Model loaded successfully")
        self.set_model(model)

    def _maybe_start(self) -> None:
        with self._state_lock:
            if self._state != SchedulerState.IDLE:
                return
            if not self.adapter.ready or self._video is None:
                return
            self._state = SchedulerState.RUNNING
            logging.info(f"Scheduler running: interval={self.config.interval_ms}ms")
            if self.config.autostart:
                self._start_timer()

    def _start_timer(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="frame-scheduler", daemon=True)
        self._thread.start()

    def tick(self) -> Optional[CycleResult]:
        """
        One scheduled invocation.

        No-op unless running, and a no-op while the video is paused or ended.
        InferenceFailure propagates to the caller.
        """
        if self._state != SchedulerState.RUNNING:
            return None
        video = self._video
        if video is None or video.paused or video.ended:
            return None
        self.tick_count += 1
        return self.pipeline.run_cycle(video)

    def _run_loop(self) -> None:
        interval = self.config.interval_s
        next_tick = time.monotonic() + interval

        while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
            if self._state != SchedulerState.RUNNING:
                break

            video = self._video
            if self.config.stop_on_end and video is not None and video.ended:
                logging.info("Video ended, stopping scheduler")
                self.stop(dispose_surface=False)
                break

            try:
                self.tick()
            except InferenceFailure as e:
                self.failure_count += 1
                logging.error(f"Detection cycle aborted: {e}")
            except Exception as e:
                # Bad output layout or a render error; the timer keeps running
                self.failure_count += 1
                logging.error(f"Detection cycle failed: {e}")

            next_tick += interval
            now = time.monotonic()
            if next_tick <= now:
                # Overran: skip missed ticks rather than bursting to catch up
                next_tick = now + interval

    def stop(self, dispose_surface: bool = True) -> None:
        """
        Cancel future ticks. In-flight cycles are not interrupted; with
        dispose_surface their render step becomes a no-op.
        """
        with self._state_lock:
            if self._state == SchedulerState.STOPPED:
                return
            self._state = SchedulerState.STOPPED
        self._stop_event.set()

        if dispose_surface:
            self.pipeline.surface.dispose()

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(1.0, self.config.interval_s * 2))
        self._thread = None
        logging.info(f"Scheduler stopped after {self.tick_count} ticks")
