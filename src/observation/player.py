"""
Video playback collaborator.

VideoPlayer decodes an ObservationSource on its own thread and keeps the most
recent frame as the "current playback position". The detection scheduler
samples that frame at its own cadence, independent of the decode rate, and
reads paused/ended state the way a media element exposes it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import numpy as np

from models.frame import FrameData
from .base import ObservationSource

DEFAULT_FPS = 30.0


class VideoPlayer:
    """
    Background playback of an ObservationSource.

    Files are paced at their native frame rate; live sources are read as fast
    as frames arrive. The player starts paused; call play() to begin.

    Example:
        player = VideoPlayer(create_source_from_config(video_cfg))
        player.play()
        frame = player.current_frame()
    """

    def __init__(
        self,
        source: ObservationSource,
        fps: Optional[float] = None,
        realtime: Optional[bool] = None,
        max_read_failures: int = 10,
    ):
        self._source = source
        self._fps = fps
        self._realtime = realtime
        self._max_read_failures = max_read_failures

        self._lock = threading.Lock()
        self._frame: Optional[FrameData] = None
        self._paused = True
        self._ended = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.frames_played = 0

    @property
    def source(self) -> ObservationSource:
        return self._source

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return self._ended.is_set()

    @property
    def width(self) -> Optional[int]:
        with self._lock:
            return self._frame.width if self._frame is not None else None

    @property
    def height(self) -> Optional[int]:
        with self._lock:
            return self._frame.height if self._frame is not None else None

    def current_frame(self) -> Optional[np.ndarray]:
        """Copy of the frame at the current playback position, or None."""
        with self._lock:
            if self._frame is None:
                return None
            return self._frame.frame.copy()

    def play(self) -> None:
        """Start or resume playback. Opens the source on first call."""
        if self.ended:
            return
        if not self._source.is_open:
            self._source.open()
        self._paused = False
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._run, name=f"player-{self._source.source_id}", daemon=True
            )
            self._thread.start()
            logging.info(f"Playback started: source={self._source.source_id}")

    def pause(self) -> None:
        self._paused = True

    def wait_until_ended(self, timeout: Optional[float] = None) -> bool:
        """Block until playback ends. Returns False on timeout."""
        return self._ended.wait(timeout)

    def close(self) -> None:
        """Stop the decode thread and release the source."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
        self._thread = None
        try:
            self._source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

    def _frame_delay(self) -> float:
        realtime = self._realtime if self._realtime is not None else self._source.is_file
        if not realtime:
            return 0.0
        fps = self._fps or self._source.native_fps or DEFAULT_FPS
        return 1.0 / fps

    def _run(self) -> None:
        delay = self._frame_delay()
        failures = 0
        next_frame_at = time.monotonic()

        while not self._stop.is_set():
            if self._paused:
                self._stop.wait(0.05)
                next_frame_at = time.monotonic()
                continue

            frame_data = self._source.read()
            if frame_data is None:
                failures += 1
                if self._source.is_file or failures >= self._max_read_failures:
                    logging.info(
                        f"Playback ended: source={self._source.source_id}, "
                        f"frames={self.frames_played}"
                    )
                    self._ended.set()
                    break
                self._stop.wait(0.1)
                continue

            failures = 0
            with self._lock:
                self._frame = frame_data
            self.frames_played += 1

            if delay:
                next_frame_at += delay
                remaining = next_frame_at - time.monotonic()
                if remaining > 0:
                    self._stop.wait(remaining)
                else:
                    next_frame_at = time.monotonic()
