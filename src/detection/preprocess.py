"""
Frame preprocessing.

Turns the current video frame into the model input tensor. The frame is
stretched to the fixed input size (no letterboxing), converted to RGB,
cast to float32, divided by 255 and given a leading batch axis, matching the
preprocessing the detector was trained with.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

from models.config import DetectionConfig
from observation.base import VideoElement
from overlay.surface import DrawingSurface


class Preprocessor:
    """Builds model input tensors and scopes their lifetime to one cycle."""

    def __init__(self, config: DetectionConfig):
        self._config = config
        self._live = 0
        self._lock = threading.Lock()

    @property
    def input_size(self) -> Tuple[int, int]:
        """Target (width, height)."""
        return self._config.frame_size

    @property
    def live_tensors(self) -> int:
        """Number of acquire() scopes currently open."""
        return self._live

    def capture(self, video: VideoElement, surface: DrawingSurface) -> Optional[np.ndarray]:
        """
        Copy the current video frame onto the surface.

        Returns the frame, or None when no frame is available or the surface
        has been disposed; the caller skips the cycle in that case.
        """
        if surface.disposed:
            return None
        frame = video.current_frame()
        if frame is None or frame.size == 0:
            return None
        surface.draw_frame(frame)
        return frame

    def to_tensor(self, image: np.ndarray) -> np.ndarray:
        """Convert a uint8 BGR image into a (1, H, W, 3) float32 tensor in [0, 1]."""
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        if self._config.swap_rb:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

        width, height = self.input_size
        if image.shape[1] != width or image.shape[0] != height:
            image = cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)

        tensor = image.astype(np.float32) / 255.0
        return np.expand_dims(tensor, axis=0)

    @contextmanager
    def acquire(self, image: np.ndarray) -> Iterator[np.ndarray]:
        """
        Scoped tensor acquisition.

        The scope closes when the block exits, including when inference
        raises, and live_tensors drops back. Closing only releases this
        reference: the array is freed once the caller drops its own binding,
        which run_cycle does before returning.
        """
        tensor = self.to_tensor(image)
        with self._lock:
            self._live += 1
        try:
            yield tensor
        finally:
            with self._lock:
                self._live -= 1
            del tensor
