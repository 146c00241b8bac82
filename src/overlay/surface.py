"""
Drawing surface shared by the preprocessor and the overlay renderer.
"""

from __future__ import annotations

import threading
from typing import Tuple

import cv2
import numpy as np


class SurfaceUnavailable(RuntimeError):
    """The drawing surface could not be acquired."""


class DrawingSurface:
    """
    Fixed-size BGR canvas aligned with the video.

    After dispose() every drawing call is a no-op, so a cycle still in flight
    at teardown cannot fail on a released surface.
    """

    def __init__(self, width: int = 640, height: int = 640):
        if width <= 0 or height <= 0:
            raise SurfaceUnavailable(f"Invalid surface size {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self._image = np.zeros((self._height, self._width, 3), dtype=np.uint8)
        self._disposed = False
        self._lock = threading.Lock()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        return (self._width, self._height)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def image(self) -> np.ndarray:
        """The live buffer. Drawing code mutates it in place."""
        return self._image

    def clear(self) -> None:
        if self._disposed:
            return
        self._image[:] = 0

    def draw_frame(self, frame: np.ndarray) -> None:
        """Stretch frame onto the whole surface, replacing prior contents."""
        if self._disposed:
            return
        if frame.ndim == 2:
            frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        if frame.shape[1] != self._width or frame.shape[0] != self._height:
            frame = cv2.resize(frame, (self._width, self._height), interpolation=cv2.INTER_LINEAR)
        with self._lock:
            np.copyto(self._image, frame[..., :3])

    def snapshot(self) -> np.ndarray:
        with self._lock:
            return self._image.copy()

    def dispose(self) -> None:
        self._disposed = True
