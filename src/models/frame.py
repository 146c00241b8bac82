"""
Decoded video frame with its playback metadata.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    One decoded BGR frame.

    Attributes:
        frame: Pixel buffer, shape (height, width, 3).
        timestamp: Unix time the frame was decoded.
        frame_index: 1-based position since the source was opened.
        source: source_id of the producing ObservationSource.
    """
    frame: np.ndarray
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        return cls(frame=frame, timestamp=timestamp, frame_index=frame_index, source=source)

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.frame.shape

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height), the order OpenCV sizes use."""
        return (self.width, self.height)

    def copy(self) -> "FrameData":
        """Same metadata over a private copy of the pixels."""
        return dataclasses.replace(self, frame=self.frame.copy())
