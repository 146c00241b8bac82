"""
Video source interfaces.

ObservationSource is the decode side: anything that yields FrameData
(video files, webcams, RTSP or HLS streams). VideoElement is the playback
side consumed by the detection pipeline: it exposes the frame currently on
screen plus paused/ended state, mirroring a media element.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Protocol

import numpy as np

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name used in logs and FrameData.source (e.g. "main-video").
        fps: Playback rate override; None lets the source decide.
        metadata: Free-form extras for specific sources.
    """
    source_id: str = "default"
    fps: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    A frame source: open(), then read() until it returns None, then close().

    Usable as a context manager and, once open, as an iterator of FrameData.
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames read since open()."""
        return self._frame_index

    @property
    def is_file(self) -> bool:
        """True for finite sources, where a failed read means the video ended."""
        return False

    @property
    def native_fps(self) -> Optional[float]:
        return self._config.fps

    @abstractmethod
    def open(self) -> None:
        """Raises RuntimeError when the source cannot be opened."""

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None at end of video or on a source error."""

    @abstractmethod
    def close(self) -> None:
        """Release the source. Idempotent."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()


class VideoElement(Protocol):
    """Playback state read by the scheduler and preprocessor."""

    @property
    def paused(self) -> bool:
        ...

    @property
    def ended(self) -> bool:
        ...

    def current_frame(self) -> Optional[np.ndarray]:
        ...
