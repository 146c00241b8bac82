"""
OpenCV-based observation source.

Supports:
- Video files (device_id as file path)
- USB webcams (device_id as int, e.g., 0)
- RTSP and HTTP/HLS streams (device_id as URL, e.g. ".../index.m3u8")
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

from models.config import VideoConfig
from models.frame import FrameData
from .base import ObservationSource, ObservationConfig
from .stream_utils import is_stream_url, sanitize_url

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

# Consecutive failed reads tolerated on a live source before giving up
MAX_READ_FAILURES = 3


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based sources.

    Attributes:
        device_id: Camera index (int), stream URL (str), or file path (str).
        rtsp_transport: Transport protocol for RTSP ("tcp" or "udp").
        max_retries: Open attempts before giving up.
        swap_rb: Swap R/B channels (fixes RGB vs BGR issues).
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror left-right.
        flip_vertical: Mirror top-bottom.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    max_retries: int = 3
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @property
    def flip_code(self) -> Optional[int]:
        """cv2.flip code for the configured mirroring, or None."""
        if self.flip_horizontal and self.flip_vertical:
            return -1
        if self.flip_horizontal:
            return 1
        if self.flip_vertical:
            return 0
        return None

    @classmethod
    def from_video_config(cls, video: VideoConfig, source_id: str = "video") -> "OpenCVSourceConfig":
        """Adapter: Create OpenCVSourceConfig from the typed video config."""
        return cls(
            source_id=source_id,
            fps=video.fps,
            device_id=video.device_id,
            rtsp_transport=video.rtsp_transport,
            max_retries=video.max_retries,
            swap_rb=video.swap_rb,
            rotate=video.rotate,
            flip_horizontal=video.flip_horizontal,
            flip_vertical=video.flip_vertical,
        )


class OpenCVSource(ObservationSource):
    """
    cv2.VideoCapture wrapper yielding FrameData.

    A file reports its end by returning None from read(). A live source is
    reconnected on read failure, up to MAX_READ_FAILURES times in a row.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_stream(self) -> bool:
        return is_stream_url(self.device_id)

    @property
    def is_file(self) -> bool:
        device = self.device_id
        return isinstance(device, str) and not self.is_stream and os.path.exists(device)

    @property
    def native_fps(self) -> Optional[float]:
        if self._opencv_config.fps:
            return float(self._opencv_config.fps)
        if self._cap is None:
            return None
        fps = self._cap.get(cv2.CAP_PROP_FPS)
        return float(fps) if fps and fps > 0 else None

    def open(self) -> None:
        if self._is_open:
            return

        self._connect()
        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={sanitize_url(self.device_id)}, fps={self.native_fps}"
        )

    def _connect(self) -> None:
        """
        (Re)create the capture, backing off between attempts.

        Raises:
            RuntimeError: If every attempt fails.
        """
        cfg = self._opencv_config
        device = sanitize_url(self.device_id)
        attempts = max(1, cfg.max_retries)

        if isinstance(self.device_id, str) and self.device_id.startswith("rtsp"):
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = f"rtsp_transport;{cfg.rtsp_transport}"

        for attempt in range(attempts):
            self._release()
            if attempt:
                backoff = min(2 ** attempt, 10)
                logging.info(f"Reconnecting to {device} in {backoff}s (attempt {attempt + 1}/{attempts})")
                time.sleep(backoff)

            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                if isinstance(self.device_id, int):
                    # Keep webcam latency low; the player only wants the newest frame
                    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
                self._cap = cap
                return
            cap.release()
            logging.warning(f"Could not open {device}")

        raise RuntimeError(f"Failed to open device {device} after {attempts} attempts")

    def _release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def _grab(self) -> Optional[np.ndarray]:
        ok, frame = self._cap.read()
        return frame if ok and frame is not None else None

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        frame = self._grab()
        if frame is None:
            frame = self._recover()
            if frame is None:
                return None

        self._failures = 0
        self._frame_index += 1
        return FrameData.from_numpy(
            self._apply_transforms(frame),
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _recover(self) -> Optional[np.ndarray]:
        """Handle a failed read: end of file, or one reconnect for live sources."""
        self._failures += 1
        if self.is_file:
            logging.info(f"End of video: source_id={self.source_id}, frames={self._frame_index}")
            return None
        if self._failures > MAX_READ_FAILURES:
            logging.error(f"Giving up on {sanitize_url(self.device_id)} after {self._failures} failed reads")
            return None

        logging.warning(f"Read failed ({self._failures}/{MAX_READ_FAILURES}), reconnecting")
        try:
            self._connect()
        except RuntimeError as e:
            logging.error(f"Reconnect failed: {e}")
            return None
        return self._grab()

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Rotate, mirror and channel-swap per config."""
        cfg = self._opencv_config
        rotation = _ROTATIONS.get(cfg.rotate)
        if rotation is not None:
            frame = cv2.rotate(frame, rotation)
        flip = cfg.flip_code
        if flip is not None:
            frame = cv2.flip(frame, flip)
        if cfg.swap_rb:
            frame = np.ascontiguousarray(frame[..., ::-1])
        return frame

    def close(self) -> None:
        self._release()
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False


def create_source_from_config(video: VideoConfig, source_id: str = "video") -> ObservationSource:
    """Factory: build the frame source described by the video config."""
    return OpenCVSource(OpenCVSourceConfig.from_video_config(video, source_id=source_id))
