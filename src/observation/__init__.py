"""
Observation layer for pluggable video sources.

This layer abstracts the source of frames (video file, webcam, RTSP or HLS
stream) from the detection pipeline. Sources implement ObservationSource and
return FrameData objects; VideoPlayer turns a source into a playing video
element with paused/ended state.
"""

from .base import ObservationSource, ObservationConfig, VideoElement
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config
from .player import VideoPlayer

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "VideoElement",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
    "VideoPlayer",
]
