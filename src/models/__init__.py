"""
Typed models for the detection overlay application.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .config import (
    Config,
    VideoConfig,
    ModelConfig,
    DetectionConfig,
    OverlayConfig,
    SchedulerConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    # Config
    "Config",
    "VideoConfig",
    "ModelConfig",
    "DetectionConfig",
    "OverlayConfig",
    "SchedulerConfig",
    "WebConfig",
]
