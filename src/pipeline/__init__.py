"""
Pipeline module for the detection overlay.

The pipeline orchestrates one detection cycle:
- Frame capture onto the drawing surface
- Tensor preprocessing and model inference
- Postprocessing into detections
- Overlay rendering

The scheduler drives cycles at a fixed interval once model and video are ready.
"""

from .engine import CycleResult, DetectionPipeline, PipelineStats, create_pipeline_from_config
from .scheduler import FrameScheduler, SchedulerState

__all__ = [
    "CycleResult",
    "DetectionPipeline",
    "PipelineStats",
    "create_pipeline_from_config",
    "FrameScheduler",
    "SchedulerState",
]
