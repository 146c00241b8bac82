from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: str = Field(..., description="running|idle|stopped|stale")
    scheduler_state: str = Field(..., description="idle|running|stopped")
    has_detections: bool = Field(False, description="At least one box drawn on the latest overlay")
    detection_count: int = Field(0, description="Detections on the latest overlay")
    cycle_count: int = Field(0, description="Completed detection cycles")
    cycle_fps: float = Field(0.0, description="Smoothed detection cycle rate")
    last_cycle_ms: float = Field(0.0, description="Latency of the latest cycle")
    last_cycle_age_s: Optional[float] = Field(None, description="Seconds since the latest cycle")
    uptime_seconds: Optional[int] = None
    target_classes: List[int] = Field(default_factory=list)
    timestamp: float
