from __future__ import annotations

import time
from typing import Iterable, Optional

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response, StreamingResponse

from ..api_models import StatusResponse
from ..state import state

router = APIRouter()

STALE_AFTER_S = 2.0


def _derive_status(scheduler_state: str, last_cycle_age: Optional[float]) -> str:
    """
    Lightweight status classifier used by /api/status.
    A running scheduler with no cycle for more than 2s (paused video, slow
    model) is reported as stale.
    """
    if scheduler_state != "running":
        return scheduler_state
    if last_cycle_age is None or last_cycle_age > STALE_AFTER_S:
        return "stale"
    return "running"


def _encode_jpeg(frame) -> bytes:
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise RuntimeError("Failed to encode JPEG")
    return buf.tobytes()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Detection overlay status for the UI.
    Fields:
    - status: running|idle|stopped|stale
    - has_detections: whether the latest overlay drew at least one box
    - cycle_fps / last_cycle_ms: detection cadence and latency
    - target_classes: configured classes of interest (informational)
    """
    now = time.time()
    stats = state.get_system_stats_copy()
    scheduler_state = state.get_scheduler_state()

    last_cycle_ts = stats.get("last_cycle_ts")
    last_cycle_age = now - last_cycle_ts if last_cycle_ts else None
    start_time = stats.get("start_time") or None

    return StatusResponse(
        status=_derive_status(scheduler_state, last_cycle_age),
        scheduler_state=scheduler_state,
        has_detections=bool(stats.get("has_detections", False)),
        detection_count=int(stats.get("detection_count", 0)),
        cycle_count=int(stats.get("cycle_count", 0)),
        cycle_fps=float(stats.get("cycle_fps", 0.0)),
        last_cycle_ms=float(stats.get("last_cycle_ms", 0.0)),
        last_cycle_age_s=last_cycle_age,
        uptime_seconds=int(now - start_time) if start_time else None,
        target_classes=list(state.target_classes),
        timestamp=now,
    )


@router.get("/overlay/snapshot.jpg")
def overlay_snapshot():
    frame = state.get_frame()
    if frame is None:
        raise HTTPException(status_code=503, detail="No overlay frame yet")
    try:
        jpeg_bytes = _encode_jpeg(frame)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(content=jpeg_bytes, media_type="image/jpeg", headers={"Cache-Control": "no-store"})


def mjpeg_stream(fps: int = 10, max_frames: Optional[int] = None) -> Iterable[bytes]:
    """Yield MJPEG multipart chunks of the latest overlay frame."""
    fps = max(1, min(30, int(fps)))
    delay = 1.0 / fps
    sent = 0
    while max_frames is None or sent < max_frames:
        frame = state.get_frame()
        if frame is None:
            time.sleep(delay)
            continue
        try:
            jpg = _encode_jpeg(frame)
        except RuntimeError:
            time.sleep(delay)
            continue
        yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
        sent += 1
        time.sleep(delay)


@router.get("/overlay/stream.mjpg")
def overlay_stream(fps: Optional[int] = None):
    return StreamingResponse(
        mjpeg_stream(fps=fps or state.stream_fps),
        media_type="multipart/x-mixed-replace; boundary=frame",
    )
