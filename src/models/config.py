"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# Color spec: CSS-style name, "#rrggbb" string, or [b, g, r] triple
ColorSpec = Union[str, List[int], Tuple[int, int, int]]

DEFAULT_CLASS_COLORS: Dict[int, ColorSpec] = {
    0: "red",
    2: "blue",
    3: "purple",
    4: "green",
    5: "pink",
    6: "black",
    7: "white",
    8: "orange",
    9: "brown",
    10: "pink",
    11: "gray",
}


@dataclass
class VideoConfig:
    """Video source configuration."""
    device_id: Union[int, str] = 0
    fps: Optional[float] = None
    rtsp_transport: str = "tcp"
    max_retries: int = 3
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    autoplay: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VideoConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            fps=d.get("fps"),
            rtsp_transport=d.get("rtsp_transport", "tcp"),
            max_retries=d.get("max_retries", 3),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0) or 0,
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            autoplay=d.get("autoplay", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "fps": self.fps,
            "rtsp_transport": self.rtsp_transport,
            "max_retries": self.max_retries,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "autoplay": self.autoplay,
        }


@dataclass
class ModelConfig:
    """Detector model configuration."""
    path: str = ""
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", ""),
            providers=list(d.get("providers") or ["CPUExecutionProvider"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "providers": list(self.providers)}


@dataclass(frozen=True)
class DetectionConfig:
    """
    Detection settings shared by the preprocessor and postprocessor.

    target_classes is informational: it is reported but never used to
    filter detections.
    """
    threshold: float = 0.5
    target_classes: Tuple[int, ...] = (0, 2)
    frame_size: Tuple[int, int] = (640, 640)
    swap_rb: bool = True

    @property
    def frame_width(self) -> int:
        return self.frame_size[0]

    @property
    def frame_height(self) -> int:
        return self.frame_size[1]

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        frame_size = d.get("frame_size", [640, 640])
        return cls(
            threshold=float(d.get("threshold", 0.5)),
            target_classes=tuple(int(c) for c in d.get("target_classes", [0, 2])),
            frame_size=(int(frame_size[0]), int(frame_size[1])),
            swap_rb=d.get("swap_rb", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "threshold": self.threshold,
            "target_classes": list(self.target_classes),
            "frame_size": list(self.frame_size),
            "swap_rb": self.swap_rb,
        }


@dataclass(frozen=True)
class OverlayConfig:
    """Overlay drawing settings."""
    class_colors: Dict[int, ColorSpec] = field(default_factory=lambda: dict(DEFAULT_CLASS_COLORS))
    default_color: ColorSpec = "yellow"
    line_width: int = 2
    font_scale: float = 0.5
    label_offset: int = 5
    label_min_y: int = 10

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        colors = d.get("class_colors")
        return cls(
            class_colors=(
                {int(k): v for k, v in colors.items()}
                if colors is not None
                else dict(DEFAULT_CLASS_COLORS)
            ),
            default_color=d.get("default_color", "yellow"),
            line_width=d.get("line_width", 2),
            font_scale=d.get("font_scale", 0.5),
            label_offset=d.get("label_offset", 5),
            label_min_y=d.get("label_min_y", 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_colors": dict(self.class_colors),
            "default_color": self.default_color,
            "line_width": self.line_width,
            "font_scale": self.font_scale,
            "label_offset": self.label_offset,
            "label_min_y": self.label_min_y,
        }


@dataclass
class SchedulerConfig:
    """Frame scheduler configuration."""
    interval_ms: float = 100.0
    stop_on_end: bool = True
    autostart: bool = True
    stats_log_interval: float = 60.0

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SchedulerConfig":
        return cls(
            interval_ms=float(d.get("interval_ms", 100.0)),
            stop_on_end=d.get("stop_on_end", True),
            autostart=d.get("autostart", True),
            stats_log_interval=float(d.get("stats_log_interval", 60.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interval_ms": self.interval_ms,
            "stop_on_end": self.stop_on_end,
            "autostart": self.autostart,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class WebConfig:
    """Preview web server configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000
    stream_fps: int = 10

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
            stream_fps=d.get("stream_fps", 10),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "host": self.host,
            "port": self.port,
            "stream_fps": self.stream_fps,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    video: VideoConfig = field(default_factory=VideoConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/detection_overlay.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            video=VideoConfig.from_dict(d.get("video", {}) or {}),
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay", {}) or {}),
            scheduler=SchedulerConfig.from_dict(d.get("scheduler", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/detection_overlay.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "video": self.video.to_dict(),
            "model": self.model.to_dict(),
            "detection": self.detection.to_dict(),
            "overlay": self.overlay.to_dict(),
            "scheduler": self.scheduler.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
