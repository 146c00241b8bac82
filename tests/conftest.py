"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
video:
  device_id: 0
  fps: null

model:
  path: "models/test.onnx"

detection:
  threshold: 0.5
  target_classes: [0, 2]
  frame_size: [640, 640]

scheduler:
  interval_ms: 100

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "video": {
            "device_id": "sample.mp4",
            "fps": 25,
            "rotate": 0,
        },
        "model": {
            "path": "models/test.onnx",
            "providers": ["CPUExecutionProvider"],
        },
        "detection": {
            "threshold": 0.5,
            "target_classes": [0, 2],
            "frame_size": [640, 640],
        },
        "overlay": {
            "class_colors": {0: "red", 2: "blue"},
            "default_color": "yellow",
        },
        "scheduler": {
            "interval_ms": 100,
        },
        "web": {
            "port": 5000,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
