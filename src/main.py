"""
Detection overlay application.

Plays a video file, webcam or network stream, samples the current frame at a
fixed interval, runs it through the detector and paints class-colored boxes
with confidence labels onto an overlay surface served by the preview server.

Usage:
    python src/main.py --config config/config.yaml --source video.mp4 --model model.onnx

Arguments:
    --config: Path to configuration file
    --source: Video source override (file path, camera index or URL)
    --model: Model path override
    --no-web: Disable the preview web server
    --display: Show the overlay in an OpenCV window
"""

import argparse
import logging
import os
import sys
import threading
import time
from typing import Any, Dict, Optional, Tuple

import cv2
import uvicorn
import yaml

from inference.backend import InferenceAdapter
from inference.onnx_backend import load_onnx_model
from models.config import Config
from observation import VideoPlayer, create_source_from_config
from observation.stream_utils import inject_stream_credentials
from ops.logging import setup_logging
from overlay.surface import SurfaceUnavailable
from pipeline import CycleResult, FrameScheduler, create_pipeline_from_config
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")

    try:
        merged: Dict[str, Any] = {}
        if os.path.exists(base_path):
            merged = _read_yaml(base_path)
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        # Finally apply explicit config_path if it's not the local override file itself
        if (
            os.path.exists(config_path)
            and os.path.abspath(config_path) != os.path.abspath(local_overrides_path)
            and os.path.abspath(config_path) != os.path.abspath(base_path)
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['video', 'model', 'detection', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Video settings
    video = config.get('video') or {}
    if 'device_id' not in video:
        return False, "Missing video.device_id"
    if not isinstance(video['device_id'], (int, str)):
        return False, "video.device_id must be an integer (index) or string (path or URL)"
    if isinstance(video['device_id'], int) and video['device_id'] < 0:
        return False, "video.device_id integer must be non-negative"
    if video.get('fps') is not None:
        if not isinstance(video['fps'], (int, float)) or video['fps'] <= 0:
            return False, "video.fps must be a positive number"
    if video.get('rotate', 0) not in (0, 90, 180, 270, None):
        return False, "video.rotate must be one of: 0, 90, 180, 270"

    # Model settings
    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path is required"

    # Detection settings
    detection = config.get('detection') or {}
    threshold = detection.get('threshold', 0.5)
    if not isinstance(threshold, (int, float)) or not (0 <= threshold <= 1):
        return False, "detection.threshold must be between 0 and 1"
    frame_size = detection.get('frame_size', [640, 640])
    if not isinstance(frame_size, list) or len(frame_size) != 2:
        return False, "detection.frame_size must be a list of [width, height]"
    if not all(isinstance(x, int) and x > 0 for x in frame_size):
        return False, "detection.frame_size values must be positive integers"
    target_classes = detection.get('target_classes', [])
    if not isinstance(target_classes, list) or not all(isinstance(c, int) for c in target_classes):
        return False, "detection.target_classes must be a list of integers"

    # Overlay settings
    overlay = config.get('overlay') or {}
    class_colors = overlay.get('class_colors')
    if class_colors is not None:
        if not isinstance(class_colors, dict):
            return False, "overlay.class_colors must be a mapping of class id to color"
        try:
            [int(k) for k in class_colors]
        except (TypeError, ValueError):
            return False, "overlay.class_colors keys must be integer class ids"

    # Scheduler settings
    scheduler = config.get('scheduler') or {}
    if 'interval_ms' in scheduler:
        interval = scheduler['interval_ms']
        if not isinstance(interval, (int, float)) or interval <= 0:
            return False, "scheduler.interval_ms must be a positive number"

    # Web settings
    web = config.get('web') or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be a valid TCP port"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def apply_cli_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Fold command-line overrides into the raw config dict."""
    if args.source is not None:
        source: Any = args.source
        if isinstance(source, str) and source.isdigit():
            source = int(source)
        config.setdefault('video', {})['device_id'] = source
    if args.model is not None:
        config.setdefault('model', {})['path'] = args.model
    if args.no_web:
        config.setdefault('web', {})['enabled'] = False
    return config


def start_web_server(cfg: Config) -> threading.Thread:
    def run_web_app():
        uvicorn.run(
            create_app(),
            host=cfg.web.host,
            port=cfg.web.port,
            log_level="warning",
        )

    web_thread = threading.Thread(target=run_web_app, name="web", daemon=True)
    web_thread.start()
    logging.info(f"Web preview started on port {cfg.web.port}")
    return web_thread


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Real-time detection overlay')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--source', type=str, default=None,
                        help='Video source (file path, camera index or URL)')
    parser.add_argument('--model', type=str, default=None,
                        help='Path to the ONNX detector')
    parser.add_argument('--no-web', action='store_true',
                        help='Disable the preview web server')
    parser.add_argument('--display', action='store_true',
                        help='Show the overlay in a window')
    args = parser.parse_args()

    raw_config = apply_cli_overrides(load_config(args.config), args)

    try:
        inject_stream_credentials(raw_config.get('video') or {})
    except Exception as e:
        logging.error(f"Error loading stream secrets: {e}")

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    cfg = Config.from_dict(raw_config)
    setup_logging(cfg.log_path, cfg.log_level)
    logging.info("Starting detection overlay")

    adapter = InferenceAdapter()
    try:
        pipeline = create_pipeline_from_config(cfg, adapter)
    except SurfaceUnavailable as e:
        logging.error(f"Cannot create drawing surface: {e}")
        sys.exit(1)

    scheduler = FrameScheduler(pipeline, adapter, cfg.scheduler)
    player = VideoPlayer(create_source_from_config(cfg.video, source_id="main-video"), fps=cfg.video.fps)

    def publish(result: CycleResult) -> None:
        web_state.record_cycle(result, frame=pipeline.surface.snapshot() if result.rendered else None)

    pipeline.add_callback(publish)

    if cfg.web.enabled:
        web_state.set_scheduler(scheduler, target_classes=cfg.detection.target_classes)
        web_state.stream_fps = cfg.web.stream_fps
        web_state.update_system_stats({"start_time": time.time()})
        start_web_server(cfg)

    # Model load runs in the background; playback starts immediately
    scheduler.load_model(lambda: load_onnx_model(cfg.model))

    try:
        if cfg.video.autoplay:
            player.play()
        scheduler.attach_video(player)

        while not player.ended:
            if args.display:
                cv2.imshow("Detection Overlay", pipeline.surface.snapshot())
                if cv2.waitKey(30) & 0xFF == ord('q'):
                    break
            else:
                player.wait_until_ended(timeout=0.5)

        logging.info("Playback finished")
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    except RuntimeError as e:
        logging.error(f"Video source error: {e}")
    finally:
        scheduler.stop()
        player.close()
        if args.display:
            cv2.destroyAllWindows()
        logging.info("Detection overlay stopped")


if __name__ == "__main__":
    main()
