"""
Smoke tests for configuration loading and validation.
"""

import argparse
import dataclasses
import logging

import pytest

from main import apply_cli_overrides, load_config, validate_config
from models.config import Config, DetectionConfig, OverlayConfig, SchedulerConfig
from ops.logging import setup_logging


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["video", "model", "detection", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_optional_sections_may_be_omitted(self, valid_config):
        for section in ("overlay", "scheduler", "web"):
            del valid_config[section]
        assert validate_config(valid_config) == (True, None)

    def test_invalid_device_id_type(self, valid_config):
        valid_config["video"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["video"]["device_id"] = -1
        assert validate_config(valid_config)[0] is False

    def test_invalid_rotation(self, valid_config):
        valid_config["video"]["rotate"] = 45

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "rotate" in error

    def test_missing_model_path(self, valid_config):
        valid_config["model"]["path"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model.path" in error

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, "high"])
    def test_threshold_out_of_range(self, valid_config, threshold):
        valid_config["detection"]["threshold"] = threshold

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "threshold" in error

    @pytest.mark.parametrize("threshold", [0, 0.5, 1])
    def test_threshold_bounds_allowed(self, valid_config, threshold):
        valid_config["detection"]["threshold"] = threshold
        assert validate_config(valid_config)[0] is True

    @pytest.mark.parametrize("frame_size", [[640], [640, 0], "640x640"])
    def test_invalid_frame_size(self, valid_config, frame_size):
        valid_config["detection"]["frame_size"] = frame_size

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "frame_size" in error

    def test_target_classes_must_be_ints(self, valid_config):
        valid_config["detection"]["target_classes"] = ["person"]
        assert validate_config(valid_config)[0] is False

    def test_class_color_keys_must_be_ids(self, valid_config):
        valid_config["overlay"]["class_colors"] = {"person": "red"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "class_colors" in error

    def test_interval_must_be_positive(self, valid_config):
        valid_config["scheduler"]["interval_ms"] = 0
        assert validate_config(valid_config)[0] is False

    def test_invalid_port(self, valid_config):
        valid_config["web"]["port"] = 70000
        assert validate_config(valid_config)[0] is False

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    def test_loads_default(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["detection"]["threshold"] == 0.5
        assert config["scheduler"]["interval_ms"] == 100

    def test_local_overrides_are_merged(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text(
            "detection:\n  threshold: 0.7\nvideo:\n  device_id: clip.mp4\n"
        )

        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["detection"]["threshold"] == 0.7
        assert config["detection"]["frame_size"] == [640, 640]
        assert config["video"]["device_id"] == "clip.mp4"

    def test_explicit_path_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("log_level: DEBUG\nscheduler:\n  interval_ms: 50\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"
        assert config["scheduler"]["interval_ms"] == 50
        assert config["model"]["path"] == "models/test.onnx"

    def test_broken_yaml_exits(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("detection: [unclosed\n")
        with pytest.raises(SystemExit):
            load_config(str(temp_config_dir / "config.yaml"))

    def test_checked_in_defaults_are_valid(self):
        config = load_config("config/default.yaml")
        if not config:
            pytest.skip("run from the project root")
        assert validate_config(config) == (True, None)


class TestCliOverrides:
    def _args(self, **kwargs):
        values = {"source": None, "model": None, "no_web": False}
        values.update(kwargs)
        return argparse.Namespace(**values)

    def test_numeric_source_becomes_index(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(source="1"))
        assert config["video"]["device_id"] == 1

    def test_path_source_and_model(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(source="clip.mp4", model="m.onnx"))
        assert config["video"]["device_id"] == "clip.mp4"
        assert config["model"]["path"] == "m.onnx"

    def test_no_web(self, valid_config):
        config = apply_cli_overrides(valid_config, self._args(no_web=True))
        assert config["web"]["enabled"] is False


class TestTypedConfig:
    def test_defaults(self):
        cfg = Config.from_dict({})

        assert cfg.detection.threshold == 0.5
        assert cfg.detection.frame_size == (640, 640)
        assert cfg.detection.target_classes == (0, 2)
        assert cfg.overlay.class_colors[0] == "red"
        assert cfg.overlay.default_color == "yellow"
        assert cfg.overlay.line_width == 2
        assert cfg.scheduler.interval_ms == 100.0
        assert cfg.scheduler.interval_s == pytest.approx(0.1)

    def test_from_valid_config(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.video.device_id == "sample.mp4"
        assert cfg.video.fps == 25
        assert cfg.model.path == "models/test.onnx"
        assert cfg.overlay.class_colors == {0: "red", 2: "blue"}
        assert cfg.web.port == 5000

    def test_string_color_keys_are_coerced(self):
        overlay = OverlayConfig.from_dict({"class_colors": {"3": "purple"}})
        assert overlay.class_colors == {3: "purple"}

    def test_to_dict_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_detection_config_is_immutable(self):
        cfg = DetectionConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.threshold = 0.1

    def test_scheduler_interval(self):
        assert SchedulerConfig(interval_ms=250).interval_s == pytest.approx(0.25)


class TestSetupLogging:
    def test_creates_log_directory(self, tmp_path):
        log_path = tmp_path / "logs" / "overlay.log"
        root = logging.getLogger()
        saved, saved_level = root.handlers[:], root.level
        root.handlers = []
        try:
            setup_logging(str(log_path), "INFO")
            logging.info("hello")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers = saved
            root.setLevel(saved_level)

        assert log_path.exists()
        assert "hello" in log_path.read_text()
