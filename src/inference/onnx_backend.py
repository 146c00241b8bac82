"""
ONNX Runtime inference backend.

Loads an exported detector whose single output has the fixed row layout
[x_center, y_center, width, height, score, class_id, ...] for an NHWC
(1, 640, 640, 3) float input.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Sequence

import numpy as np

from models.config import ModelConfig
from .backend import ModelLoadFailure


class OnnxModel:
    """Thin wrapper over an onnxruntime InferenceSession."""

    def __init__(self, session: Any):
        self._session = session
        inputs = session.get_inputs()
        if not inputs:
            raise ModelLoadFailure("Model has no inputs")
        self.input_name = inputs[0].name
        self.input_shape = list(inputs[0].shape)

    @property
    def providers(self) -> List[str]:
        return list(self._session.get_providers())

    def execute(self, tensor: np.ndarray) -> np.ndarray:
        outputs = self._session.run(None, {self.input_name: tensor.astype(np.float32, copy=False)})
        return outputs[0]


def _create_session(path: str, providers: Sequence[str]) -> Any:
    try:
        import onnxruntime as ort  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ModelLoadFailure(
            "onnxruntime is not installed. Install with `pip install onnxruntime`."
        ) from e

    available = set(ort.get_available_providers())
    selected = [p for p in providers if p in available] or ["CPUExecutionProvider"]
    return ort.InferenceSession(path, providers=selected)


def load_onnx_model(cfg: ModelConfig) -> OnnxModel:
    """
    Load the detector described by cfg.

    Raises:
        ModelLoadFailure: If the file is missing or the session cannot be built.
    """
    if not cfg.path:
        raise ModelLoadFailure("model.path is not configured")
    if not os.path.exists(cfg.path):
        raise ModelLoadFailure(f"Model file not found: {cfg.path}")

    logging.info(f"Loading model: {cfg.path}")
    try:
        session = _create_session(cfg.path, cfg.providers)
    except ModelLoadFailure:
        raise
    except Exception as e:
        raise ModelLoadFailure(f"Failed to create inference session: {e}") from e

    model = OnnxModel(session)
    logging.info(
        f"Model loaded: input={model.input_name} shape={model.input_shape} "
        f"providers={model.providers}"
    )
    return model
