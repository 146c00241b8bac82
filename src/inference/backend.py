"""
Inference backend interface.

A backend executes one normalized input tensor and returns the raw detector
output unchanged. Interpretation of the output rows is the postprocessor's job.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol

import numpy as np


class ModelLoadFailure(RuntimeError):
    """The detector model could not be loaded."""


class InferenceFailure(RuntimeError):
    """A single inference call failed."""


class InferenceModel(Protocol):
    def execute(self, tensor: np.ndarray) -> Any:
        ...


class InferenceAdapter:
    """
    Holds the one loaded model shared by every detection cycle.

    The model is set exactly once, after loading completes, and is never
    swapped. infer() does not retry: backend errors surface as InferenceFailure.
    """

    def __init__(self, model: Optional[InferenceModel] = None):
        self._model: Optional[InferenceModel] = None
        self._lock = threading.Lock()
        if model is not None:
            self.set_model(model)

    @property
    def ready(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Optional[InferenceModel]:
        return self._model

    def set_model(self, model: InferenceModel) -> None:
        with self._lock:
            if self._model is not None:
                raise RuntimeError("Inference model is already set")
            self._model = model
        logging.info(f"Inference model ready: {type(model).__name__}")

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        """Execute the model on one tensor and return its raw output."""
        model = self._model
        if model is None:
            raise RuntimeError("Inference model is not loaded")
        try:
            output = model.execute(tensor)
        except Exception as e:
            raise InferenceFailure(f"Inference failed: {e}") from e
        return np.asarray(output)
