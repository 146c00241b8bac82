"""
Detector output postprocessing.

Rows are read in model order; rows scoring below the threshold are dropped
and the rest become pixel-space Detections. No sorting, deduplication or
non-max suppression is applied, so overlapping boxes for one object are all
kept.
"""

from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

import numpy as np

from models.config import DetectionConfig
from models.detection import (
    CLASS_ID,
    HEIGHT,
    MIN_ROW_LENGTH,
    SCORE,
    WIDTH,
    X_CENTER,
    Y_CENTER,
    BoundingBox,
    Detection,
)


def class_id_from(value: Any) -> Optional[int]:
    """Integral class values become ints; fractional or non-finite ones map to no class."""
    value = float(value)
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def rows_from_output(output: Any) -> np.ndarray:
    """
    Extract the (N, K) row matrix from raw model output.

    Accepts (1, N, K) batched output or an (N, K) matrix.

    Raises:
        ValueError: If rows have fewer than MIN_ROW_LENGTH columns.
    """
    arr = np.asarray(output, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, MIN_ROW_LENGTH), dtype=np.float64)
    if arr.ndim == 3:
        arr = arr[0]
    if arr.ndim != 2:
        raise ValueError(f"Unexpected detector output shape: {arr.shape}")
    if arr.shape[1] < MIN_ROW_LENGTH:
        raise ValueError(
            f"Detector rows need at least {MIN_ROW_LENGTH} columns, got {arr.shape[1]}"
        )
    return arr


def postprocess(
    rows: Sequence[Sequence[float]],
    threshold: float,
    canvas_width: float,
    canvas_height: float,
) -> List[Detection]:
    """
    Convert raw rows into Detections.

    A row is accepted when score >= threshold, so a NaN score is dropped.
    The normalized center box is turned into a corner box and scaled to the
    canvas. Degenerate boxes (zero or negative size) are still emitted.
    """
    detections: List[Detection] = []
    for row in rows:
        score = float(row[SCORE])
        if not score >= threshold:
            continue

        bbox = BoundingBox.from_normalized_center(
            float(row[X_CENTER]),
            float(row[Y_CENTER]),
            float(row[WIDTH]),
            float(row[HEIGHT]),
            canvas_width,
            canvas_height,
        )
        detections.append(Detection(bbox=bbox, score=score, class_id=class_id_from(row[CLASS_ID])))

    return detections


class Postprocessor:
    """Applies the configured threshold and canvas size to model output."""

    def __init__(self, config: DetectionConfig):
        self._config = config

    @property
    def threshold(self) -> float:
        return self._config.threshold

    def process(self, output: Any) -> List[Detection]:
        return postprocess(
            rows_from_output(output),
            self._config.threshold,
            self._config.frame_width,
            self._config.frame_height,
        )
