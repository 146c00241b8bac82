"""
Overlay rendering of detections onto the drawing surface.
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from detection.colors import ClassColorMap
from models.config import OverlayConfig
from models.detection import Detection
from .surface import DrawingSurface


class OverlayRenderer:
    """
    Draws one frame's detections as class-colored boxes with score labels.

    Detections are drawn in the order given; overlapping boxes are all drawn.
    """

    def __init__(self, config: OverlayConfig):
        self._config = config
        self.colors = ClassColorMap.from_config(config)

    def label_origin(self, detection: Detection) -> tuple:
        """Label anchor: just above the box, or clamped near the top edge."""
        cfg = self._config
        x = int(round(detection.x))
        if detection.y > cfg.label_min_y:
            y = int(round(detection.y - cfg.label_offset))
        else:
            y = cfg.label_min_y
        return (x, y)

    def render(
        self,
        surface: DrawingSurface,
        frame: np.ndarray,
        detections: Sequence[Detection],
    ) -> bool:
        """
        Redraw frame as background and paint detections over it.

        Returns True when at least one detection was drawn. A disposed
        surface is left untouched and reports False.
        """
        if surface.disposed:
            return False

        surface.clear()
        surface.draw_frame(frame)

        canvas = surface.image
        font = cv2.FONT_HERSHEY_SIMPLEX
        for det in detections:
            color = self.colors.bgr(det.class_id)
            x1, y1, x2, y2 = det.bbox.as_int_rect()
            cv2.rectangle(canvas, (x1, y1), (x2, y2), color, self._config.line_width)
            cv2.putText(
                canvas,
                det.label,
                self.label_origin(det),
                font,
                self._config.font_scale,
                color,
                1,
            )

        return len(detections) > 0
