"""
Detection models for object detection results.

Raw model rows use a fixed layout:
    [x_center, y_center, width, height, score, class_id, ...]
with box fields normalized to [0, 1]. Detections are pixel-space corner boxes
on the drawing surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

# Column offsets inside a raw detection row
X_CENTER = 0
Y_CENTER = 1
WIDTH = 2
HEIGHT = 3
SCORE = 4
CLASS_ID = 5
MIN_ROW_LENGTH = 6


@dataclass(frozen=True)
class BoundingBox:
    """
    A corner box in pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width (may be zero or negative for degenerate rows).
        height: Box height (may be zero or negative for degenerate rows).
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_rect(self) -> Tuple[int, int, int, int]:
        """Return integer (x1, y1, x2, y2) corners for drawing."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.x2)),
            int(round(self.y2)),
        )

    @classmethod
    def from_normalized_center(
        cls,
        x_center: float,
        y_center: float,
        width: float,
        height: float,
        canvas_width: float,
        canvas_height: float,
    ) -> "BoundingBox":
        """
        Convert a normalized center box into a pixel-space corner box.

        The corner is computed in normalized space first, then x/width are
        scaled by the canvas width and y/height by the canvas height.
        """
        x = x_center - width / 2
        y = y_center - height / 2
        return cls(
            x=x * canvas_width,
            y=y * canvas_height,
            width=width * canvas_width,
            height=height * canvas_height,
        )


@dataclass(frozen=True)
class Detection:
    """
    A single accepted detection for one frame.

    Attributes:
        bbox: Bounding box in surface pixel coordinates.
        score: Detection confidence score (0-1).
        class_id: Integer class ID from the detector, or None when the
            model emitted a non-integral class value.
    """
    bbox: BoundingBox
    score: float
    class_id: Optional[int]

    @property
    def x(self) -> float:
        return self.bbox.x

    @property
    def y(self) -> float:
        return self.bbox.y

    @property
    def width(self) -> float:
        return self.bbox.width

    @property
    def height(self) -> float:
        return self.bbox.height

    @property
    def label(self) -> str:
        """Confidence label as drawn on the overlay, e.g. "(90.0%)"."""
        return f"({self.score * 100:.1f}%)"

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "score": self.score,
            "class_id": self.class_id,
        }
