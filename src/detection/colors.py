"""
Class-to-color mapping for overlay boxes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

from models.config import DEFAULT_CLASS_COLORS, ColorSpec, OverlayConfig

BGR = Tuple[int, int, int]

# CSS color names used by class maps, as OpenCV BGR
NAMED_COLORS: Dict[str, BGR] = {
    "red": (0, 0, 255),
    "blue": (255, 0, 0),
    "purple": (128, 0, 128),
    "green": (0, 128, 0),
    "lime": (0, 255, 0),
    "pink": (203, 192, 255),
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "orange": (0, 165, 255),
    "brown": (42, 42, 165),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "yellow": (0, 255, 255),
    "cyan": (255, 255, 0),
    "magenta": (255, 0, 255),
}


def to_bgr(color: ColorSpec) -> BGR:
    """
    Parse a color spec into a BGR tuple.

    Raises:
        ValueError: For unknown names or malformed values.
    """
    if isinstance(color, str):
        value = color.strip().lower()
        if value.startswith("#") and len(value) == 7:
            r, g, b = (int(value[i:i + 2], 16) for i in (1, 3, 5))
            return (b, g, r)
        if value in NAMED_COLORS:
            return NAMED_COLORS[value]
        raise ValueError(f"Unknown color: {color!r}")

    parts = tuple(int(c) for c in color)
    if len(parts) != 3 or not all(0 <= c <= 255 for c in parts):
        raise ValueError(f"Color must be three values in 0-255: {color!r}")
    return parts  # type: ignore[return-value]


@dataclass(frozen=True)
class ClassColorMap:
    """
    Immutable class_id -> color lookup with an explicit default-on-miss policy.
    """
    colors: Mapping[int, ColorSpec] = field(default_factory=lambda: dict(DEFAULT_CLASS_COLORS))
    default: ColorSpec = "yellow"

    def __post_init__(self) -> None:
        # Fail at construction on bad specs rather than mid-render
        for spec in self.colors.values():
            to_bgr(spec)
        to_bgr(self.default)

    @classmethod
    def from_config(cls, config: OverlayConfig) -> "ClassColorMap":
        return cls(colors=dict(config.class_colors), default=config.default_color)

    def lookup(self, class_id: Optional[int]) -> Optional[ColorSpec]:
        """Mapped color for class_id, or None when the class is unmapped."""
        if class_id is None:
            return None
        return self.colors.get(int(class_id))

    def resolve(self, class_id: Optional[int]) -> ColorSpec:
        """Mapped color, falling back to the default."""
        color = self.lookup(class_id)
        return self.default if color is None else color

    def bgr(self, class_id: Optional[int]) -> BGR:
        return to_bgr(self.resolve(class_id))
