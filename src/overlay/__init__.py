"""
Overlay drawing: the shared surface and the detection renderer.
"""

from .surface import DrawingSurface, SurfaceUnavailable
from .renderer import OverlayRenderer

__all__ = ["DrawingSurface", "SurfaceUnavailable", "OverlayRenderer"]
