"""
Detection Overlay - Detection Module

Preprocessing of frames into model tensors, postprocessing of raw detector
rows, and class color resolution.
"""

from .preprocess import Preprocessor
from .postprocess import Postprocessor, postprocess, rows_from_output
from .colors import ClassColorMap, to_bgr

__all__ = [
    'Preprocessor',
    'Postprocessor',
    'postprocess',
    'rows_from_output',
    'ClassColorMap',
    'to_bgr',
]
