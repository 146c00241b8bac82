"""
Tests for detection data models.
"""

import dataclasses

import pytest

from models.detection import BoundingBox, Detection


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox(x=10, y=20, width=30, height=40)

        assert bbox.x2 == 40
        assert bbox.y2 == 60
        assert bbox.center == (25, 40)
        assert bbox.area == 1200
        assert bbox.as_tuple() == (10, 20, 30, 40)

    def test_as_int_rect_rounds(self):
        bbox = BoundingBox(x=10.4, y=20.6, width=5.2, height=5.0)
        assert bbox.as_int_rect() == (10, 21, 16, 26)

    def test_from_normalized_center(self):
        bbox = BoundingBox.from_normalized_center(0.5, 0.5, 0.2, 0.2, 640, 640)

        assert bbox.x == pytest.approx(256.0)
        assert bbox.y == pytest.approx(256.0)
        assert bbox.width == pytest.approx(128.0)
        assert bbox.height == pytest.approx(128.0)

    def test_box_may_extend_past_canvas(self):
        bbox = BoundingBox.from_normalized_center(0.0, 0.0, 0.4, 0.4, 100, 100)
        assert bbox.x == pytest.approx(-20.0)
        assert bbox.y == pytest.approx(-20.0)

    def test_is_immutable(self):
        bbox = BoundingBox(0, 0, 1, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            bbox.x = 5


class TestDetection:
    def test_accessors(self):
        det = Detection(bbox=BoundingBox(1, 2, 3, 4), score=0.875, class_id=2)

        assert (det.x, det.y, det.width, det.height) == (1, 2, 3, 4)
        assert det.label == "(87.5%)"

    def test_to_dict(self):
        det = Detection(bbox=BoundingBox(1, 2, 3, 4), score=0.9, class_id=0)

        assert det.to_dict() == {
            "x": 1,
            "y": 2,
            "width": 3,
            "height": 4,
            "score": 0.9,
            "class_id": 0,
        }

    def test_equality(self):
        a = Detection(bbox=BoundingBox(1, 2, 3, 4), score=0.9, class_id=0)
        b = Detection(bbox=BoundingBox(1, 2, 3, 4), score=0.9, class_id=0)
        assert a == b
