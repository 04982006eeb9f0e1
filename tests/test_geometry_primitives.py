"""Tests for the vector type and unit conversion."""
import numpy as np
import pytest

from conveyorbuilder.model.geometry_primitives import ORIGIN, UNIT_X, UNIT_Y, UNIT_Z, Vector
from conveyorbuilder.utils import mm_to_scene


class TestVector:

    def test_add(self):
        assert Vector(1.0, 2.0, 3.0) + Vector(0.5, -2.0, 1.0) == Vector(1.5, 0.0, 4.0)

    def test_normalize(self):
        v = Vector(3.0, 0.0, 4.0).normalize()
        assert v.magnitude == pytest.approx(1.0)
        assert v.to_tuple() == pytest.approx((0.6, 0.0, 0.8))

    def test_zero_vector_normalizes_to_zero(self):
        assert ORIGIN.normalize() == ORIGIN

    def test_division_by_zero(self):
        with pytest.raises(ZeroDivisionError):
            UNIT_X / 0.0

    def test_cross_is_right_handed(self):
        assert UNIT_X.cross(UNIT_Y) == UNIT_Z
        assert UNIT_X.dot(UNIT_Y) == 0.0

    def test_from_sequence(self):
        assert Vector.from_sequence(np.array([1, 2, 3])) == Vector(1.0, 2.0, 3.0)
        with pytest.raises(ValueError):
            Vector.from_sequence([1.0, 2.0])

    def test_to_array(self):
        assert Vector(1.0, 2.0, 3.0).to_array() == pytest.approx(np.array([1.0, 2.0, 3.0]))


def test_mm_to_scene():
    assert mm_to_scene(1055.0) == pytest.approx(1.055)
