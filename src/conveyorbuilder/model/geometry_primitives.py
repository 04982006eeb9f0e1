"""
Geometric primitives shared by slot generation, orientation and the scene.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, TYPE_CHECKING
import numpy as np
import math

if TYPE_CHECKING:
    import numpy.typing as npt

@dataclass(frozen=True)
class Vector:
    """
    A vector (or position) in 3D scene space.

    Scene axes: x along the conveyor length, y up, z across the belt width.
    """
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __truediv__(self, scalar: float) -> Vector:
        if scalar == 0.0: raise ZeroDivisionError
        return Vector(self.x / scalar, self.y / scalar, self.z / scalar)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def normalize(self) -> Vector:
        mag = self.magnitude
        if mag == 0.0: return Vector(0.0, 0.0, 0.0)
        return self / mag

    def dot(self, other: Vector) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vector) -> Vector:
        return Vector(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Vector:
        if len(values) != 3:
            raise ValueError(f"Expected 3 components, got {len(values)}.")
        return cls(float(values[0]), float(values[1]), float(values[2]))


ORIGIN = Vector(0.0, 0.0, 0.0)
UNIT_X = Vector(1.0, 0.0, 0.0)
UNIT_Y = Vector(0.0, 1.0, 0.0)
UNIT_Z = Vector(0.0, 0.0, 1.0)
