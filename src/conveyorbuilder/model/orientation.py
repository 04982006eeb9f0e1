"""
Orientation of a placed part from its slot frame.

Canonical part axes: local +Z is the part's forward (aligned with the slot
normal), local +Y its up (aligned with the slot's up axis), local +X = Y x Z.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

import numpy as np
from scipy.spatial.transform import Rotation

from conveyorbuilder.model.geometry_primitives import Vector, UNIT_X, UNIT_Y, UNIT_Z

if TYPE_CHECKING:
    import numpy.typing as npt
    from conveyorbuilder.model.slots import Slot

logger = logging.getLogger(__name__)

# |up x normal| below this counts as parallel
PARALLEL_EPS = 1e-6

EULER_ORDER = "XYZ"  # intrinsic


@dataclass(frozen=True)
class Orientation:
    """Intrinsic XYZ Euler angles in radians."""
    x: float
    y: float
    z: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def as_matrix(self) -> npt.NDArray[np.float64]:
        return Rotation.from_euler(EULER_ORDER, self.as_tuple()).as_matrix()

    @classmethod
    def from_matrix(cls, matrix: npt.NDArray[np.float64]) -> Orientation:
        x, y, z = Rotation.from_matrix(matrix).as_euler(EULER_ORDER)
        return cls(float(x), float(y), float(z))


IDENTITY = Orientation(0.0, 0.0, 0.0)


def orthonormal_basis(normal: Vector, up: Vector) -> tuple[Vector, Vector, Vector]:
    """
    Build a right-handed orthonormal basis (right, up, forward) with forward
    along ``normal`` and up as close to ``up`` as possible.

    Degenerate input falls back to a default axis instead of producing NaN:
    a zero normal becomes world +Z; an up parallel to the normal becomes
    world +Y, or world +X when the normal itself is vertical.
    """
    forward = normal.normalize()
    if forward.magnitude == 0.0:
        logger.debug("Zero-length slot normal, falling back to +Z.")
        forward = UNIT_Z

    secondary = up.normalize()
    if secondary.magnitude == 0.0 or secondary.cross(forward).magnitude < PARALLEL_EPS:
        secondary = UNIT_Y if UNIT_Y.cross(forward).magnitude >= PARALLEL_EPS else UNIT_X
        logger.debug(f"Slot up axis parallel to normal, falling back to {secondary}.")

    right = secondary.cross(forward).normalize()
    corrected_up = forward.cross(right).normalize()
    return right, corrected_up, forward


def calculate_orientation(slot: Slot) -> Orientation:
    """Rotation that maps the part's canonical axes onto the slot frame."""
    right, up, forward = orthonormal_basis(slot.normal, slot.up)
    # basis vectors as matrix columns
    matrix = np.column_stack([right.to_array(), up.to_array(), forward.to_array()])
    return Orientation.from_matrix(matrix)
