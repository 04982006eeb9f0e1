"""
Slot resolution and placed components.

Occupancy is never stored on a slot: a slot is occupied when some placed
component references its id, and every query below recomputes that relation
from the component list it is given.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Optional, Sequence
import uuid

import numpy as np

from conveyorbuilder.config import SNAP_TOLERANCE
from conveyorbuilder.model.geometry_primitives import Vector
from conveyorbuilder.model.orientation import Orientation
from conveyorbuilder.model.slots import Slot, SlotType

logger = logging.getLogger(__name__)

# distances within this of the minimum are treated as equal
TIE_EPS = 1e-9


COMPONENT_NAMES: dict[SlotType, str] = {
    SlotType.ENGINE_MOUNT: "Engine",
    SlotType.STOP_BUTTON: "Stop Button",
    SlotType.SENSOR: "Sensor",
    SlotType.SIDE_GUIDE_BRACKET: "Side Guide",
    SlotType.WHEEL: "Wheel",
    SlotType.FRAME_LEG: "Frame Leg",
}


@dataclass(frozen=True)
class PlacedComponent:
    """A component bound to one slot. Position and rotation are frozen at commit time."""
    id: str
    type: SlotType
    slot_id: str
    position: Vector
    rotation: Orientation
    name: str
    model_ref: Optional[str] = None


def new_component_id() -> str:
    return f"comp_{uuid.uuid4().hex}"


def occupied_slot_ids(components: Iterable[PlacedComponent]) -> set[str]:
    return {c.slot_id for c in components}


def get_valid_slots(
    dragged_type: SlotType,
    slots: Sequence[Slot],
    placed_components: Iterable[PlacedComponent],
) -> list[Slot]:
    """Slots of ``dragged_type`` that no placed component references, in generation order."""
    occupied = occupied_slot_ids(placed_components)
    return [s for s in slots if s.type == dragged_type and s.id not in occupied]


def nearest_free_slot(
    point: Vector,
    candidates: Sequence[Slot],
    tolerance: float = SNAP_TOLERANCE,
) -> Optional[Slot]:
    """
    Return the candidate closest to ``point`` if it lies within ``tolerance``.

    Equidistant candidates (within ``TIE_EPS``) resolve to the one that comes
    first in ``candidates``, i.e. the lowest generation index.
    """
    if not candidates:
        return None

    positions = np.array([s.position.to_tuple() for s in candidates], dtype=np.float64)
    distances = np.linalg.norm(positions - point.to_array(), axis=1)

    best = float(distances.min())
    if not np.isfinite(best) or best > tolerance:
        return None

    # first index among the ties
    index = int(np.flatnonzero(distances <= best + TIE_EPS)[0])
    return candidates[index]


def find_stale_bindings(
    components: Iterable[PlacedComponent],
    slots: Sequence[Slot],
) -> list[PlacedComponent]:
    """
    Components whose ``slot_id`` no longer resolves to a slot of the same type.
    """
    by_id = {s.id: s for s in slots}
    stale = []
    for component in components:
        slot = by_id.get(component.slot_id)
        if slot is None or slot.type != component.type:
            stale.append(component)
    return stale


def describe_slot(slot: Slot) -> str:
    """Human readable side/zone label, e.g. ``"MOTOR • START"``."""
    parts = []
    if slot.side is not None:
        parts.append(slot.side.value)
    zone = slot.zone
    if zone and zone not in parts:
        parts.append(zone)
    return " • ".join(parts)
