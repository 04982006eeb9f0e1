"""
Slot Generation
===============
Enumerates the typed attachment points ("slots") of a conveyor frame.

Scene frame (metres):
    x runs along the conveyor, start of the belt at -x, drive end at +x.
    y is up, the belt surface lies at y = 0.
    z runs across the belt, the motor side is -z, the opposite side +z.

Slot ids are built from ``(type, side, index)`` only, so the same parameters
always yield the same ids in the same order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
import math
from types import MappingProxyType
from typing import Any, Mapping, Optional

import numpy as np

from conveyorbuilder.model.geometry_primitives import Vector, UNIT_X, UNIT_Y
from conveyorbuilder.model.params import (
    ConveyorParams, EngineType, StopButtonSide, StopButtonEnd, derive, is_side_guide_height_valid
)
from conveyorbuilder.utils import mm_to_scene

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class SlotType(StrEnum):
    ENGINE_MOUNT = "ENGINE_MOUNT"
    STOP_BUTTON = "STOP_BUTTON"
    SENSOR = "SENSOR"
    SIDE_GUIDE_BRACKET = "SIDE_GUIDE_BRACKET"
    WHEEL = "WHEEL"
    FRAME_LEG = "FRAME_LEG"

class Side(StrEnum):
    MOTOR = "MOTOR"
    OPPOSITE = "OPPOSITE"
    CENTER = "CENTER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    START = "START"
    END = "END"


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class Slot:
    """A typed, positioned, oriented attachment point."""
    id: str
    type: SlotType
    position: Vector
    normal: Vector  # primary facing direction of the part
    up: Vector  # secondary axis, disambiguates the roll about the normal
    side: Optional[Side] = None
    meta: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    @property
    def zone(self) -> Optional[str]:
        return self.meta.get("zone")


def make_slot_id(slot_type: SlotType, side: Side, index: int) -> str:
    return f"{slot_type.value}_{side.value}_{index}".lower()


# Frame constants (m)
RAIL_OFFSET = 0.05  # rail centre line inside the frame edge
STOP_BUTTON_HEIGHT = 0.02
SENSOR_HEIGHT = 0.03
SENSOR_END_INSET = 0.2
ENGINE_DROP = 0.05
ENGINE_SIDE_CLEARANCE = 0.1
CENTRAL_ENGINE_DROP = 0.2
SIDE_GUIDE_PITCH = 0.3
LEG_PITCH = 1.0
INTERMEDIATE_LEG_THRESHOLD = 2.0


# ------------------------------------------------------------------------------
# Generator
# ------------------------------------------------------------------------------
def generate_slots(params: ConveyorParams) -> list[Slot]:
    """
    Generate all slots for a conveyor.

    Order is fixed: engine mounts, stop buttons, sensors, side-guide brackets,
    wheels, frame legs. Each feature flag gates its own subset only.
    """
    dims = derive(params)
    length = mm_to_scene(params.axis_length)
    total_length = mm_to_scene(dims.total_length)
    total_width = mm_to_scene(dims.total_width)

    slots: list[Slot] = []

    if params.engine_type is not None:
        slots.extend(_engine_mount_slots(total_length, total_width, params.engine_type))

    if params.stop_button_side is not None:
        slots.extend(_stop_button_slots(length, total_width, params))

    slots.extend(_sensor_slots(total_length, total_width))

    if params.side_guide_enabled and is_side_guide_height_valid(params.side_guide_height):
        slots.extend(_side_guide_bracket_slots(length, total_width, params.side_guide_height))

    if params.frame_wheels:
        slots.extend(_wheel_slots(total_length, total_width, mm_to_scene(params.frame_height)))

    if params.supporting_frame:
        slots.extend(_frame_leg_slots(total_length, total_width, mm_to_scene(params.frame_height)))

    logger.debug(f"Generated {len(slots)} slots for {params.model} (L={params.axis_length}, N={params.belt_width}).")
    return slots


def _engine_mount_slots(total_length: float, total_width: float, engine_type: EngineType) -> list[Slot]:
    if engine_type == EngineType.CENTRAL:
        return [Slot(
            id=make_slot_id(SlotType.ENGINE_MOUNT, Side.CENTER, 0),
            type=SlotType.ENGINE_MOUNT,
            position=Vector(0.0, -CENTRAL_ENGINE_DROP, 0.0),
            normal=Vector(0.0, -1.0, 0.0),
            up=UNIT_X,
            side=Side.CENTER,
            meta={"engine_type": engine_type.value},
        )]

    # Side-mounted drives sit at the drive end, outside the frame
    x = total_length / 2
    z = total_width / 2 + ENGINE_SIDE_CLEARANCE
    return [
        Slot(
            id=make_slot_id(SlotType.ENGINE_MOUNT, Side.MOTOR, 0),
            type=SlotType.ENGINE_MOUNT,
            position=Vector(x, -ENGINE_DROP, -z),
            normal=Vector(0.0, 0.0, -1.0),
            up=UNIT_Y,
            side=Side.MOTOR,
            meta={"engine_type": engine_type.value},
        ),
        Slot(
            id=make_slot_id(SlotType.ENGINE_MOUNT, Side.OPPOSITE, 0),
            type=SlotType.ENGINE_MOUNT,
            position=Vector(x, -ENGINE_DROP, z),
            normal=Vector(0.0, 0.0, 1.0),
            up=UNIT_Y,
            side=Side.OPPOSITE,
            meta={"engine_type": engine_type.value},
        ),
    ]


def _stop_button_positions(length: float, count: int, end: StopButtonEnd) -> list[tuple[float, str]]:
    """
    Evenly spread ``count`` positions over the rail stretch selected by ``end``.

    BOTH uses the whole axis length, START/END the respective half.
    Returns ``(x, zone)`` pairs.
    """
    if count <= 0:
        return []

    match end:
        case StopButtonEnd.START:
            lo, hi = -length / 2, 0.0
        case StopButtonEnd.END:
            lo, hi = 0.0, length / 2
        case _:
            lo, hi = -length / 2, length / 2

    if count == 1:
        xs = [(lo + hi) / 2]
    else:
        xs = [float(x) for x in np.linspace(lo, hi, count)]

    if end != StopButtonEnd.BOTH:
        return [(x, end.value) for x in xs]

    positions = []
    for i, x in enumerate(xs):
        if count == 1:
            zone = Side.CENTER.value
        elif i == 0:
            zone = Side.START.value
        elif i == count - 1:
            zone = Side.END.value
        else:
            zone = Side.CENTER.value
        positions.append((x, zone))
    return positions


def _stop_button_slots(length: float, total_width: float, params: ConveyorParams) -> list[Slot]:
    max_count = params.spec.stop_button_max
    side_choice = params.stop_button_side
    z = total_width / 2 - RAIL_OFFSET

    rails: list[tuple[Side, int, float]] = []
    if side_choice in (StopButtonSide.MOTOR, StopButtonSide.BOTH):
        rails.append((Side.MOTOR, params.stop_button_count.motor, -z))
    if side_choice in (StopButtonSide.OPPOSITE, StopButtonSide.BOTH):
        rails.append((Side.OPPOSITE, params.stop_button_count.opposite, z))

    slots: list[Slot] = []
    for side, requested, rail_z in rails:
        count = max(0, min(int(requested), max_count))
        if count != requested:
            logger.warning(f"Stop button count {requested} on {side} side clamped to {count}.")

        positions = _stop_button_positions(length, count, params.stop_button_end)
        for i, (x, zone) in enumerate(positions):
            slots.append(Slot(
                id=make_slot_id(SlotType.STOP_BUTTON, side, i),
                type=SlotType.STOP_BUTTON,
                position=Vector(x, STOP_BUTTON_HEIGHT, rail_z),
                # buttons face away from the belt, towards the operator
                normal=Vector(0.0, 0.0, math.copysign(1.0, rail_z)),
                up=UNIT_Y,
                side=side,
                meta={"index": i, "total": count, "zone": zone},
            ))
    return slots


def _sensor_slots(total_length: float, total_width: float) -> list[Slot]:
    x_start = -total_length / 2 + SENSOR_END_INSET
    x_end = total_length / 2 - SENSOR_END_INSET
    z = total_width / 2 - RAIL_OFFSET

    slots: list[Slot] = []
    for side, rail_z in ((Side.MOTOR, -z), (Side.OPPOSITE, z)):
        for i, (x, zone) in enumerate(((x_start, Side.START), (x_end, Side.END))):
            slots.append(Slot(
                id=make_slot_id(SlotType.SENSOR, side, i),
                type=SlotType.SENSOR,
                position=Vector(x, SENSOR_HEIGHT, rail_z),
                # sensors look across the belt
                normal=Vector(0.0, 0.0, -math.copysign(1.0, rail_z)),
                up=UNIT_Y,
                side=side,
                meta={"zone": zone.value},
            ))
    return slots


def _side_guide_bracket_slots(length: float, total_width: float, guide_height_mm: float) -> list[Slot]:
    count = math.floor(length / SIDE_GUIDE_PITCH + 1e-9)
    z = total_width / 2

    slots: list[Slot] = []
    for side, edge_z in ((Side.LEFT, -z), (Side.RIGHT, z)):
        for i in range(count):
            x = -length / 2 + (i + 0.5) * SIDE_GUIDE_PITCH
            slots.append(Slot(
                id=make_slot_id(SlotType.SIDE_GUIDE_BRACKET, side, i),
                type=SlotType.SIDE_GUIDE_BRACKET,
                position=Vector(x, 0.0, edge_z),
                normal=Vector(0.0, 0.0, -math.copysign(1.0, edge_z)),
                up=UNIT_Y,
                side=side,
                meta={"index": i, "guide_height_mm": guide_height_mm},
            ))
    return slots


def _support_stations(total_length: float) -> list[float]:
    """x positions of the supporting frame stations along one long edge."""
    if total_length > INTERMEDIATE_LEG_THRESHOLD:
        intervals = math.floor(total_length / LEG_PITCH)
    else:
        intervals = 1
    return [float(x) for x in np.linspace(-total_length / 2, total_length / 2, intervals + 1)]


def _station_zone(i: int, n: int) -> str:
    if i == 0:
        return Side.START.value
    if i == n - 1:
        return Side.END.value
    return Side.CENTER.value


def _wheel_slots(total_length: float, total_width: float, frame_height: float) -> list[Slot]:
    stations = _support_stations(total_length)
    z = total_width / 2

    slots: list[Slot] = []
    for side, edge_z in ((Side.LEFT, -z), (Side.RIGHT, z)):
        for i, x in enumerate(stations):
            slots.append(Slot(
                id=make_slot_id(SlotType.WHEEL, side, i),
                type=SlotType.WHEEL,
                position=Vector(x, -frame_height, edge_z),
                normal=Vector(0.0, -1.0, 0.0),
                up=UNIT_X,
                side=side,
                meta={"index": i, "zone": _station_zone(i, len(stations))},
            ))
    return slots


def _frame_leg_slots(total_length: float, total_width: float, frame_height: float) -> list[Slot]:
    stations = _support_stations(total_length)
    z = total_width / 2

    slots: list[Slot] = []
    for side, edge_z in ((Side.LEFT, -z), (Side.RIGHT, z)):
        for i, x in enumerate(stations):
            slots.append(Slot(
                id=make_slot_id(SlotType.FRAME_LEG, side, i),
                type=SlotType.FRAME_LEG,
                position=Vector(x, -frame_height / 2, edge_z),
                normal=Vector(0.0, -1.0, 0.0),
                up=UNIT_X,
                side=side,
                meta={
                    "index": i,
                    "zone": _station_zone(i, len(stations)),
                    "intermediate": 0 < i < len(stations) - 1,
                },
            ))
    return slots
