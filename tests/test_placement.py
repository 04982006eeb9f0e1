"""Tests for slot resolution and stale binding detection."""
import pytest

from conveyorbuilder.model.geometry_primitives import ORIGIN, Vector
from conveyorbuilder.model.orientation import IDENTITY
from conveyorbuilder.model.params import ConveyorParams
from conveyorbuilder.model.placement import (
    PlacedComponent,
    describe_slot,
    find_stale_bindings,
    get_valid_slots,
    nearest_free_slot,
    new_component_id,
)
from conveyorbuilder.model.slots import Side, Slot, SlotType, generate_slots


def _place(slot, component_id="comp_1"):
    return PlacedComponent(
        id=component_id,
        type=slot.type,
        slot_id=slot.id,
        position=slot.position,
        rotation=IDENTITY,
        name="Part",
    )


def _slot(slot_id, x, slot_type=SlotType.WHEEL):
    return Slot(id=slot_id, type=slot_type, position=Vector(x, 0.0, 0.0), normal=Vector(0, -1, 0), up=Vector(1, 0, 0))


@pytest.fixture
def slots():
    return generate_slots(ConveyorParams(frame_wheels=True, supporting_frame=True))


class TestValidSlots:

    def test_filters_by_type(self, slots):
        valid = get_valid_slots(SlotType.WHEEL, slots, [])
        assert len(valid) == 4
        assert all(s.type == SlotType.WHEEL for s in valid)

    def test_excludes_occupied(self, slots):
        wheels = [s for s in slots if s.type == SlotType.WHEEL]
        valid = get_valid_slots(SlotType.WHEEL, slots, [_place(wheels[0])])
        assert wheels[0] not in valid
        assert valid == wheels[1:]

    def test_type_without_slots(self, slots):
        assert get_valid_slots(SlotType.ENGINE_MOUNT, slots, []) == []


class TestNearestFreeSlot:

    def test_within_tolerance(self):
        candidates = [_slot("a", 0.0), _slot("b", 1.0)]
        assert nearest_free_slot(Vector(0.03, 0.0, 0.0), candidates, 0.04).id == "a"

    def test_outside_tolerance(self):
        candidates = [_slot("a", 0.0), _slot("b", 1.0)]
        assert nearest_free_slot(Vector(0.05, 0.0, 0.0), candidates, 0.04) is None

    def test_exactly_at_tolerance_counts(self):
        candidates = [_slot("a", 0.0)]
        assert nearest_free_slot(Vector(0.0, 0.0, 0.04), candidates, 0.04) is not None

    def test_picks_closest(self):
        candidates = [_slot("a", 0.0), _slot("b", 0.05)]
        assert nearest_free_slot(Vector(0.03, 0.0, 0.0), candidates, 0.04).id == "b"

    def test_tie_goes_to_first_generated(self):
        candidates = [_slot("a", -0.02), _slot("b", 0.02)]
        assert nearest_free_slot(ORIGIN, candidates, 0.04).id == "a"
        assert nearest_free_slot(ORIGIN, list(reversed(candidates)), 0.04).id == "b"

    def test_no_candidates(self):
        assert nearest_free_slot(ORIGIN, [], 0.04) is None

    @pytest.mark.parametrize("x", [float("nan"), float("inf")])
    def test_non_finite_point_resolves_nothing(self, x):
        candidates = [_slot("a", 0.0), _slot("b", 1.0)]
        assert nearest_free_slot(Vector(x, 0.0, 0.0), candidates, 0.04) is None


class TestStaleBindings:

    def test_missing_slot_is_stale(self, slots):
        wheel = next(s for s in slots if s.type == SlotType.WHEEL)
        component = _place(wheel)
        assert find_stale_bindings([component], slots) == []

        without_wheels = generate_slots(ConveyorParams(supporting_frame=True))
        assert find_stale_bindings([component], without_wheels) == [component]

    def test_type_mismatch_is_stale(self, slots):
        wheel = next(s for s in slots if s.type == SlotType.WHEEL)
        leg = next(s for s in slots if s.type == SlotType.FRAME_LEG)
        component = PlacedComponent(
            id="comp_x", type=SlotType.FRAME_LEG, slot_id=wheel.id,
            position=leg.position, rotation=IDENTITY, name="Leg",
        )
        assert find_stale_bindings([component], slots) == [component]


def test_component_ids_are_unique():
    assert len({new_component_id() for _ in range(100)}) == 100


def test_describe_slot():
    slot = Slot(
        id="sensor_motor_0", type=SlotType.SENSOR, position=ORIGIN,
        normal=Vector(0, 0, 1), up=Vector(0, 1, 0), side=Side.MOTOR, meta={"zone": "START"},
    )
    assert describe_slot(slot) == "MOTOR • START"
