"""Tests for slot generation."""
import pytest

from conveyorbuilder.model.params import (
    ConveyorModel, ConveyorParams, EngineType, StopButtonCount, StopButtonEnd, StopButtonSide
)
from conveyorbuilder.model.slots import Side, SlotType, generate_slots, make_slot_id

GENERATION_ORDER = [
    SlotType.ENGINE_MOUNT,
    SlotType.STOP_BUTTON,
    SlotType.SENSOR,
    SlotType.SIDE_GUIDE_BRACKET,
    SlotType.WHEEL,
    SlotType.FRAME_LEG,
]


def _of_type(slots, slot_type):
    return [s for s in slots if s.type == slot_type]


@pytest.fixture
def full_params():
    return ConveyorParams(
        engine_type=EngineType.NORMAL,
        side_guide_enabled=True,
        stop_button_side=StopButtonSide.BOTH,
        stop_button_count=StopButtonCount(motor=3, opposite=2),
        supporting_frame=True,
        frame_wheels=True,
    )


class TestIds:

    def test_make_slot_id_is_lowercase(self):
        assert make_slot_id(SlotType.STOP_BUTTON, Side.MOTOR, 2) == "stop_button_motor_2"

    def test_ids_unique(self, full_params):
        ids = [s.id for s in generate_slots(full_params)]
        assert len(ids) == len(set(ids))

    def test_regeneration_is_reproducible(self, full_params):
        first = generate_slots(full_params)
        second = generate_slots(full_params)
        assert [s.id for s in first] == [s.id for s in second]
        assert [s.position for s in first] == [s.position for s in second]

    def test_generation_order(self, full_params):
        types = [s.type for s in generate_slots(full_params)]
        ranks = [GENERATION_ORDER.index(t) for t in types]
        assert ranks == sorted(ranks)


class TestFeatureGating:

    def test_defaults_only_sensors(self):
        slots = generate_slots(ConveyorParams())
        assert {s.type for s in slots} == {SlotType.SENSOR}
        assert [s.id for s in slots] == [
            "sensor_motor_0", "sensor_motor_1", "sensor_opposite_0", "sensor_opposite_1",
        ]

    def test_wheels_without_legs(self):
        slots = generate_slots(ConveyorParams(frame_wheels=True))
        assert len(_of_type(slots, SlotType.WHEEL)) == 4
        assert _of_type(slots, SlotType.FRAME_LEG) == []

    def test_legs_without_wheels(self):
        slots = generate_slots(ConveyorParams(supporting_frame=True))
        assert len(_of_type(slots, SlotType.FRAME_LEG)) == 4
        assert _of_type(slots, SlotType.WHEEL) == []

    def test_side_guides_need_valid_height(self):
        enabled = generate_slots(ConveyorParams(side_guide_enabled=True, side_guide_height=100.0))
        invalid = generate_slots(ConveyorParams(side_guide_enabled=True, side_guide_height=10.0))
        # 1 m axis length, 0.3 m pitch -> 3 brackets per side
        assert len(_of_type(enabled, SlotType.SIDE_GUIDE_BRACKET)) == 6
        assert _of_type(invalid, SlotType.SIDE_GUIDE_BRACKET) == []


class TestEngineMounts:

    def test_side_engine_has_two_mounts(self):
        slots = _of_type(generate_slots(ConveyorParams(engine_type=EngineType.REDACTOR)), SlotType.ENGINE_MOUNT)
        assert [s.id for s in slots] == ["engine_mount_motor_0", "engine_mount_opposite_0"]
        motor, opposite = slots
        assert motor.position.z < 0 < opposite.position.z
        assert motor.position.x == pytest.approx(1.055 / 2)

    def test_central_engine_has_one_mount(self):
        slots = _of_type(generate_slots(ConveyorParams(engine_type=EngineType.CENTRAL)), SlotType.ENGINE_MOUNT)
        assert len(slots) == 1
        assert slots[0].id == "engine_mount_center_0"
        assert slots[0].position.x == 0.0


class TestStopButtons:

    def test_counts_per_side(self, full_params):
        slots = _of_type(generate_slots(full_params), SlotType.STOP_BUTTON)
        assert len([s for s in slots if s.side == Side.MOTOR]) == 3
        assert len([s for s in slots if s.side == Side.OPPOSITE]) == 2

    def test_count_clamped_to_model_maximum(self):
        params = ConveyorParams(
            model=ConveyorModel.DPS50,
            stop_button_side=StopButtonSide.MOTOR,
            stop_button_count=StopButtonCount(motor=9),
        )
        slots = _of_type(generate_slots(params), SlotType.STOP_BUTTON)
        assert len(slots) == 6
        assert all(s.meta["total"] == 6 for s in slots)

    def test_single_side_only(self):
        params = ConveyorParams(
            stop_button_side=StopButtonSide.OPPOSITE,
            stop_button_count=StopButtonCount(motor=4, opposite=1),
        )
        slots = _of_type(generate_slots(params), SlotType.STOP_BUTTON)
        assert [s.id for s in slots] == ["stop_button_opposite_0"]

    def test_end_restricts_to_half(self):
        params = ConveyorParams(
            stop_button_side=StopButtonSide.MOTOR,
            stop_button_end=StopButtonEnd.START,
            stop_button_count=StopButtonCount(motor=2),
        )
        slots = _of_type(generate_slots(params), SlotType.STOP_BUTTON)
        assert all(s.position.x <= 0.0 for s in slots)
        assert all(s.zone == "START" for s in slots)

    def test_both_ends_zones(self, full_params):
        motor = [s for s in generate_slots(full_params) if s.type == SlotType.STOP_BUTTON and s.side == Side.MOTOR]
        assert [s.zone for s in motor] == ["START", "CENTER", "END"]


class TestSupportStations:

    def test_wheels_at_corners(self, params):
        wheels = _of_type(generate_slots(params), SlotType.WHEEL)
        corners = {(round(w.position.x, 6), round(w.position.z, 6)) for w in wheels}
        half_d, half_r = 1.055 / 2, 0.567 / 2
        assert corners == {
            (round(-half_d, 6), round(-half_r, 6)),
            (round(half_d, 6), round(-half_r, 6)),
            (round(-half_d, 6), round(half_r, 6)),
            (round(half_d, 6), round(half_r, 6)),
        }
        assert all(w.position.y == pytest.approx(-0.3) for w in wheels)

    def test_long_conveyor_gets_intermediate_legs(self):
        params = ConveyorParams(axis_length=6000.0, belt_width=1200.0, supporting_frame=True)
        legs = _of_type(generate_slots(params), SlotType.FRAME_LEG)
        # D = 6.055 m -> 6 intervals -> 7 stations per side
        assert len(legs) == 14
        assert sum(1 for leg in legs if leg.meta["intermediate"]) == 10

    def test_slot_meta_is_read_only(self, params):
        slot = generate_slots(params)[0]
        with pytest.raises(TypeError):
            slot.meta["zone"] = "X"
