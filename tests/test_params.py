"""Tests for conveyor parameters and their derived dimensions."""
import math

import pytest

from conveyorbuilder.model.params import (
    ConveyorModel,
    ConveyorParams,
    StopButtonCount,
    derive,
    round_and_clamp,
    validate_side_guide_height,
    validate_stop_button_count,
    stop_button_limits,
)


class TestRounding:

    @pytest.mark.parametrize("value", [300.0, 300.4, 999.5, 1234.49, 19999.6])
    def test_round_and_clamp_is_idempotent(self, value):
        once = round_and_clamp(value, 300.0, 20000.0)
        assert round_and_clamp(once, 300.0, 20000.0) == once

    def test_half_rounds_up(self):
        assert round_and_clamp(1000.5, 300.0, 20000.0) == 1001.0
        assert round_and_clamp(1000.49, 300.0, 20000.0) == 1000.0

    def test_clamps_to_bounds(self):
        assert round_and_clamp(10.0, 300.0, 20000.0) == 300.0
        assert round_and_clamp(50000.0, 300.0, 20000.0) == 20000.0

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError):
            round_and_clamp(math.nan, 300.0, 20000.0)
        with pytest.raises(ValueError):
            round_and_clamp(math.inf, 300.0, 20000.0)


class TestDerivedDimensions:

    @pytest.mark.parametrize("model, offset", [
        (ConveyorModel.DPS50, 55.0),
        (ConveyorModel.DPS60, 70.0),
        (ConveyorModel.DPS96, 100.0),
    ])
    def test_total_length_uses_model_offset(self, model, offset):
        params = ConveyorParams(axis_length=2000.0, belt_width=400.0, model=model)
        assert params.total_length == pytest.approx(2000.0 + offset)
        assert params.total_width == pytest.approx(467.0)

    def test_scenario_large_belt(self):
        params = ConveyorParams(axis_length=6000.0, belt_width=1200.0)
        dims = derive(params)
        assert dims.total_length == pytest.approx(6055.0)
        assert dims.total_width == pytest.approx(1267.0)

    def test_derived_values_follow_edits(self):
        params = ConveyorParams()
        edited = params.with_updates(axis_length=3000.0, model=ConveyorModel.DPS96)
        assert edited.total_length == pytest.approx(3100.0)
        assert params.total_length == pytest.approx(1055.0)

    def test_derive_clamps_out_of_range(self):
        params = ConveyorParams(axis_length=50.0, belt_width=5000.0)
        dims = derive(params)
        assert dims.total_length == pytest.approx(300.0 + 55.0)
        assert dims.total_width == pytest.approx(2000.0 + 67.0)

    def test_derive_rejects_nan(self):
        with pytest.raises(ValueError):
            derive(ConveyorParams(axis_length=math.nan))


class TestWithUpdates:

    def test_clamps_and_rounds(self):
        params = ConveyorParams().with_updates(axis_length=25000.4, belt_width=99.0, frame_height=612.6)
        assert params.axis_length == 20000.0
        assert params.belt_width == 100.0
        assert params.frame_height == 613.0

    def test_unchanged_update_is_equal(self):
        params = ConveyorParams()
        assert params.with_updates(axis_length=1000.0) == params


class TestValidation:

    def test_side_guide_height_bounds(self):
        assert validate_side_guide_height(15.0) is None
        assert validate_side_guide_height(250.0) is None
        assert "at least 15" in validate_side_guide_height(14.0)
        assert "not exceed 250" in validate_side_guide_height(251.0)

    def test_stop_button_limits_per_model(self):
        assert stop_button_limits(ConveyorModel.DPS50) == (1, 6)
        assert stop_button_limits(ConveyorModel.DPS60) == (1, 12)
        assert stop_button_limits(ConveyorModel.DPS96) == (1, 12)

    def test_stop_button_count_messages(self):
        assert validate_stop_button_count(3, ConveyorModel.DPS50, "motor") is None
        assert "Min 1" in validate_stop_button_count(0, ConveyorModel.DPS50, "motor")
        assert "Max 6" in validate_stop_button_count(7, ConveyorModel.DPS50, "opposite")
        assert validate_stop_button_count(7, ConveyorModel.DPS60, "opposite") is None

    def test_stop_button_count_defaults(self):
        assert ConveyorParams().stop_button_count == StopButtonCount(motor=0, opposite=0)
