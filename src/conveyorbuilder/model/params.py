"""
Conveyor Parameters (Geometry Model)
====================================
The parametric description of one conveyor frame.

The user enters the axis-to-axis length ``L`` and the belt width ``N``.
Overall dimensions are derived from them and the model variant:

    D = L + offset(model)      (total length)
    R = N + 67                 (total width)

``D`` and ``R`` are exposed as read-only properties and recomputed on every
access, so they can never go stale after an edit.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
import logging
import math
from typing import Any, Optional

from conveyorbuilder.config import (
    AXIS_LENGTH_BOUNDS, BELT_WIDTH_BOUNDS, FRAME_HEIGHT_BOUNDS, SIDE_GUIDE_HEIGHT_BOUNDS, PARAM_STEP
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class ConveyorModel(StrEnum):
    """Frame families."""
    DPS50 = "DPS50"
    DPS60 = "DPS60"
    DPS96 = "DPS96"

class EngineType(StrEnum):
    NORMAL = "NORMAL"
    REDACTOR = "REDACTOR"
    CENTRAL = "CENTRAL"

class StopButtonSide(StrEnum):
    MOTOR = "MOTOR"
    OPPOSITE = "OPPOSITE"
    BOTH = "BOTH"

class StopButtonEnd(StrEnum):
    START = "START"
    END = "END"
    BOTH = "BOTH"

# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class ModelSpec:
    """Constants of one frame family."""
    offset: float  # mm added to L
    margin: float  # mm added to N
    stop_button_min: int
    stop_button_max: int


MODEL_SPECS: dict[ConveyorModel, ModelSpec] = {
    ConveyorModel.DPS50: ModelSpec(offset=55.0, margin=67.0, stop_button_min=1, stop_button_max=6),
    ConveyorModel.DPS60: ModelSpec(offset=70.0, margin=67.0, stop_button_min=1, stop_button_max=12),
    ConveyorModel.DPS96: ModelSpec(offset=100.0, margin=67.0, stop_button_min=1, stop_button_max=12),
}


@dataclass(frozen=True)
class Dimensions:
    total_length: float  # D, mm
    total_width: float  # R, mm


@dataclass(frozen=True)
class StopButtonCount:
    motor: int = 0
    opposite: int = 0


@dataclass(frozen=True)
class ConveyorParams:
    """
    Holds the frame configuration.

    All lengths are in millimetres. Instances are immutable; edits go through
    :meth:`with_updates`, which the store calls before regenerating slots.
    """
    axis_length: float = 1000.0  # L
    belt_width: float = 500.0  # N
    model: ConveyorModel = ConveyorModel.DPS50
    engine_type: Optional[EngineType] = None

    side_guide_enabled: bool = False
    side_guide_height: float = 100.0

    stop_button_side: Optional[StopButtonSide] = None
    stop_button_end: StopButtonEnd = StopButtonEnd.BOTH
    stop_button_count: StopButtonCount = field(default_factory=StopButtonCount)

    supporting_frame: bool = False
    frame_height: float = 300.0
    frame_wheels: bool = False

    @property
    def total_length(self) -> float:
        """D"""
        return derive(self).total_length

    @property
    def total_width(self) -> float:
        """R"""
        return derive(self).total_width

    @property
    def spec(self) -> ModelSpec:
        return MODEL_SPECS[self.model]

    def with_updates(self, **updates: Any) -> ConveyorParams:
        """Return a copy with the given fields replaced and L, N, frame height clamped."""
        params = replace(self, **updates)
        return replace(
            params,
            axis_length=clamp_axis_length(params.axis_length),
            belt_width=clamp_belt_width(params.belt_width),
            frame_height=clamp_frame_height(params.frame_height),
        )


# ------------------------------------------------------------------------------
# Derivation
# ------------------------------------------------------------------------------
def round_and_clamp(value: float, lo: float, hi: float, step: float = PARAM_STEP) -> float:
    """Round half-up to the nearest ``step`` and clamp into ``[lo, hi]``."""
    if not math.isfinite(value):
        raise ValueError(f"Parameter value must be finite, got {value!r}.")
    rounded = math.floor(value / step + 0.5) * step
    return max(lo, min(hi, rounded))

def clamp_axis_length(value: float) -> float:
    return round_and_clamp(value, *AXIS_LENGTH_BOUNDS)

def clamp_belt_width(value: float) -> float:
    return round_and_clamp(value, *BELT_WIDTH_BOUNDS)

def clamp_frame_height(value: float) -> float:
    return round_and_clamp(value, *FRAME_HEIGHT_BOUNDS)


def derive(params: ConveyorParams) -> Dimensions:
    """
    Calculate the derived dimensions D and R from L, N and the model variant.

    Out-of-range L/N are clamped to their configured bounds so the resulting
    geometry is always positive; non-finite input raises ``ValueError``.
    """
    length = params.axis_length
    width = params.belt_width
    if not (math.isfinite(length) and math.isfinite(width)):
        raise ValueError(f"Non-finite conveyor dimensions: L={length!r}, N={width!r}.")

    lo, hi = AXIS_LENGTH_BOUNDS
    if not lo <= length <= hi:
        logger.warning(f"Axis length {length} mm outside [{lo}, {hi}], clamping.")
        length = max(lo, min(hi, length))

    lo, hi = BELT_WIDTH_BOUNDS
    if not lo <= width <= hi:
        logger.warning(f"Belt width {width} mm outside [{lo}, {hi}], clamping.")
        width = max(lo, min(hi, width))

    spec = MODEL_SPECS[params.model]
    return Dimensions(total_length=length + spec.offset, total_width=width + spec.margin)


# ------------------------------------------------------------------------------
# Validation (parameter editing boundary)
# ------------------------------------------------------------------------------
def is_side_guide_height_valid(height: float) -> bool:
    lo, hi = SIDE_GUIDE_HEIGHT_BOUNDS
    return lo <= height <= hi

def validate_side_guide_height(height: float) -> Optional[str]:
    """Return an error message, or ``None`` when the height is acceptable."""
    lo, hi = SIDE_GUIDE_HEIGHT_BOUNDS
    if height < lo:
        return f"Height must be at least {lo:g} mm"
    if height > hi:
        return f"Height must not exceed {hi:g} mm"
    return None

def stop_button_limits(model: ConveyorModel) -> tuple[int, int]:
    spec = MODEL_SPECS[model]
    return spec.stop_button_min, spec.stop_button_max

def validate_stop_button_count(count: int, model: ConveyorModel, side: str) -> Optional[str]:
    """Return an error message for a per-side stop button count, or ``None``."""
    lo, hi = stop_button_limits(model)
    if count < lo:
        return f"Min {lo} stop button{'s' if lo > 1 else ''} required on {side} side for {model}"
    if count > hi:
        return f"Max {hi} stop button{'s' if hi > 1 else ''} allowed on {side} side for {model} (min {lo})"
    return None
