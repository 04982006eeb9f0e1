"""
Input/Output Manager (HDF5)
Handles saving and loading conveyor parameters and placed components to .h5 files.

Slots are never written: they are regenerated from the parameters on load and
every placed component is re-checked against the fresh slot set.
"""
from __future__ import annotations

import logging
from dataclasses import asdict
from enum import Enum
from importlib.metadata import version, PackageNotFoundError
from typing import TYPE_CHECKING, Any

import h5py
import numpy as np

from conveyorbuilder.model.geometry_primitives import Vector
from conveyorbuilder.model.orientation import Orientation
from conveyorbuilder.model.params import (
    ConveyorModel, ConveyorParams, EngineType, StopButtonCount, StopButtonEnd, StopButtonSide
)
from conveyorbuilder.model.placement import PlacedComponent
from conveyorbuilder.model.slots import SlotType

if TYPE_CHECKING:
    from conveyorbuilder.app.state import PlacementStore

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("conveyorbuilder")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

# HDF5 attributes cannot hold None
_NONE = ""


class ProjectFileError(Exception):
    pass


class IOManager:

    @staticmethod
    def save_project(store: PlacementStore, filepath: str) -> None:
        IOManager.write(filepath, store.params, store.components)

    @staticmethod
    def load_project(store: PlacementStore, filepath: str) -> list[PlacedComponent]:
        """Load into the store; returns the components whose slot binding is stale."""
        params, components = IOManager.read(filepath)
        return store.load(params, components)

    @staticmethod
    def write(filepath: str, params: ConveyorParams, components: tuple[PlacedComponent, ...] | list[PlacedComponent]) -> None:
        logger.info(f"Saving project to: {filepath}")
        try:
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION

                # --- 1. PARAMETERS ---
                grp_params = f.create_group("params")
                for key, val in asdict(params).items():
                    if key == "stop_button_count":
                        grp_params.attrs["stop_button_count_motor"] = val["motor"]
                        grp_params.attrs["stop_button_count_opposite"] = val["opposite"]
                    else:
                        if isinstance(val, Enum):
                            val = str(val.value)
                        grp_params.attrs[key] = _NONE if val is None else val

                # --- 2. PLACED COMPONENTS ---
                grp_comps = f.create_group("components")
                for i, comp in enumerate(components):
                    grp = grp_comps.create_group(f"{i:04d}")
                    grp.attrs["id"] = comp.id
                    grp.attrs["type"] = comp.type.value
                    grp.attrs["slot_id"] = comp.slot_id
                    grp.attrs["name"] = comp.name
                    grp.attrs["model_ref"] = comp.model_ref or _NONE
                    grp.attrs["position"] = np.array(comp.position.to_tuple())
                    grp.attrs["rotation"] = np.array(comp.rotation.as_tuple())

            logger.info(f"Project saved to: {filepath} ({len(components)} components)")

        except Exception as e:
            logger.exception(f"Failed to save project: {e}")
            raise e

    @staticmethod
    def read(filepath: str) -> tuple[ConveyorParams, list[PlacedComponent]]:
        logger.info(f"Loading project from: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ProjectFileError(msg)

        try:
            with h5py.File(filepath, "r") as f:
                file_version = _as_str(f.attrs.get("version", "unknown"))
                if file_version != APP_VERSION:
                    logger.warning(f"Project was saved with version {file_version}, running {APP_VERSION}.")

                params = _read_params(f["params"].attrs)

                components = []
                grp_comps = f["components"]
                for key in sorted(grp_comps.keys()):
                    attrs = grp_comps[key].attrs
                    components.append(PlacedComponent(
                        id=_as_str(attrs["id"]),
                        type=SlotType(_as_str(attrs["type"])),
                        slot_id=_as_str(attrs["slot_id"]),
                        position=Vector.from_sequence(attrs["position"]),
                        rotation=Orientation(*(float(v) for v in attrs["rotation"])),
                        name=_as_str(attrs["name"]),
                        model_ref=_as_str(attrs["model_ref"]) or None,
                    ))

        except (KeyError, ValueError) as e:
            logger.exception(f"Failed to load project: {e}")
            raise ProjectFileError(f"Project file '{filepath}' is malformed: {e}") from e

        logger.info(f"Project loaded: {len(components)} components")
        return params, components


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _read_params(attrs: h5py.AttributeManager) -> ConveyorParams:
    def optional_enum(enum_cls, key):
        raw = _as_str(attrs.get(key, _NONE))
        return enum_cls(raw) if raw else None

    values: dict[str, Any] = {
        "axis_length": float(attrs["axis_length"]),
        "belt_width": float(attrs["belt_width"]),
        "model": ConveyorModel(_as_str(attrs["model"])),
        "engine_type": optional_enum(EngineType, "engine_type"),
        "side_guide_enabled": bool(attrs.get("side_guide_enabled", False)),
        "side_guide_height": float(attrs.get("side_guide_height", 100.0)),
        "stop_button_side": optional_enum(StopButtonSide, "stop_button_side"),
        "stop_button_end": StopButtonEnd(_as_str(attrs.get("stop_button_end", StopButtonEnd.BOTH.value))),
        "stop_button_count": StopButtonCount(
            motor=int(attrs.get("stop_button_count_motor", 0)),
            opposite=int(attrs.get("stop_button_count_opposite", 0)),
        ),
        "supporting_frame": bool(attrs.get("supporting_frame", False)),
        "frame_height": float(attrs.get("frame_height", 300.0)),
        "frame_wheels": bool(attrs.get("frame_wheels", False)),
    }
    return ConveyorParams(**values)
