from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np
import pyvista as pv
from PySide6.QtCore import QPoint, Slot
from PySide6.QtWidgets import QWidget, QVBoxLayout
from pyvistaqt import QtInteractor

from conveyorbuilder.app.state import DragState, PlacementStore
from conveyorbuilder.model.geometry_primitives import Vector
from conveyorbuilder.model.orientation import Orientation
from conveyorbuilder.model.slots import SlotType
from conveyorbuilder.utils import mm_to_scene

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

PART_SIZE = 0.05  # placeholder cube edge (m)
FRAME_PROFILE_HEIGHT = 0.1

TYPE_COLORS: dict[SlotType, str] = {
    SlotType.ENGINE_MOUNT: "#ff6b00",
    SlotType.STOP_BUTTON: "#ff0000",
    SlotType.SENSOR: "#00c000",
    SlotType.SIDE_GUIDE_BRACKET: "#0000ff",
    SlotType.WHEEL: "#888888",
    SlotType.FRAME_LEG: "#444444",
}
STALE_COLOR = "#d0002a"
SLOT_COLOR = "#9bb7d4"
VALID_SLOT_COLOR = "#00d26a"
HOVER_SLOT_COLOR = "#ffb000"
GHOST_COLOR = "#00ff00"


def placement_matrix(position: Vector, orientation: Orientation) -> npt.NDArray[np.float64]:
    """4x4 homogeneous transform for a part at ``position`` with ``orientation``."""
    matrix = np.eye(4)
    matrix[:3, :3] = orientation.as_matrix()
    matrix[:3, 3] = position.to_array()
    return matrix


def part_mesh(position: Vector, orientation: Orientation) -> pv.PolyData:
    cube = pv.Cube(center=(0.0, 0.0, 0.0), x_length=PART_SIZE, y_length=PART_SIZE, z_length=PART_SIZE)
    return cube.transform(placement_matrix(position, orientation), inplace=False)


# -------------------------------------------------------------------------------
# Ghost preview
# -------------------------------------------------------------------------------

class PyVistaGhostPreview:
    """Translucent box shown at the target slot while dragging."""

    def __init__(self, plotter: QtInteractor) -> None:
        self._plotter = plotter
        self._actor: pv.Actor | None = None

    def show(self, slot_type: SlotType, position: Vector, orientation: Orientation) -> None:
        # release the old actor before attaching the new one
        self.clear(render=False)
        self._actor = self._plotter.add_mesh(
            part_mesh(position, orientation),
            color=GHOST_COLOR,
            opacity=0.5,
            pickable=False,
            reset_camera=False,
        )
        self._plotter.render()

    def clear(self, render: bool = True) -> None:
        if self._actor is None:
            return
        self._plotter.remove_actor(self._actor, render=render)
        self._actor = None


# -------------------------------------------------------------------------------
# Scene widget
# -------------------------------------------------------------------------------

class Scene3D(QWidget):
    """
    PyVista/Qt view of the conveyor:
      - frame and belt boxes from the current parameters,
      - slot markers (valid slots highlighted while dragging, hovered slot accented),
      - placed components as placeholder boxes (stale bindings in red),
      - ghost preview owned by `ghost`.
    """
    def __init__(self, store: PlacementStore, parent: QWidget | None = None) -> None:
        super().__init__(parent=parent)
        self.store = store

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        self.setLayout(layout)

        self.plotter = QtInteractor(self)
        layout.addWidget(self.plotter.interactor)
        self.plotter.set_background("white")
        self.plotter.add_axes()

        self.ghost = PyVistaGhostPreview(self.plotter)

        self._frame_actors: list[pv.Actor] = []
        self._slot_actors: list[pv.Actor] = []
        self._component_actors: list[pv.Actor] = []

        store.params_changed.connect(self._on_params_changed)
        store.slots_changed.connect(self._on_slots_changed)
        store.components_changed.connect(self._on_components_changed)
        store.stale_bindings_detected.connect(self._on_components_changed)
        store.hover_changed.connect(self._on_slots_changed)
        store.drag_state_changed.connect(self._on_drag_state_changed)

        self._draw_frame()
        self._draw_slots()
        self._draw_components()
        self.plotter.reset_camera()

    # ------------------------------------------------------------------------------
    # Pointer projection
    # ------------------------------------------------------------------------------

    def project_global(self, global_pos: QPoint) -> Optional[Vector]:
        """
        World point under the cursor on the working plane of the dragged type,
        or None when the cursor is outside the 3D view.
        """
        widget = self.plotter.interactor
        local = widget.mapFromGlobal(global_pos)
        if not widget.rect().contains(local):
            return None
        return self.world_point_at(local, self._working_height())

    def world_point_at(self, pos: QPoint, height: float) -> Optional[Vector]:
        """Intersect the view ray through ``pos`` with the plane y = ``height``."""
        widget = self.plotter.interactor
        renderer = self.plotter.renderer
        ratio = widget.devicePixelRatioF()
        x = pos.x() * ratio
        y = (widget.height() - pos.y()) * ratio

        ends = []
        for depth in (0.0, 1.0):
            renderer.SetDisplayPoint(x, y, depth)
            renderer.DisplayToWorld()
            wx, wy, wz, w = renderer.GetWorldPoint()
            if w == 0.0:
                return None
            ends.append(np.array([wx, wy, wz]) / w)

        near, far = ends
        direction = far - near
        if abs(direction[1]) < 1e-12:
            return None
        t = (height - near[1]) / direction[1]
        if t < 0.0:
            return None
        return Vector.from_sequence(near + t * direction)

    def _working_height(self) -> float:
        slot_type = self.store.dragging_type
        if slot_type is None:
            return 0.0
        for slot in self.store.slots:
            if slot.type == slot_type:
                return slot.position.y
        return 0.0

    # ------------------------------------------------------------------------------
    # Store reactions
    # ------------------------------------------------------------------------------

    @Slot(object)
    def _on_params_changed(self, *_: object) -> None:
        self._draw_frame()
        self.plotter.render()

    @Slot(object)
    def _on_slots_changed(self, *_: object) -> None:
        self._draw_slots()
        self.plotter.render()

    @Slot(object)
    def _on_components_changed(self, *_: object) -> None:
        self._draw_components()
        self.plotter.render()

    @Slot(object)
    def _on_drag_state_changed(self, state: DragState) -> None:
        if state in (DragState.DRAGGING, DragState.IDLE):
            self._draw_slots()
            self.plotter.render()

    # ------------------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------------------

    def _clear(self, actors: list[pv.Actor]) -> None:
        for actor in actors:
            self.plotter.remove_actor(actor, render=False)
        actors.clear()

    def _draw_frame(self) -> None:
        self._clear(self._frame_actors)
        params = self.store.params
        half_d = mm_to_scene(params.total_length) / 2
        half_r = mm_to_scene(params.total_width) / 2
        half_l = mm_to_scene(params.axis_length) / 2
        half_n = mm_to_scene(params.belt_width) / 2

        frame = pv.Box(bounds=(-half_d, half_d, -FRAME_PROFILE_HEIGHT, -0.005, -half_r, half_r))
        belt = pv.Box(bounds=(-half_l, half_l, -0.005, 0.0, -half_n, half_n))
        self._frame_actors.append(self.plotter.add_mesh(frame, color="#c8c8c8", pickable=False, reset_camera=False))
        self._frame_actors.append(self.plotter.add_mesh(belt, color="#2b2b2b", pickable=False, reset_camera=False))

    def _draw_slots(self) -> None:
        self._clear(self._slot_actors)
        slots = self.store.slots
        if not slots:
            return

        dragging = self.store.dragging_type
        valid_ids = {s.id for s in self.store.valid_slots(dragging)} if dragging is not None else set()
        hovered = self.store.hovered_slot_id

        groups: dict[str, list[Vector]] = {SLOT_COLOR: [], VALID_SLOT_COLOR: [], HOVER_SLOT_COLOR: []}
        for slot in slots:
            if slot.id == hovered:
                groups[HOVER_SLOT_COLOR].append(slot.position)
            elif slot.id in valid_ids:
                groups[VALID_SLOT_COLOR].append(slot.position)
            elif dragging is None:
                groups[SLOT_COLOR].append(slot.position)

        for color, positions in groups.items():
            if not positions:
                continue
            cloud = pv.PolyData(np.array([p.to_tuple() for p in positions]))
            self._slot_actors.append(self.plotter.add_mesh(
                cloud,
                color=color,
                point_size=14 if color == HOVER_SLOT_COLOR else 9,
                render_points_as_spheres=True,
                pickable=False,
                reset_camera=False,
            ))

    def _draw_components(self) -> None:
        self._clear(self._component_actors)
        stale = self.store.stale_component_ids
        for component in self.store.components:
            color = STALE_COLOR if component.id in stale else TYPE_COLORS.get(component.type, "#00b4d8")
            self._component_actors.append(self.plotter.add_mesh(
                part_mesh(component.position, component.rotation),
                color=color,
                pickable=False,
                reset_camera=False,
            ))

    def closeEvent(self, event) -> None:
        self.ghost.clear(render=False)
        self.plotter.close()
        super().closeEvent(event)
