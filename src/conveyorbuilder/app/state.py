from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Any, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from conveyorbuilder.errors import PlacementError, SlotOccupiedError, UnknownSlotError
from conveyorbuilder.model.orientation import calculate_orientation
from conveyorbuilder.model.params import ConveyorParams
from conveyorbuilder.model.payload import DragPayload
from conveyorbuilder.model.placement import (
    COMPONENT_NAMES, PlacedComponent, find_stale_bindings, get_valid_slots, new_component_id
)
from conveyorbuilder.model.slots import Slot, SlotType, generate_slots

logger = logging.getLogger(__name__)


class DragState(StrEnum):
    """States of the placement state machine."""
    IDLE = "idle"
    DRAGGING = "dragging"
    TARGETING = "targeting"
    CANCELLED = "cancelled"  # transient
    COMMITTED = "committed"  # transient

class NotificationKind(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"

@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str


class PlacementStore(QObject):
    """
    Source of truth for one editing session: parameters, generated slots,
    placed components and the transient drag session.

    Views connect to the signals; the placement controller drives the drag
    transitions (`begin_drag`, `update_target`, `commit`, `cancel`).
    """
    params_changed = Signal(object)
    slots_changed = Signal(object)
    components_changed = Signal(object)
    hover_changed = Signal(object)  # slot id or None
    selection_changed = Signal(object)  # component id or None
    drag_state_changed = Signal(object)
    stale_bindings_detected = Signal(object)  # list[PlacedComponent]
    notified = Signal(object)

    def __init__(self, params: ConveyorParams | None = None) -> None:
        super().__init__()
        self._params = params if params is not None else ConveyorParams()
        self._slots: list[Slot] = generate_slots(self._params)
        self._components: list[PlacedComponent] = []
        self._stale_ids: frozenset[str] = frozenset()

        self._drag_state = DragState.IDLE
        self._dragging_type: Optional[SlotType] = None
        self._drag_payload: Optional[DragPayload] = None
        self._target_slot: Optional[Slot] = None
        self._hovered_slot_id: Optional[str] = None
        self._selected_component_id: Optional[str] = None

    # ---- read access ----

    @property
    def params(self) -> ConveyorParams:
        return self._params

    @property
    def slots(self) -> Sequence[Slot]:
        return tuple(self._slots)

    @property
    def components(self) -> Sequence[PlacedComponent]:
        return tuple(self._components)

    @property
    def drag_state(self) -> DragState:
        return self._drag_state

    @property
    def dragging_type(self) -> Optional[SlotType]:
        return self._dragging_type

    @property
    def drag_payload(self) -> Optional[DragPayload]:
        return self._drag_payload

    @property
    def target_slot(self) -> Optional[Slot]:
        return self._target_slot

    @property
    def hovered_slot_id(self) -> Optional[str]:
        return self._hovered_slot_id

    @property
    def selected_component_id(self) -> Optional[str]:
        return self._selected_component_id

    @property
    def stale_component_ids(self) -> frozenset[str]:
        return self._stale_ids

    def is_dragging(self) -> bool:
        return self._drag_state in (DragState.DRAGGING, DragState.TARGETING)

    def slot_by_id(self, slot_id: str) -> Optional[Slot]:
        for slot in self._slots:
            if slot.id == slot_id:
                return slot
        return None

    def valid_slots(self, slot_type: SlotType) -> list[Slot]:
        return get_valid_slots(slot_type, self._slots, self._components)

    # ---- parameters & slots ----

    def update_params(self, **updates: Any) -> None:
        """Apply a parameter edit (clamped at this boundary) and regenerate slots."""
        new_params = self._params.with_updates(**updates)
        if new_params == self._params:
            return
        self._params = new_params
        logger.info(f"Parameters updated: {updates}")
        self.params_changed.emit(self._params)
        self.regenerate_slots()

    def regenerate_slots(self) -> None:
        """Rebuild the whole slot set and re-check every binding against it."""
        self._slots = generate_slots(self._params)
        self.slots_changed.emit(self.slots)
        self.check_bindings()

    def check_bindings(self) -> list[PlacedComponent]:
        """Detect placed components whose slot no longer exists and report them."""
        stale = find_stale_bindings(self._components, self._slots)
        new_ids = frozenset(c.id for c in stale)
        newly_stale = new_ids - self._stale_ids
        self._stale_ids = new_ids

        if stale:
            self.stale_bindings_detected.emit(stale)
        if newly_stale:
            names = ", ".join(f"{c.name} ({c.slot_id})" for c in stale if c.id in newly_stale)
            logger.warning(f"{len(newly_stale)} placed component(s) lost their slot: {names}")
            self.notify(
                NotificationKind.WARNING,
                f"{len(newly_stale)} placed component(s) no longer match a slot: {names}",
            )
        return stale

    def load(self, params: ConveyorParams, components: Sequence[PlacedComponent]) -> list[PlacedComponent]:
        """Replace the session content (project load). Returns stale bindings."""
        if self.is_dragging():
            self.cancel()
        self._params = params
        self._components = list(components)
        self._stale_ids = frozenset()
        self._selected_component_id = None
        self.params_changed.emit(self._params)
        self.components_changed.emit(self.components)
        self.selection_changed.emit(None)
        self._slots = generate_slots(self._params)
        self.slots_changed.emit(self.slots)
        return self.check_bindings()

    def reset(self) -> None:
        self.load(ConveyorParams(), [])
        logger.info("Placement state has been reset.")

    # ---- components ----

    def remove_component(self, component_id: str) -> None:
        before = len(self._components)
        self._components = [c for c in self._components if c.id != component_id]
        if len(self._components) == before:
            raise KeyError(f"Component '{component_id}' not found.")

        self._stale_ids = self._stale_ids - {component_id}
        self.components_changed.emit(self.components)
        if self._selected_component_id == component_id:
            self.select_component(None)

    def select_component(self, component_id: Optional[str]) -> None:
        if component_id == self._selected_component_id:
            return
        self._selected_component_id = component_id
        self.selection_changed.emit(component_id)

    # ---- drag transitions ----

    def begin_drag(self, slot_type: SlotType, payload: Optional[DragPayload] = None) -> None:
        if self.is_dragging():
            raise PlacementError("A drag is already in progress.")
        self._dragging_type = slot_type
        self._drag_payload = payload
        self._target_slot = None
        self._set_hover(None)
        self._set_drag_state(DragState.DRAGGING)

    def update_target(self, slot: Optional[Slot]) -> None:
        if not self.is_dragging():
            return
        self._target_slot = slot
        self._set_hover(slot.id if slot is not None else None)
        self._set_drag_state(DragState.TARGETING if slot is not None else DragState.DRAGGING)

    def commit(self) -> PlacedComponent:
        """
        Bind the dragged type to the current target slot.

        The slot is re-validated against the live slot set and component list,
        so a target resolved before a regeneration or a concurrent placement
        cannot produce a double binding.
        """
        if self._drag_state != DragState.TARGETING or self._target_slot is None or self._dragging_type is None:
            raise PlacementError("No target slot to commit to.")

        slot = self.slot_by_id(self._target_slot.id)
        if slot is None or slot.type != self._dragging_type:
            raise UnknownSlotError(self._target_slot.id)
        for c in self._components:
            if c.slot_id == slot.id:
                raise SlotOccupiedError(slot.id, c.id)

        payload = self._drag_payload
        component = PlacedComponent(
            id=new_component_id(),
            type=slot.type,
            slot_id=slot.id,
            position=slot.position,
            rotation=calculate_orientation(slot),
            name=payload.name if payload is not None else COMPONENT_NAMES[slot.type],
            model_ref=payload.glb_url if payload is not None else None,
        )
        self._components.append(component)
        logger.info(f"Placed {component.name} ({component.id}) at slot {slot.id}")
        self.components_changed.emit(self.components)

        self._end_drag(DragState.COMMITTED)
        return component

    def cancel(self) -> None:
        if not self.is_dragging():
            return
        self._end_drag(DragState.CANCELLED)

    def notify(self, kind: NotificationKind, message: str) -> None:
        self.notified.emit(Notification(kind, message))

    # ---- internals ----

    def _end_drag(self, outcome: DragState) -> None:
        self._dragging_type = None
        self._drag_payload = None
        self._target_slot = None
        self._set_hover(None)
        self._set_drag_state(outcome)
        self._set_drag_state(DragState.IDLE)

    def _set_hover(self, slot_id: Optional[str]) -> None:
        if slot_id != self._hovered_slot_id:
            self._hovered_slot_id = slot_id
            self.hover_changed.emit(slot_id)

    def _set_drag_state(self, state: DragState) -> None:
        if state == self._drag_state:
            return
        self._drag_state = state
        self.drag_state_changed.emit(state)
