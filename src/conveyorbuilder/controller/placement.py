"""
Drag & Placement Controller
===========================
Drives the placement state machine from pointer and keyboard input.

Why is this file needed?
------------------------
1. Listener lifetime: pointer-move, pointer-up and key listeners exist only
   while a drag is in progress. `ListenerScope` acquires them on entry to
   DRAGGING and every exit path releases them exactly once, including
   drags the store ends on its own (project load, reset).
2. Resolution: each pointer move re-runs `get_valid_slots` and
   `nearest_free_slot` against the live store, then updates hover and the
   ghost preview.
3. Outcomes: commit, failed release and Escape each end in a distinct
   notification and a return to IDLE.

State flow:
    IDLE --begin_drag--> DRAGGING <--pointer_move--> TARGETING
    TARGETING --pointer_up--> COMMITTED --> IDLE
    DRAGGING  --pointer_up--> CANCELLED --> IDLE
    DRAGGING | TARGETING --Escape--> CANCELLED --> IDLE
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Optional, Protocol, Union

from conveyorbuilder.app.state import DragState, NotificationKind, PlacementStore
from conveyorbuilder.config import SNAP_TOLERANCE
from conveyorbuilder.errors import PlacementError
from conveyorbuilder.model.geometry_primitives import Vector
from conveyorbuilder.model.orientation import Orientation, calculate_orientation
from conveyorbuilder.model.payload import DragPayload
from conveyorbuilder.model.placement import PlacedComponent, describe_slot, get_valid_slots, nearest_free_slot
from conveyorbuilder.model.slots import Slot, SlotType

logger = logging.getLogger(__name__)

ESCAPE_KEY = "Escape"


# -------------------------------------------------------------------------------
# Collaborator protocols
# -------------------------------------------------------------------------------

@dataclass(frozen=True)
class DragHandlers:
    on_pointer_move: Callable[[Optional[Vector]], object]
    on_pointer_up: Callable[[], object]
    on_key_press: Callable[[str], object]


class Connection(Protocol):
    def disconnect(self) -> None: ...


class InputSource(Protocol):
    """Delivers pointer/keyboard events to the handlers until disconnected."""
    def attach(self, handlers: DragHandlers) -> Connection: ...


class GhostPreview(Protocol):
    """
    Owns the transient preview geometry. `show` must release the previous
    preview before attaching the new one.
    """
    def show(self, slot_type: SlotType, position: Vector, orientation: Orientation) -> None: ...
    def clear(self) -> None: ...


class ListenerScope:
    """Listener set of one drag session; released exactly once."""

    def __init__(self, source: InputSource, handlers: DragHandlers) -> None:
        self._connection: Optional[Connection] = source.attach(handlers)

    @property
    def active(self) -> bool:
        return self._connection is not None

    def release(self) -> None:
        if self._connection is None:
            return
        connection, self._connection = self._connection, None
        connection.disconnect()

    def __enter__(self) -> ListenerScope:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


# -------------------------------------------------------------------------------
# Controller
# -------------------------------------------------------------------------------

class PlacementController:
    def __init__(
        self,
        store: PlacementStore,
        input_source: InputSource,
        preview: Optional[GhostPreview] = None,
        tolerance: float = SNAP_TOLERANCE,
    ) -> None:
        self.store = store
        self.input_source = input_source
        self.preview = preview
        self.tolerance = tolerance
        self._scope: Optional[ListenerScope] = None

        self.store.drag_state_changed.connect(self._on_drag_state_changed)

    @property
    def state(self) -> DragState:
        return self.store.drag_state

    @property
    def listening(self) -> bool:
        return self._scope is not None and self._scope.active

    def begin_drag(self, item: Union[SlotType, DragPayload]) -> bool:
        """
        Start dragging a component type (or a palette payload).

        A drag already in flight is superseded: its listeners are released
        and it is cancelled silently before the new session starts.
        """
        payload = item if isinstance(item, DragPayload) else DragPayload.for_type(item)
        slot_type = payload.slot_type
        if slot_type is None:
            logger.warning(f"Cannot drag '{payload.name}': unknown category '{payload.category}'.")
            self.store.notify(
                NotificationKind.ERROR,
                f"Cannot place {payload.name}: unsupported component category '{payload.category}'.",
            )
            return False

        if self.store.is_dragging():
            logger.info(f"Superseding drag of {self.store.dragging_type} with {slot_type}.")
            self._end_session()
            self.store.cancel()

        self.store.begin_drag(slot_type, payload)
        self._scope = ListenerScope(
            self.input_source,
            DragHandlers(
                on_pointer_move=self.pointer_move,
                on_pointer_up=self.pointer_up,
                on_key_press=self.key_pressed,
            ),
        )
        logger.debug(f"Drag started: {slot_type} ({payload.name})")
        return True

    def pointer_move(self, point: Optional[Vector]) -> Optional[Slot]:
        """Resolve the target for a world-space pointer position (None when off the scene)."""
        if not self.store.is_dragging():
            return None

        slot_type = self.store.dragging_type
        target = None
        if point is not None:
            candidates = get_valid_slots(slot_type, self.store.slots, self.store.components)
            target = nearest_free_slot(point, candidates, self.tolerance)

        self.store.update_target(target)

        if self.preview is not None:
            if target is not None:
                self.preview.show(slot_type, target.position, calculate_orientation(target))
            else:
                self.preview.clear()
        return target

    def pointer_up(self) -> Optional[PlacedComponent]:
        if not self.store.is_dragging():
            return None

        target = self.store.target_slot
        self._end_session()

        if target is None:
            self.store.cancel()
            self.store.notify(NotificationKind.ERROR, "No valid slot found. Release over a highlighted slot.")
            return None

        try:
            component = self.store.commit()
        except PlacementError as e:
            logger.warning(f"Commit to slot '{target.id}' failed: {e}")
            self.store.cancel()
            self.store.notify(NotificationKind.ERROR, f"Could not place component: {e}")
            return None

        label = describe_slot(target)
        self.store.notify(
            NotificationKind.SUCCESS,
            f"Placed {component.name}" + (f" on {label}" if label else ""),
        )
        return component

    def key_pressed(self, key: str) -> bool:
        if key != ESCAPE_KEY or not self.store.is_dragging():
            return False
        self._end_session()
        self.store.cancel()
        self.store.notify(NotificationKind.INFO, "Placement cancelled")
        return True

    def _on_drag_state_changed(self, state: DragState) -> None:
        # drags ended by the store itself (project load, reset)
        if self._scope is not None and state not in (DragState.DRAGGING, DragState.TARGETING):
            logger.debug(f"Drag ended by the store ({state}); releasing listeners.")
            self._end_session()

    def _end_session(self) -> None:
        if self._scope is not None:
            self._scope.release()
            self._scope = None
        if self.preview is not None:
            self.preview.clear()
