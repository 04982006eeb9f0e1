"""Tests for the drag & placement controller (no display, fake input source)."""
import pytest

from conveyorbuilder.app.state import DragState, NotificationKind
from conveyorbuilder.controller.placement import ESCAPE_KEY, ListenerScope, PlacementController
from conveyorbuilder.model.geometry_primitives import Vector
from conveyorbuilder.model.orientation import calculate_orientation
from conveyorbuilder.model.payload import DragPayload
from conveyorbuilder.model.placement import get_valid_slots
from conveyorbuilder.model.slots import SlotType


def _first_wheel(store):
    return store.valid_slots(SlotType.WHEEL)[0]


def _near(slot, dx):
    return slot.position + Vector(dx, 0.0, 0.0)


@pytest.fixture
def states(store):
    received = []
    store.drag_state_changed.connect(received.append)
    return received


class TestScenarioSnapping:
    """Wheel drag over a point 0.03 / 0.05 away from the nearest free wheel slot."""

    def test_within_tolerance_places_component(self, store, controller, input_source, notifications):
        slot = _first_wheel(store)
        assert controller.begin_drag(SlotType.WHEEL)

        target = controller.pointer_move(_near(slot, 0.03))
        assert target == slot
        assert controller.state == DragState.TARGETING
        assert store.hovered_slot_id == slot.id

        component = controller.pointer_up()
        assert component is not None
        assert component.slot_id == slot.id
        assert component.position == slot.position
        assert component.rotation == calculate_orientation(slot)
        assert store.components == (component,)

        assert controller.state == DragState.IDLE
        assert input_source.disconnects == 1
        assert notifications[-1].kind == NotificationKind.SUCCESS
        assert notifications[-1].message == "Placed Wheel on LEFT • START"

    def test_outside_tolerance_resolves_nothing(self, store, controller, input_source, notifications):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)

        assert controller.pointer_move(_near(slot, 0.05)) is None
        assert controller.state == DragState.DRAGGING

        assert controller.pointer_up() is None
        assert store.components == ()
        assert controller.state == DragState.IDLE
        assert input_source.disconnects == 1
        assert notifications[-1].kind == NotificationKind.ERROR
        assert "No valid slot found" in notifications[-1].message

    def test_pointer_off_scene_clears_target(self, store, controller, preview):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        assert preview.visible

        assert controller.pointer_move(None) is None
        assert store.target_slot is None
        assert store.hovered_slot_id is None
        assert not preview.visible


class TestScenarioRepeatedDrag:

    def test_second_drag_excludes_occupied_slot(self, store, controller):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        controller.pointer_up()

        assert slot not in get_valid_slots(SlotType.WHEEL, store.slots, store.components)

        controller.begin_drag(SlotType.WHEEL)
        target = controller.pointer_move(slot.position)
        assert target is None or target.id != slot.id
        controller.pointer_up()

        assert len(store.components) == 1
        assert len({c.slot_id for c in store.components}) == len(store.components)


class TestScenarioEscape:

    def test_escape_cancels_without_mutation(self, store, controller, input_source, preview, notifications):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        before = store.components

        assert controller.key_pressed(ESCAPE_KEY)

        assert store.components == before
        assert controller.state == DragState.IDLE
        assert input_source.disconnects == 1
        assert not preview.visible
        assert notifications[-1].kind == NotificationKind.INFO
        assert notifications[-1].message == "Placement cancelled"

    def test_other_keys_ignored(self, controller):
        controller.begin_drag(SlotType.WHEEL)
        assert not controller.key_pressed("Enter")
        assert controller.state == DragState.DRAGGING

    def test_escape_when_idle_is_noop(self, controller, notifications):
        assert not controller.key_pressed(ESCAPE_KEY)
        assert notifications == []


class TestListenerLifetime:

    def test_handlers_wired_through_input_source(self, store, controller, input_source):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        assert controller.listening

        input_source.handlers.on_pointer_move(slot.position)
        input_source.handlers.on_pointer_up()

        assert len(store.components) == 1
        assert not input_source.attached
        assert not controller.listening

    def test_superseding_drag_releases_once(self, store, controller, input_source, notifications):
        controller.begin_drag(SlotType.WHEEL)
        controller.begin_drag(SlotType.FRAME_LEG)

        assert input_source.attaches == 2
        assert input_source.disconnects == 1
        assert store.dragging_type == SlotType.FRAME_LEG
        assert notifications == []

        controller.key_pressed(ESCAPE_KEY)
        assert input_source.disconnects == 2

    def test_store_reset_mid_drag_releases(self, store, controller, input_source, preview):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        assert preview.visible

        store.reset()

        assert store.drag_state == DragState.IDLE
        assert not input_source.attached
        assert input_source.disconnects == 1
        assert not controller.listening
        assert not preview.visible

        # late events from the old session do nothing
        assert controller.pointer_up() is None
        assert input_source.disconnects == 1

    def test_project_load_mid_drag_releases(self, store, params, controller, input_source, preview):
        controller.begin_drag(SlotType.FRAME_LEG)
        controller.pointer_move(store.valid_slots(SlotType.FRAME_LEG)[0].position)

        store.load(params.with_updates(axis_length=2000.0), [])

        assert input_source.disconnects == 1
        assert not preview.visible

        controller.begin_drag(SlotType.WHEEL)
        assert input_source.attaches == 2
        assert input_source.disconnects == 1

    def test_every_exit_path_releases_exactly_once(self, store, controller, input_source):
        slot = _first_wheel(store)

        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        controller.pointer_up()  # commit

        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_up()  # no target

        controller.begin_drag(SlotType.WHEEL)
        controller.key_pressed(ESCAPE_KEY)  # escape

        assert input_source.attaches == 3
        assert input_source.disconnects == 3

    def test_scope_release_is_idempotent(self, input_source):
        scope = ListenerScope(input_source, handlers=None)
        scope.release()
        scope.release()
        assert input_source.disconnects == 1
        assert not scope.active

    def test_scope_as_context_manager(self, input_source):
        with ListenerScope(input_source, handlers=None) as scope:
            assert scope.active
        assert input_source.disconnects == 1


class TestOutcomes:

    def test_state_sequence_on_commit(self, store, controller, states):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        controller.pointer_up()
        assert states == [DragState.DRAGGING, DragState.TARGETING, DragState.COMMITTED, DragState.IDLE]

    def test_state_sequence_on_cancel(self, controller, states):
        controller.begin_drag(SlotType.WHEEL)
        controller.key_pressed(ESCAPE_KEY)
        assert states == [DragState.DRAGGING, DragState.CANCELLED, DragState.IDLE]

    def test_notifications_are_distinct(self, store, controller, notifications):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)
        controller.pointer_up()

        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_up()

        controller.begin_drag(SlotType.WHEEL)
        controller.key_pressed(ESCAPE_KEY)

        assert [n.kind for n in notifications] == [
            NotificationKind.SUCCESS, NotificationKind.ERROR, NotificationKind.INFO,
        ]
        assert len({n.message for n in notifications}) == 3

    def test_slot_removed_before_release(self, store, controller, notifications):
        slot = _first_wheel(store)
        controller.begin_drag(SlotType.WHEEL)
        controller.pointer_move(slot.position)

        store.update_params(frame_wheels=False)
        assert controller.pointer_up() is None

        assert store.components == ()
        assert controller.state == DragState.IDLE
        assert notifications[-1].kind == NotificationKind.ERROR
        assert slot.id in notifications[-1].message


class TestPayloadDrag:

    def test_payload_name_and_model_ref(self, store, controller):
        slot = _first_wheel(store)
        payload = DragPayload(id="wheel-80", name="Caster 80", category="wheel", glb_url="models/caster80.glb")
        assert controller.begin_drag(payload)
        controller.pointer_move(slot.position)
        component = controller.pointer_up()

        assert component.name == "Caster 80"
        assert component.model_ref == "models/caster80.glb"
        assert component.type == SlotType.WHEEL

    def test_unknown_category_rejected(self, controller, input_source, notifications):
        payload = DragPayload(name="Mystery", category="gizmo")
        assert not controller.begin_drag(payload)
        assert controller.state == DragState.IDLE
        assert input_source.attaches == 0
        assert notifications[-1].kind == NotificationKind.ERROR

    def test_numeric_category_rejected(self, controller, input_source, notifications):
        payload = DragPayload.from_json('{"name": "x", "category": 5}')
        assert not controller.begin_drag(payload)
        assert input_source.attaches == 0
        assert notifications[-1].kind == NotificationKind.ERROR


def test_preview_follows_target(store, input_source, preview):
    controller = PlacementController(store, input_source, preview=preview, tolerance=0.04)
    slot = _first_wheel(store)
    controller.begin_drag(SlotType.WHEEL)
    controller.pointer_move(slot.position)

    kind, slot_type, position = preview.calls[-1]
    assert kind == "show"
    assert slot_type == SlotType.WHEEL
    assert position == slot.position
