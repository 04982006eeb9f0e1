"""
Shared fixtures for the placement engine tests.

The engine only needs QtCore (signals), so no display is required.
"""
import pytest
from PySide6.QtCore import QCoreApplication

from conveyorbuilder.app.state import PlacementStore
from conveyorbuilder.controller.placement import PlacementController
from conveyorbuilder.model.params import ConveyorParams


class FakeConnection:
    def __init__(self, source):
        self.source = source

    def disconnect(self):
        self.source.disconnects += 1
        self.source.handlers = None


class FakeInputSource:
    """Records attach/disconnect calls instead of hooking real events."""

    def __init__(self):
        self.attaches = 0
        self.disconnects = 0
        self.handlers = None

    def attach(self, handlers):
        self.attaches += 1
        self.handlers = handlers
        return FakeConnection(self)

    @property
    def attached(self):
        return self.handlers is not None


class FakePreview:
    def __init__(self):
        self.calls = []

    def show(self, slot_type, position, orientation):
        self.calls.append(("show", slot_type, position))

    def clear(self):
        self.calls.append(("clear",))

    @property
    def visible(self):
        return bool(self.calls) and self.calls[-1][0] == "show"


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def params():
    """1 m conveyor with wheels and legs enabled (corner stations only)."""
    return ConveyorParams(supporting_frame=True, frame_wheels=True)


@pytest.fixture
def store(params):
    return PlacementStore(params)


@pytest.fixture
def notifications(store):
    received = []
    store.notified.connect(received.append)
    return received


@pytest.fixture
def input_source():
    return FakeInputSource()


@pytest.fixture
def preview():
    return FakePreview()


@pytest.fixture
def controller(store, input_source, preview):
    return PlacementController(store, input_source, preview=preview)
