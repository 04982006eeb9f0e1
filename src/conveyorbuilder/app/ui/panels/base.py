from __future__ import annotations

from PySide6.QtWidgets import QWidget

from conveyorbuilder.app.state import PlacementStore


class BasePanel(QWidget):
    """Base class for left-side panels. Holds a reference to the placement store."""
    def __init__(self, store: PlacementStore, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.store = store
