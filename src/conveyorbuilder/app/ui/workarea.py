from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QWidget, QSplitter, QTabWidget, QVBoxLayout

from conveyorbuilder.app.state import PlacementStore
from conveyorbuilder.app.ui.scene import Scene3D


class WorkArea(QWidget):
    """The main work area with a splitter between the side panel tabs and the 3D scene."""
    def __init__(self, store: PlacementStore, parent: QWidget | None = None) -> None:
        super().__init__(parent)

        v = QVBoxLayout(self)
        v.setContentsMargins(0, 0, 0, 0)
        split = QSplitter(Qt.Orientation.Horizontal, self)
        split.setChildrenCollapsible(False)
        v.addWidget(split, 1)

        self.panel_tabs = QTabWidget(split)
        self.scene = Scene3D(store, split)

        split.addWidget(self.panel_tabs)
        split.addWidget(self.scene)
        split.setStretchFactor(0, 0)
        split.setStretchFactor(1, 1)
        split.setSizes([350, 1050])

    def add_panel(self, panel: QWidget, title: str) -> None:
        self.panel_tabs.addTab(panel, title)
