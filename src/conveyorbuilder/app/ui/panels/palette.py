from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QListWidget, QListWidgetItem, QPushButton, QLabel
)

from conveyorbuilder.app.state import DragState, PlacementStore
from conveyorbuilder.app.ui.panels.base import BasePanel
from conveyorbuilder.model.catalog import CatalogEntry
from conveyorbuilder.model.placement import PlacedComponent

logger = logging.getLogger(__name__)

STALE_BRUSH = QBrush(QColor("#d0002a"))


class PalettePanel(BasePanel):
    """
    Component palette and list of placed components.

    Pressing a catalog entry starts a placement drag: the entry's payload is
    serialized to JSON text and emitted through `drag_requested`, the main
    window decodes it and hands it to the placement controller.
    """
    drag_requested = Signal(str)

    def __init__(
        self,
        store: PlacementStore,
        catalog: list[CatalogEntry],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(store, parent)
        self.catalog = catalog

        root = QVBoxLayout(self)

        # --- palette ---
        palette_box = QGroupBox(self.tr("Components"), self)
        palette_layout = QVBoxLayout(palette_box)
        hint = QLabel(self.tr("Press and drag onto a highlighted slot. Esc cancels."), palette_box)
        hint.setWordWrap(True)
        palette_layout.addWidget(hint)

        self.palette_list = QListWidget(palette_box)
        for entry in catalog:
            item = QListWidgetItem(entry.name)
            item.setData(Qt.ItemDataRole.UserRole, entry.id)
            tooltip = entry.description or entry.name
            if entry.part_number:
                tooltip += f"\n{entry.part_number}"
            item.setToolTip(tooltip)
            self.palette_list.addItem(item)
        self.palette_list.itemPressed.connect(self._on_item_pressed)
        palette_layout.addWidget(self.palette_list)
        root.addWidget(palette_box, 1)

        # --- placed components ---
        placed_box = QGroupBox(self.tr("Placed"), self)
        placed_layout = QVBoxLayout(placed_box)
        self.placed_list = QListWidget(placed_box)
        self.placed_list.currentItemChanged.connect(self._on_placed_selected)
        placed_layout.addWidget(self.placed_list)

        self.remove_button = QPushButton(self.tr("Remove"), placed_box)
        self.remove_button.setEnabled(False)
        self.remove_button.clicked.connect(self._on_remove_clicked)
        placed_layout.addWidget(self.remove_button)
        root.addWidget(placed_box, 1)

        store.components_changed.connect(self._refresh_placed)
        store.stale_bindings_detected.connect(self._refresh_placed)
        store.drag_state_changed.connect(self._on_drag_state_changed)
        self._refresh_placed()

    def _entry(self, entry_id: str) -> Optional[CatalogEntry]:
        for entry in self.catalog:
            if entry.id == entry_id:
                return entry
        return None

    @Slot(QListWidgetItem)
    def _on_item_pressed(self, item: QListWidgetItem) -> None:
        entry = self._entry(item.data(Qt.ItemDataRole.UserRole))
        if entry is None:
            return
        logger.debug(f"Palette drag requested: {entry.id}")
        self.drag_requested.emit(entry.to_payload().to_json())

    @Slot(object)
    def _on_drag_state_changed(self, state: DragState) -> None:
        if state == DragState.IDLE:
            self.palette_list.clearSelection()

    def _refresh_placed(self, *_: object) -> None:
        stale = self.store.stale_component_ids
        self.placed_list.blockSignals(True)
        try:
            self.placed_list.clear()
            for component in self.store.components:
                self.placed_list.addItem(self._placed_item(component, component.id in stale))
        finally:
            self.placed_list.blockSignals(False)
        self.remove_button.setEnabled(False)

    def _placed_item(self, component: PlacedComponent, stale: bool) -> QListWidgetItem:
        item = QListWidgetItem(f"{component.name} ({component.slot_id})")
        item.setData(Qt.ItemDataRole.UserRole, component.id)
        if stale:
            item.setForeground(STALE_BRUSH)
            item.setToolTip(self.tr("Slot no longer exists for the current parameters."))
        return item

    @Slot(QListWidgetItem, QListWidgetItem)
    def _on_placed_selected(self, current: QListWidgetItem | None, _previous: QListWidgetItem | None) -> None:
        component_id = current.data(Qt.ItemDataRole.UserRole) if current is not None else None
        self.remove_button.setEnabled(component_id is not None)
        self.store.select_component(component_id)

    @Slot()
    def _on_remove_clicked(self) -> None:
        component_id = self.store.selected_component_id
        if component_id is None:
            return
        self.store.remove_component(component_id)
        logger.info(f"Removed component {component_id}")
