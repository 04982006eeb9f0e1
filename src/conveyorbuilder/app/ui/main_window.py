"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the side panels, the 3D
scene and the log console.

Why is this file needed?
------------------------
1. Layout: Panels on the left, the conveyor scene on the right, the console
   docked underneath.
2. Routing: It wires the palette, the placement controller and the input
   bridge together and connects global actions (File -> Save) to `IOManager`.
3. Feedback: Store notifications end up in the status bar and the console.
"""
from __future__ import annotations

from datetime import datetime
import logging
import os
from typing import Optional

from PySide6.QtCore import Qt, QSettings, Slot
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QPlainTextEdit, QDockWidget, QFileDialog, QMessageBox
)

from conveyorbuilder.app.application import VISIBLE_APP_NAME
from conveyorbuilder.app.state import Notification, NotificationKind, PlacementStore
from conveyorbuilder.app.ui.input import QtInputSource
from conveyorbuilder.app.ui.panels.palette import PalettePanel
from conveyorbuilder.app.ui.panels.params import ParamsPanel
from conveyorbuilder.app.ui.workarea import WorkArea
from conveyorbuilder.controller.placement import ESCAPE_KEY, PlacementController
from conveyorbuilder.errors import PayloadError
from conveyorbuilder.model.catalog import CatalogEntry, load_catalog
from conveyorbuilder.model.io import IOManager
from conveyorbuilder.model.payload import DragPayload

logger = logging.getLogger(__name__)

STATUS_TIMEOUT_MS = 5000


class Console(QPlainTextEdit):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setReadOnly(True)

    def log(self, level: str, msg: str) -> None:
        self.appendPlainText(f"{datetime.now().strftime('%d.%m.%Y %H:%M:%S')} [{level}] {msg}")


class MainWindow(QMainWindow):
    def __init__(self, store: PlacementStore, catalog: Optional[list[CatalogEntry]] = None) -> None:
        super().__init__()
        self.store = store
        self.filepath: Optional[str] = None
        self.is_modified = False
        self.resize(1400, 900)

        if catalog is None:
            catalog = self._load_default_catalog()

        # --- central: panels | scene ---
        central = QWidget(self)
        v = QVBoxLayout(central)
        v.setContentsMargins(0, 0, 0, 0)
        self.work_area = WorkArea(store, central)
        v.addWidget(self.work_area, 1)
        self.setCentralWidget(central)

        self.params_panel = ParamsPanel(store, parent=self)
        self.palette_panel = PalettePanel(store, catalog, parent=self)
        self.work_area.add_panel(self.params_panel, self.tr("Parameters"))
        self.work_area.add_panel(self.palette_panel, self.tr("Components"))

        # --- placement ---
        scene = self.work_area.scene
        self.input_source = QtInputSource(scene, parent=self)
        self.controller = PlacementController(store, self.input_source, preview=scene.ghost)

        # --- console ---
        self.console = Console(self)
        dock = QDockWidget(self.tr("Log"), self)
        dock.setWidget(self.console)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, dock)

        # --- signal connections ---
        self.palette_panel.drag_requested.connect(self.on_drag_requested)
        store.notified.connect(self.on_notified)
        store.params_changed.connect(lambda *_: self.set_modified(True))
        store.components_changed.connect(lambda *_: self.set_modified(True))

        self._create_actions()
        self._create_menus()
        self.update_window_title()
        geometry = QSettings().value("ui/geometry")
        if geometry is not None:
            self.restoreGeometry(geometry)
        self.statusBar().showMessage(self.tr("Ready"))

    def _load_default_catalog(self) -> list[CatalogEntry]:
        try:
            return load_catalog()
        except (OSError, ValueError) as e:
            logger.exception(f"Failed to load component catalog: {e}")
            QMessageBox.warning(self, self.tr("Catalog"), self.tr(f"Component catalog could not be loaded:\n{e}"))
            return []

    def _create_actions(self) -> None:
        self.act_new = QAction(self.tr("New Project"), self)
        self.act_new.setShortcut("Ctrl+N")
        self.act_new.triggered.connect(self.on_file_new)

        self.act_open = QAction(self.tr("Open..."), self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_save = QAction(self.tr("Save"), self)
        self.act_save.setShortcut("Ctrl+S")
        self.act_save.triggered.connect(self.on_file_save)

        self.act_save_as = QAction(self.tr("Save As..."), self)
        self.act_save_as.setShortcut("Ctrl+Shift+S")
        self.act_save_as.triggered.connect(self.on_file_save_as)

        self.act_exit = QAction(self.tr("Exit"), self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        file_menu = self.menuBar().addMenu(self.tr("&File"))
        file_menu.addAction(self.act_new)
        file_menu.addSeparator()
        file_menu.addAction(self.act_open)
        file_menu.addSeparator()
        file_menu.addAction(self.act_save)
        file_menu.addAction(self.act_save_as)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        filename = os.path.basename(self.filepath) if self.filepath else "Untitled"
        title = f"{VISIBLE_APP_NAME} - [{filename}"
        if self.is_modified:
            title += "*"
        title += "]"
        self.setWindowTitle(title)

    def set_modified(self, modified: bool) -> None:
        if self.is_modified != modified:
            self.is_modified = modified
            self.update_window_title()

    # --- PLACEMENT SLOTS ---

    @Slot(str)
    def on_drag_requested(self, text: str) -> None:
        try:
            payload = DragPayload.from_json(text)
        except PayloadError as e:
            logger.warning(f"Rejected drag payload: {e}")
            self.store.notify(NotificationKind.ERROR, str(e))
            return
        self.controller.begin_drag(payload)

    @Slot(object)
    def on_notified(self, notification: Notification) -> None:
        self.statusBar().showMessage(notification.message, STATUS_TIMEOUT_MS)
        self.console.log(notification.kind.value, notification.message)

    # --- FILE SLOTS ---

    def on_file_new(self) -> None:
        self.store.reset()
        self.filepath = None
        self.is_modified = False
        self.update_window_title()

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(
            self, self.tr("Open Project"), "", "HDF5 Files (*.h5)"
        )
        if not fname:
            return
        try:
            stale = IOManager.load_project(self.store, fname)
        except Exception as e:
            QMessageBox.critical(self, self.tr("Error"), self.tr(f"Could not open file:\n{e}"))
            return

        self.filepath = fname
        self.is_modified = False
        self.update_window_title()
        self.store.notify(
            NotificationKind.INFO,
            f"Loaded {os.path.basename(fname)} ({len(self.store.components)} components, {len(stale)} stale)",
        )

    def on_file_save(self) -> bool:
        if not self.filepath:
            return self.on_file_save_as()
        try:
            IOManager.save_project(self.store, self.filepath)
        except Exception as e:
            QMessageBox.critical(self, self.tr("Error"), self.tr(f"Could not save file:\n{e}"))
            return False
        self.set_modified(False)
        return True

    def on_file_save_as(self) -> bool:
        fname, _ = QFileDialog.getSaveFileName(
            self, self.tr("Save Project"), "", "HDF5 Files (*.h5)"
        )
        if not fname:
            return False
        if not fname.endswith(".h5"):
            fname += ".h5"
        self.filepath = fname
        return self.on_file_save()

    def closeEvent(self, event, /) -> None:
        """Handle window close event to prompt for saving if modified."""
        if self.is_modified:
            reply = QMessageBox.question(
                self,
                self.tr("Save changes?"),
                self.tr("The project has been modified. Save changes before closing?"),
                QMessageBox.StandardButton.Save | QMessageBox.StandardButton.Discard | QMessageBox.StandardButton.Cancel,
            )
            if reply == QMessageBox.StandardButton.Save:
                if not self.on_file_save():
                    event.ignore()
                    return
            elif reply == QMessageBox.StandardButton.Cancel:
                event.ignore()
                return

        if self.store.is_dragging():
            self.controller.key_pressed(ESCAPE_KEY)
        QSettings().setValue("ui/geometry", self.saveGeometry())
        self.work_area.scene.close()
        event.accept()
