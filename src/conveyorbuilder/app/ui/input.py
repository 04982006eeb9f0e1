"""
Qt Input Bridge
===============
Feeds application-wide mouse and keyboard events to the placement controller
while a drag is in progress.

Why is this file needed?
------------------------
1. A drag starts in the palette (a list widget) but ends over the 3D view, so
   the listeners must see events regardless of which widget has the mouse.
   An event filter on the QApplication does exactly that.
2. The filter is installed only while a drag session holds the connection
   returned by `attach` and removed when it is disconnected.
"""
from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from PySide6.QtCore import QEvent, QObject, Qt
from PySide6.QtGui import QCursor, QWindow
from PySide6.QtWidgets import QApplication

from conveyorbuilder.controller.placement import DragHandlers, ESCAPE_KEY

if TYPE_CHECKING:
    from conveyorbuilder.app.ui.scene import Scene3D

logger = logging.getLogger(__name__)


class _FilterConnection:
    def __init__(self, source: QtInputSource) -> None:
        self._source = source

    def disconnect(self) -> None:
        self._source.detach()


class QtInputSource(QObject):
    def __init__(self, scene: Scene3D, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.scene = scene
        self._handlers: Optional[DragHandlers] = None

    @property
    def attached(self) -> bool:
        return self._handlers is not None

    def attach(self, handlers: DragHandlers) -> _FilterConnection:
        if self._handlers is not None:
            logger.warning("Input source attached twice; replacing previous handlers.")
        self._handlers = handlers
        QApplication.instance().installEventFilter(self)
        logger.debug("Drag listeners attached.")
        return _FilterConnection(self)

    def detach(self) -> None:
        if self._handlers is None:
            return
        self._handlers = None
        app = QApplication.instance()
        if app is not None:
            app.removeEventFilter(self)
        logger.debug("Drag listeners released.")

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        # Window-level events only; widgets receive the same event again
        if self._handlers is None or not isinstance(watched, QWindow):
            return False

        handlers = self._handlers
        match event.type():
            case QEvent.Type.MouseMove:
                handlers.on_pointer_move(self.scene.project_global(QCursor.pos()))
            case QEvent.Type.MouseButtonRelease:
                if event.button() == Qt.MouseButton.LeftButton:
                    handlers.on_pointer_up()
            case QEvent.Type.KeyPress:
                if event.key() == Qt.Key.Key_Escape:
                    handlers.on_key_press(ESCAPE_KEY)
                    return True
        return False
