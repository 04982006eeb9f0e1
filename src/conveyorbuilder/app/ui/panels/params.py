from __future__ import annotations

import logging
from typing import Any, Optional

from PySide6.QtCore import Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QGroupBox, QLabel, QGridLayout, QSizePolicy,
    QDoubleSpinBox, QSpinBox, QComboBox, QCheckBox
)

from conveyorbuilder.app.state import PlacementStore
from conveyorbuilder.app.ui.panels.base import BasePanel
from conveyorbuilder.config import (
    AXIS_LENGTH_BOUNDS, BELT_WIDTH_BOUNDS, FRAME_HEIGHT_BOUNDS, PARAM_STEP
)
from conveyorbuilder.model.params import (
    ConveyorModel, ConveyorParams, EngineType, StopButtonCount, StopButtonEnd, StopButtonSide,
    stop_button_limits, validate_side_guide_height, validate_stop_button_count
)

logger = logging.getLogger(__name__)

ERROR_STYLE = "color: #d0002a;"


def _optional(enum_cls, value: str):
    return enum_cls(value) if value else None


class ParamsPanel(BasePanel):
    """
    Parameter editor for the conveyor frame.

    Every edit goes through `PlacementStore.update_params`, which clamps the
    value and regenerates slots. The widgets are re-synced from the store on
    `params_changed` so clamped values show up immediately.
    """
    def __init__(self, store: PlacementStore, parent: QWidget | None = None) -> None:
        super().__init__(store, parent)
        self._row = 0
        self._syncing = False

        root = QVBoxLayout(self)
        box = QGroupBox(self.tr("Conveyor"), self)
        root.addWidget(box)
        root.addStretch()
        self.grid = QGridLayout(box)
        self.grid.setVerticalSpacing(8)

        # --- frame ---
        self.model_combo = self._add_combo(self.tr("Model:"), [(m.value, m.value) for m in ConveyorModel])
        self.length_spin = self._add_spin(self.tr("Axis length L:"), *AXIS_LENGTH_BOUNDS)
        self.width_spin = self._add_spin(self.tr("Belt width N:"), *BELT_WIDTH_BOUNDS)
        self.derived_label = QLabel(self)
        self.grid.addWidget(self.derived_label, self._next_row(), 0, 1, 2)

        # --- engine ---
        self.engine_combo = self._add_combo(
            self.tr("Engine:"), [(self.tr("None"), "")] + [(e.value.title(), e.value) for e in EngineType]
        )

        # --- side guides ---
        self.side_guide_check = self._add_check(self.tr("Side guides"))
        self.side_guide_spin = self._add_spin(self.tr("Side guide height:"), 0.0, 1000.0)
        self.side_guide_error = self._add_error_label()

        # --- stop buttons ---
        self.stop_side_combo = self._add_combo(
            self.tr("Stop buttons:"), [(self.tr("None"), "")] + [(s.value.title(), s.value) for s in StopButtonSide]
        )
        self.stop_end_combo = self._add_combo(self.tr("Ends:"), [(e.value.title(), e.value) for e in StopButtonEnd])
        self.stop_motor_spin = self._add_count(self.tr("Motor side count:"))
        self.stop_opposite_spin = self._add_count(self.tr("Opposite side count:"))
        self.stop_error = self._add_error_label()

        # --- supporting frame ---
        self.frame_check = self._add_check(self.tr("Supporting frame"))
        self.frame_height_spin = self._add_spin(self.tr("Frame height:"), *FRAME_HEIGHT_BOUNDS)
        self.wheels_check = self._add_check(self.tr("Frame wheels"))

        self.load_from_state()
        self._connect()
        store.params_changed.connect(self._on_params_changed)

    # ---- widget helpers ----

    def _next_row(self) -> int:
        r = self._row
        self._row += 1
        return r

    def _add_spin(self, label: str, min_value: float, max_value: float) -> QDoubleSpinBox:
        row = self._next_row()
        self.grid.addWidget(QLabel(label, self), row, 0)
        w = QDoubleSpinBox(self)
        w.setRange(min_value, max_value)
        w.setSingleStep(PARAM_STEP)
        w.setDecimals(0)
        w.setKeyboardTracking(False)
        w.setSuffix(" mm")
        w.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Fixed)
        self.grid.addWidget(w, row, 1)
        return w

    def _add_count(self, label: str) -> QSpinBox:
        row = self._next_row()
        self.grid.addWidget(QLabel(label, self), row, 0)
        w = QSpinBox(self)
        w.setRange(0, 99)
        w.setKeyboardTracking(False)
        self.grid.addWidget(w, row, 1)
        return w

    def _add_combo(self, label: str, items: list[tuple[str, Any]]) -> QComboBox:
        row = self._next_row()
        self.grid.addWidget(QLabel(label, self), row, 0)
        w = QComboBox(self)
        for text, data in items:
            w.addItem(text, userData=data)
        self.grid.addWidget(w, row, 1)
        return w

    def _add_check(self, label: str) -> QCheckBox:
        w = QCheckBox(label, self)
        self.grid.addWidget(w, self._next_row(), 0, 1, 2)
        return w

    def _add_error_label(self) -> QLabel:
        w = QLabel(self)
        w.setStyleSheet(ERROR_STYLE)
        w.setWordWrap(True)
        w.hide()
        self.grid.addWidget(w, self._next_row(), 0, 1, 2)
        return w

    def _connect(self) -> None:
        self.model_combo.currentIndexChanged.connect(
            lambda _: self._update(model=ConveyorModel(self.model_combo.currentData()))
        )
        self.length_spin.valueChanged.connect(lambda v: self._update(axis_length=v))
        self.width_spin.valueChanged.connect(lambda v: self._update(belt_width=v))
        self.engine_combo.currentIndexChanged.connect(
            lambda _: self._update(engine_type=_optional(EngineType, self.engine_combo.currentData()))
        )
        self.side_guide_check.toggled.connect(lambda v: self._update(side_guide_enabled=v))
        self.side_guide_spin.valueChanged.connect(self._on_side_guide_height)
        self.stop_side_combo.currentIndexChanged.connect(
            lambda _: self._update(stop_button_side=_optional(StopButtonSide, self.stop_side_combo.currentData()))
        )
        self.stop_end_combo.currentIndexChanged.connect(
            lambda _: self._update(stop_button_end=StopButtonEnd(self.stop_end_combo.currentData()))
        )
        self.stop_motor_spin.valueChanged.connect(self._on_stop_count)
        self.stop_opposite_spin.valueChanged.connect(self._on_stop_count)
        self.frame_check.toggled.connect(lambda v: self._update(supporting_frame=v))
        self.frame_height_spin.valueChanged.connect(lambda v: self._update(frame_height=v))
        self.wheels_check.toggled.connect(lambda v: self._update(frame_wheels=v))

    # ---- store sync ----

    def _update(self, **updates: Any) -> None:
        if self._syncing:
            return
        self.store.update_params(**updates)

    @Slot(float)
    def _on_side_guide_height(self, value: float) -> None:
        error = validate_side_guide_height(value)
        self._show_error(self.side_guide_error, error)
        if error is None:
            self._update(side_guide_height=value)

    @Slot(int)
    def _on_stop_count(self, _: int) -> None:
        model = self.store.params.model
        errors = [
            validate_stop_button_count(spin.value(), model, side)
            for spin, side in ((self.stop_motor_spin, "motor"), (self.stop_opposite_spin, "opposite"))
            if spin.isEnabled()
        ]
        message = "\n".join(e for e in errors if e)
        self._show_error(self.stop_error, message or None)
        self._update(stop_button_count=StopButtonCount(
            motor=self.stop_motor_spin.value(),
            opposite=self.stop_opposite_spin.value(),
        ))

    @Slot(object)
    def _on_params_changed(self, _: ConveyorParams) -> None:
        self.load_from_state()

    def load_from_state(self) -> None:
        """Push the store's parameters into the widgets without feeding edits back."""
        p = self.store.params
        self._syncing = True
        try:
            self._select_data(self.model_combo, p.model.value)
            self.length_spin.setValue(p.axis_length)
            self.width_spin.setValue(p.belt_width)
            self._select_data(self.engine_combo, p.engine_type.value if p.engine_type else "")

            self.side_guide_check.setChecked(p.side_guide_enabled)
            self.side_guide_spin.setValue(p.side_guide_height)
            self.side_guide_spin.setEnabled(p.side_guide_enabled)

            self._select_data(self.stop_side_combo, p.stop_button_side.value if p.stop_button_side else "")
            self._select_data(self.stop_end_combo, p.stop_button_end.value)
            self.stop_motor_spin.setValue(p.stop_button_count.motor)
            self.stop_opposite_spin.setValue(p.stop_button_count.opposite)
            side = p.stop_button_side
            self.stop_end_combo.setEnabled(side is not None)
            self.stop_motor_spin.setEnabled(side in (StopButtonSide.MOTOR, StopButtonSide.BOTH))
            self.stop_opposite_spin.setEnabled(side in (StopButtonSide.OPPOSITE, StopButtonSide.BOTH))

            self.frame_check.setChecked(p.supporting_frame)
            self.frame_height_spin.setValue(p.frame_height)
            self.frame_height_spin.setEnabled(p.supporting_frame)
            self.wheels_check.setChecked(p.frame_wheels)
        finally:
            self._syncing = False

        lo, hi = stop_button_limits(p.model)
        self.stop_motor_spin.setToolTip(self.tr(f"{lo} to {hi} per side for {p.model}"))
        self.stop_opposite_spin.setToolTip(self.stop_motor_spin.toolTip())
        self.derived_label.setText(
            self.tr(f"Total length D = {p.total_length:g} mm, total width R = {p.total_width:g} mm")
        )

    @staticmethod
    def _select_data(combo: QComboBox, data: Any) -> None:
        index = combo.findData(data)
        if index >= 0:
            combo.setCurrentIndex(index)

    @staticmethod
    def _show_error(label: QLabel, message: Optional[str]) -> None:
        label.setText(message or "")
        label.setVisible(bool(message))
