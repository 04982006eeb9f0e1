"""
Drag payload exchanged between the component palette and the placement engine.

The palette serializes the payload as JSON text (the same text is put on the
clipboard-style mime data of the drag), the engine decodes it back. Only
``category`` is needed to start a placement; every other field is optional and
falls back to a safe default.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
import json
import logging
from typing import Any, Optional

from conveyorbuilder.errors import PayloadError
from conveyorbuilder.model.placement import COMPONENT_NAMES
from conveyorbuilder.model.slots import SlotType

logger = logging.getLogger(__name__)

MIME_TYPE = "application/json"

# Palette categories that differ from the slot type names
CATEGORY_ALIASES: dict[str, SlotType] = {
    "motor": SlotType.ENGINE_MOUNT,
    "engine": SlotType.ENGINE_MOUNT,
    "drive-unit": SlotType.ENGINE_MOUNT,
    "stop-button": SlotType.STOP_BUTTON,
    "sensor": SlotType.SENSOR,
    "side-guide": SlotType.SIDE_GUIDE_BRACKET,
    "wheel": SlotType.WHEEL,
    "support-leg": SlotType.FRAME_LEG,
    "frame-leg": SlotType.FRAME_LEG,
}


def category_to_slot_type(category: Optional[str]) -> Optional[SlotType]:
    """Map a palette category (or a slot type name) to a slot type."""
    if not isinstance(category, str) or not category:
        return None
    key = category.strip()
    if key.upper() in SlotType.__members__:
        return SlotType[key.upper()]
    return CATEGORY_ALIASES.get(key.lower())


@dataclass(frozen=True)
class DragPayload:
    id: Optional[str] = None
    name: str = "Unnamed Component"
    category: str = "unknown"
    glb_url: Optional[str] = None
    original_url: Optional[str] = None
    bounding_box: Optional[dict[str, Any]] = None
    center: tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def slot_type(self) -> Optional[SlotType]:
        return category_to_slot_type(self.category)

    def to_json(self) -> str:
        data = asdict(self)
        data["center"] = list(self.center)
        return json.dumps(data)

    @classmethod
    def from_json(cls, text: str) -> DragPayload:
        try:
            data = json.loads(text)
        except (TypeError, json.JSONDecodeError) as e:
            raise PayloadError(f"Drag payload is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise PayloadError(f"Drag payload must be a JSON object, got {type(data).__name__}.")

        return cls(
            id=_optional_str(data.get("id")),
            name=_text(data.get("name"), "name") or "Unnamed Component",
            category=_text(data.get("category"), "category") or "unknown",
            glb_url=_optional_str(data.get("glb_url")),
            original_url=_optional_str(data.get("original_url")),
            bounding_box=data.get("bounding_box") if isinstance(data.get("bounding_box"), dict) else None,
            center=_center(data.get("center")),
        )

    @classmethod
    def for_type(cls, slot_type: SlotType, name: Optional[str] = None) -> DragPayload:
        return cls(name=name or COMPONENT_NAMES[slot_type], category=slot_type.value)


def _text(value: Any, field: str) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    logger.warning(f"Ignoring non-text payload {field} {value!r}.")
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _center(value: Any) -> tuple[float, float, float]:
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError):
        if value is not None:
            logger.warning(f"Ignoring malformed payload center {value!r}.")
        return (0.0, 0.0, 0.0)
    return (x, y, z)
