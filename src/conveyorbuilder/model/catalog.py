"""
Component Catalog
=================
Loads the palette entries offered for placement from a JSON file.

Why is this file needed?
------------------------
1. The palette should not hardcode the available parts; the default set ships
   in ``assets/components_default.json`` and can be replaced per deployment.
2. Each entry knows how to produce the drag payload the placement engine
   consumes.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Optional

from conveyorbuilder.config import DEFAULT_CATALOG_PATH
from conveyorbuilder.model.payload import DragPayload, category_to_slot_type
from conveyorbuilder.model.slots import SlotType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str
    category: str
    glb_url: Optional[str] = None
    part_number: Optional[str] = None
    description: Optional[str] = None

    @property
    def slot_type(self) -> Optional[SlotType]:
        return category_to_slot_type(self.category)

    def to_payload(self) -> DragPayload:
        return DragPayload(
            id=self.id,
            name=self.name,
            category=self.category,
            glb_url=self.glb_url,
        )


def load_catalog(path: str = DEFAULT_CATALOG_PATH) -> list[CatalogEntry]:
    """
    Read catalog entries from ``path``.

    Entries whose category does not map to a slot type are skipped with a
    warning, since they could never be placed.
    """
    logger.info(f"Loading component catalog from: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    entries: list[CatalogEntry] = []
    for item in raw.get("components", []):
        entry = CatalogEntry(
            id=str(item["id"]),
            name=item.get("name") or str(item["id"]),
            category=item.get("category", ""),
            glb_url=item.get("glb_url"),
            part_number=item.get("part_number"),
            description=item.get("description"),
        )
        if entry.slot_type is None:
            logger.warning(f"Catalog entry '{entry.id}' has unknown category '{entry.category}', skipping.")
            continue
        entries.append(entry)

    logger.debug(f"Loaded {len(entries)} catalog entries.")
    return entries
