"""Exceptions raised by the placement engine."""


class PlacementError(Exception):
    """Base class for placement failures that degrade to a user notification."""


class UnknownSlotError(PlacementError):
    def __init__(self, slot_id: str):
        super().__init__(f"Slot '{slot_id}' does not exist in the current slot set.")
        self.slot_id = slot_id


class SlotOccupiedError(PlacementError):
    def __init__(self, slot_id: str, component_id: str):
        super().__init__(f"Slot '{slot_id}' is already occupied by '{component_id}'.")
        self.slot_id = slot_id
        self.component_id = component_id


class PayloadError(PlacementError):
    """Drag payload text could not be decoded."""
