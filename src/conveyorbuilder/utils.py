from conveyorbuilder.config import MM_TO_SCENE


def mm_to_scene(mm: float) -> float:
    """Convert millimetres to scene units (metres)."""
    return mm * MM_TO_SCENE
