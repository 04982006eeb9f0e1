"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and engine constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents hardcoded paths and magic numbers scattered
   throughout the code (scene scale, snap radius, parameter bounds).
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (component catalog) when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_CATALOG_PATH (str): Absolute path to the default component catalog.
"""
import sys
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: resolve relative to this file
    # config.py is in src/conveyorbuilder/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Global Constants
ASSETS_PATH: str = get_resource_path("assets")
DEFAULT_CATALOG_PATH: str = os.path.join(ASSETS_PATH, "components_default.json")

if not os.path.exists(ASSETS_PATH):
    logger.warning(f"Assets path not found at {ASSETS_PATH}")

# Scene units are metres, parameters are entered in millimetres
MM_TO_SCENE: float = 0.001

# Snap radius in scene units (40 mm)
SNAP_TOLERANCE: float = 0.04

# Parameter bounds (mm). Enforced by the parameter editing boundary.
AXIS_LENGTH_BOUNDS: tuple[float, float] = (300.0, 20000.0)
BELT_WIDTH_BOUNDS: tuple[float, float] = (100.0, 2000.0)
FRAME_HEIGHT_BOUNDS: tuple[float, float] = (300.0, 1500.0)
SIDE_GUIDE_HEIGHT_BOUNDS: tuple[float, float] = (15.0, 250.0)
PARAM_STEP: float = 1.0
