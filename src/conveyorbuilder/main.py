"""
Application Initialization
==========================
This module wires the placement engine to the Qt shell and starts the Qt
event loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Configures logging (console, optional file, Qt diagnostics).
2. Instantiates the session model (`PlacementStore`).
3. Instantiates the Main Window (View) and passes the store into it.
4. Prevents circular import errors by being the orchestrator.
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

from conveyorbuilder.logging_config import install_qt_message_handler, setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="conveyorbuilder", description="Conveyor rig builder")
    parser.add_argument("project", nargs="?", help="HDF5 project file to open")
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--log-file", help="also write the log to this file")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    logger = setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # Qt modules are imported after logging so their import-time warnings are captured
    from conveyorbuilder.app.application import create_app
    from conveyorbuilder.app.state import PlacementStore
    from conveyorbuilder.app.ui.main_window import MainWindow
    from conveyorbuilder.model.io import IOManager, ProjectFileError

    # 2. Create the Qt Application
    app = create_app()
    install_qt_message_handler()

    # 3. Initialize the session model
    store = PlacementStore()

    # 4. Initialize the Main Window, passing the store
    window = MainWindow(store)
    if args.project:
        try:
            IOManager.load_project(store, args.project)
            window.filepath = args.project
            window.set_modified(False)
            window.update_window_title()
        except (OSError, ProjectFileError) as e:
            logger.error(f"Could not open {args.project}: {e}")
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
