"""
Entry Point Script (Bootstrap)
==============================
Development runner for the conveyor builder.

Why is this file needed?
------------------------
1. It is located outside the 'src' package to act as a convenient runner
   without installing the project.
2. It prepends 'src' to 'sys.path' so 'from conveyorbuilder...' resolves.

Usage:
    $ python run.py [project.h5] [--debug]
"""
import sys
import os

current_dir: str = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(current_dir, 'src'))

from conveyorbuilder.main import main

if __name__ == "__main__":
    sys.exit(main())
