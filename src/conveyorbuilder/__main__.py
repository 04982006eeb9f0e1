"""Run with: python -m conveyorbuilder [project.h5]"""
import sys

from conveyorbuilder.main import main

if __name__ == "__main__":
    sys.exit(main())
