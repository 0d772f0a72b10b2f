"""Entry point for running the app as a module.

Usage:
    python -m face_recognition_app run
    python -m face_recognition_app --help
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
