#!/usr/bin/env python3
"""
Main entry point for sheetify.
Can be run directly without installing the package.
"""

import sys
from pathlib import Path

# Add the scripts directory to Python path so we can import sheetify
scripts_dir = Path(__file__).parent
if str(scripts_dir) not in sys.path:
    sys.path.insert(0, str(scripts_dir))

from sheetify.cli import app

if __name__ == "__main__":
    app()
