#!/usr/bin/env python3
"""
Run the SC2 MMR reader from the console.

Usage:
    python scripts/run_reader.py [path/to/Config.json]
"""

import logging
import sys
import os
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mmr_reader.app import run

logging.basicConfig(
    level=getattr(logging, os.environ.get("MMR_READER_LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


def main():
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    return run(config_path)


if __name__ == "__main__":
    sys.exit(main())
