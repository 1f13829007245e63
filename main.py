"""Convenience entry point to run the hexseal CLI.

Allows running the codec with `python main.py encrypt ...` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import hexseal` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from hexseal.frontend.cli.app import main


if __name__ == "__main__":
    raise SystemExit(main())
