#!/usr/bin/env python3
"""tsxrender command runner.

Usage:
    python scripts/render.py videos/demo.tsx
    python scripts/render.py --input=videos/demo.tsx --output out/demo.mp4
    python scripts/render.py videos/demo.tsx --config scripts/user_config.py -v

Note: User config in scripts/user_config.py, expert defaults in
src/tsxrender/schemas/param.py
"""

import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(project_root / "src"))

from tsxrender.cli.run_render import main


if __name__ == "__main__":
    sys.exit(main())
