"""tsxrender User Configuration.

This is the user-facing configuration file. Modify settings here to customize
the render pipeline. Expert defaults live in src/tsxrender/schemas/param.py

Usage:
    python scripts/render.py videos/demo.tsx --config scripts/user_config.py
    python scripts/render.py videos/demo.tsx --config scripts/user_config.py --codec h265
"""

CONFIG = {
    # ========================================================================
    # RENDERER INSTALLATION
    # ========================================================================
    # Directory holding the Remotion project whose node_modules provide
    # remotion, react and the supported libraries. None = use npx from cwd.
    "RENDERER_DIR": None,     # e.g. "~/tools/remotion-renderer"
    "NODE_MODULES_DIRS": [],  # Extra dependency search directories

    # ========================================================================
    # OUTPUT
    # ========================================================================
    "CODEC": "h264",          # h264, h265, vp8, vp9, prores, gif
    "OUTPUT_EXTENSION": "mp4",
    "OVERWRITE": False,       # Replace an existing --output file

    # ========================================================================
    # RUNTIME
    # ========================================================================
    "TIMEOUT_SEC": None,      # Per Remotion command; None = no limit
    "STAGING_DIR": None,      # None = system temp directory
    "LOG_LEVEL": "INFO",
    "LOG_FILE": None,         # e.g. "logs/render.log"
}
