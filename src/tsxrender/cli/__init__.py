"""Command-line interface modules for tsxrender.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from tsxrender.cli.run_render import run_render_pipeline, main

__all__ = ['run_render_pipeline', 'main']
