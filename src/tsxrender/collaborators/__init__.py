"""External collaborators: bundler, composition resolver, renderer, browser.

- base: Abstract interfaces and value types
- remotion: Remotion CLI implementations
"""

from tsxrender.collaborators.base import (
    Bundler,
    BrowserProvisioner,
    CompositionHandle,
    CompositionResolver,
    ProgressCallback,
    Renderer,
    ResolutionOverrides,
)
from tsxrender.collaborators.remotion import build_collaborators

__all__ = [
    "Bundler",
    "BrowserProvisioner",
    "CompositionHandle",
    "CompositionResolver",
    "ProgressCallback",
    "Renderer",
    "ResolutionOverrides",
    "build_collaborators",
]
