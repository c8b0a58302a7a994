"""`tsxrender` - render a standalone Remotion TSX composition to a video file.

Subpackages:
- composition: Source validation, static config extraction, descriptor
- staging: Disposable build project around the source file
- collaborators: Bundler / resolver / renderer / browser adapters
- pipeline: Phase state machine, progress, diagnostics, orchestrator
- cli: Command-line runner
"""

__version__ = "0.1.0"
