"""Pipeline modules.

- phases: Run state machine
- progress: Monotonic per-phase progress
- diagnostics: User-facing failure translation
- orchestrator: Phase driver and logging setup
"""

from tsxrender.pipeline.phases import Phase, PipelineRun
from tsxrender.pipeline.progress import PhaseProgress
from tsxrender.pipeline.diagnostics import Diagnostic, translate_error
from tsxrender.pipeline.orchestrator import PipelineResult, RenderPipeline, setup_logging

__all__ = [
    "Phase",
    "PipelineRun",
    "PhaseProgress",
    "Diagnostic",
    "translate_error",
    "PipelineResult",
    "RenderPipeline",
    "setup_logging",
]
