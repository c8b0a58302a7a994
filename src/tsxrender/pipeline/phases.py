"""Pipeline run state machine.

One forward edge per phase plus a universal edge to ``failed``::

    validating -> extracting -> staging -> bundling -> selecting -> rendering -> done
         \\____________\\____________\\__________\\___________\\____________\\-> failed

The staging project is attached when the staging phase completes and is
detached, already released, when the run reaches a terminal phase. Any
other transition, or touching the staging project of a finished run, is
a ContractViolation.
"""

import time
from enum import Enum
from pathlib import Path
from typing import Optional

from tsxrender.contracts import require

__all__ = ['Phase', 'PipelineRun', 'FORWARD_EDGES', 'TERMINAL_PHASES']


class Phase(str, Enum):
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    STAGING = "staging"
    BUNDLING = "bundling"
    SELECTING = "selecting"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


FORWARD_EDGES = {
    Phase.VALIDATING: Phase.EXTRACTING,
    Phase.EXTRACTING: Phase.STAGING,
    Phase.STAGING: Phase.BUNDLING,
    Phase.BUNDLING: Phase.SELECTING,
    Phase.SELECTING: Phase.RENDERING,
    Phase.RENDERING: Phase.DONE,
}

TERMINAL_PHASES = frozenset({Phase.DONE, Phase.FAILED})


class PipelineRun:
    """State of one pipeline invocation.

    Parameters
    ----------
    input_path : str or Path
        Input path as given by the caller; replaced by the absolute path
        once validation succeeds.
    requested_output : str or Path, optional
        Output path as given by the caller (None = generate one).
    """

    def __init__(self, input_path, requested_output=None):
        self.input_path = Path(input_path)
        self.requested_output = Path(requested_output) if requested_output else None
        self.output_path: Optional[Path] = None
        self.phase = Phase.VALIDATING
        self.history = [(Phase.VALIDATING, time.monotonic())]

        self.descriptor = None
        self.bundle_location: Optional[str] = None
        self.composition = None
        self.progress = {}
        self.error: Optional[BaseException] = None
        self.failed_phase: Optional[Phase] = None

        self._staging_project = None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def advance(self, target: Phase) -> None:
        """Take the single forward edge out of the current phase."""
        target = Phase(target)
        require(
            FORWARD_EDGES.get(self.phase) is target,
            f"Illegal transition {self.phase.value} -> {target.value}",
        )
        if target is Phase.DONE:
            self._detach_staging()
        self._enter(target)

    def fail(self, error: BaseException) -> None:
        """Take the universal edge to ``failed``."""
        require(not self.is_terminal, f"Cannot fail a run that is already {self.phase.value}")
        self.failed_phase = self.phase
        self.error = error
        self._detach_staging()
        self._enter(Phase.FAILED)

    def _enter(self, phase: Phase) -> None:
        self.phase = phase
        self.history.append((phase, time.monotonic()))

    # ------------------------------------------------------------------
    # Staging ownership
    # ------------------------------------------------------------------

    @property
    def staging_project(self):
        require(
            not self.is_terminal,
            f"Staging project referenced after the run reached {self.phase.value}",
        )
        return self._staging_project

    @property
    def owns_staging(self) -> bool:
        return self._staging_project is not None

    def attach_staging(self, project) -> None:
        require(self.phase is Phase.STAGING, f"Staging attached during {self.phase.value}")
        require(self._staging_project is None, "Staging project attached twice")
        self._staging_project = project

    def _detach_staging(self) -> None:
        if self._staging_project is not None:
            require(
                self._staging_project.released,
                "Run terminated while still holding an unreleased staging project",
            )
        self._staging_project = None

    @property
    def phases_visited(self) -> list:
        return [phase for phase, _ in self.history]

    def __repr__(self) -> str:
        return f"PipelineRun({str(self.input_path)!r}, phase={self.phase.value})"
