"""Centralized failure taxonomy for the render pipeline.

Every fatal condition raises a subclass of RenderPipelineError. The CLI
maps all of them to exit status 1; the diagnostic translator uses the
concrete type and message to choose a user-facing hint.

Key distinction:
- RenderPipelineError subclasses: user input or collaborator failures
- ContractViolation: pipeline bug (programmer error)
"""

from typing import Optional


class ContractViolation(RuntimeError):
    """Raised when a pipeline contract is violated.

    This indicates a bug in pipeline logic (illegal phase transition, a
    descriptor with zero frames reaching the renderer), not bad user input.
    """
    pass


class RenderPipelineError(Exception):
    """Base class for all fatal pipeline errors.

    Parameters
    ----------
    message : str
        Human-readable description.
    phase : str, optional
        Pipeline phase the error fired in. Filled in by the orchestrator
        when not supplied by the raiser.
    """

    default_phase: Optional[str] = None

    def __init__(self, message: str, phase: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.phase = phase or self.default_phase

    def __str__(self) -> str:
        return self.message


class ValidationError(RenderPipelineError):
    """Bad or missing input path, wrong extension, or invalid configuration."""
    default_phase = "validating"


class ConfigExtractionError(RenderPipelineError):
    """Missing or malformed composition configuration in the source file.

    Parameters
    ----------
    message : str
        Human-readable description.
    field : str, optional
        Name of the missing or invalid field, when known.
    """
    default_phase = "extracting"

    def __init__(self, message: str, field: Optional[str] = None, phase: Optional[str] = None):
        super().__init__(message, phase=phase)
        self.field = field


class StagingError(RenderPipelineError):
    """Filesystem failure while creating the temporary project."""
    default_phase = "staging"


class BundleError(RenderPipelineError):
    """Opaque bundler or browser-provisioning failure."""
    default_phase = "bundling"


class CompositionNotFoundError(RenderPipelineError):
    """The bundle does not contain a composition with the requested id."""
    default_phase = "selecting"

    def __init__(self, composition_id: str, available=None, phase: Optional[str] = None):
        available = list(available or [])
        message = f"Composition '{composition_id}' not found in bundle"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message, phase=phase)
        self.composition_id = composition_id
        self.available = available


class RenderError(RenderPipelineError):
    """Opaque renderer or encoder failure."""
    default_phase = "rendering"
