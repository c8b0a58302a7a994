"""Pipeline contracts and failure taxonomy.

Contracts fail immediately and loudly when pipeline phases don't produce
their promised invariants. User-facing failures use the
RenderPipelineError hierarchy instead.

Key principle:
- Pydantic validates config correctness
- RenderPipelineError reports input and collaborator failures
- Contracts validate pipeline correctness
"""

from tsxrender.contracts.failure import (
    ContractViolation,
    RenderPipelineError,
    ValidationError,
    ConfigExtractionError,
    StagingError,
    BundleError,
    CompositionNotFoundError,
    RenderError,
)
from tsxrender.contracts.base import require
from tsxrender.contracts.descriptor import assert_renderable
from tsxrender.contracts.staging import assert_staged

__all__ = [
    "ContractViolation",
    "RenderPipelineError",
    "ValidationError",
    "ConfigExtractionError",
    "StagingError",
    "BundleError",
    "CompositionNotFoundError",
    "RenderError",
    "require",
    "assert_renderable",
    "assert_staged",
]
