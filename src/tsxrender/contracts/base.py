"""The contract primitive used at phase boundaries."""

from tsxrender.contracts.failure import ContractViolation


def require(condition: bool, message: str) -> None:
    """Raise ContractViolation with ``message`` unless ``condition`` holds.

    Contracts guard pipeline logic, not user input: a failing ``require``
    means the orchestrator or a phase broke its own guarantees.

    Examples
    --------
    >>> require(run.phase is Phase.STAGING, "Staging attached outside staging")
    >>> require(descriptor.duration_in_frames >= 1, "Descriptor contract: no frames")
    """
    if not condition:
        raise ContractViolation(message)
