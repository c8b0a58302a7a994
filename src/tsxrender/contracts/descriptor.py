"""Extraction phase contract.

Enforces the guarantee that a descriptor handed to staging and rendering
describes at least one frame at positive dimensions.
"""

from tsxrender.contracts.base import require


def assert_renderable(descriptor) -> None:
    """Enforce the extraction phase contract.

    Parameters
    ----------
    descriptor : CompositionDescriptor
        Descriptor produced by the config extractor.

    Raises
    ------
    ContractViolation
        If any invariant is violated
    """
    require(
        bool(descriptor.id),
        "Descriptor contract violated: empty composition id"
    )
    require(
        descriptor.duration_in_frames >= 1,
        f"Descriptor contract violated: {descriptor.duration_in_frames} frames, expected >= 1"
    )
    require(
        descriptor.width > 0 and descriptor.height > 0,
        f"Descriptor contract violated: resolution {descriptor.width}x{descriptor.height}"
    )
