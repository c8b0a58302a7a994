"""Composition modules.

- descriptor: Immutable render parameters
- validators: Input path checks
- extractor: Static config extraction (never executes the source)
"""

from tsxrender.composition.descriptor import CompositionDescriptor, REQUIRED_FIELDS
from tsxrender.composition.validators import validate_source_file
from tsxrender.composition.extractor import extract_composition_config, parse_config_literal

__all__ = [
    "CompositionDescriptor",
    "REQUIRED_FIELDS",
    "validate_source_file",
    "extract_composition_config",
    "parse_config_literal",
]
