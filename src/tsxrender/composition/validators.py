"""Input file validation.

Runs before extraction so that a bad path never allocates resources.
"""

import os
import logging
from pathlib import Path
from typing import Union

from tsxrender.contracts import ValidationError

__all__ = ['validate_source_file', 'strip_quotes']

logger = logging.getLogger(__name__)


def strip_quotes(value: str) -> str:
    """Remove one pair of surrounding quotes left over from shell wrappers."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def validate_source_file(path: Union[str, Path], extension: str = ".tsx") -> Path:
    """Check that ``path`` is an existing, readable source file.

    Parameters
    ----------
    path : str or Path
        Candidate input path, relative or absolute.
    extension : str
        Required extension including the dot. Compared case-insensitively.

    Returns
    -------
    Path
        Absolute, resolved path of the file.

    Raises
    ------
    ValidationError
        If the file is missing, not a regular file, unreadable, or has the
        wrong extension.
    """
    resolved = Path(strip_quotes(str(path))).expanduser().resolve()

    if not resolved.exists():
        raise ValidationError(f"File not found: {resolved}")
    if not resolved.is_file():
        raise ValidationError(f"Not a file: {resolved}")

    suffix = resolved.suffix
    if suffix.lower() != extension.lower():
        raise ValidationError(
            f"File must be a {extension} file, got: {suffix or '(no extension)'}"
        )

    if not os.access(resolved, os.R_OK):
        raise ValidationError(f"File is not readable: {resolved}")

    logger.debug("Validated source file %s", resolved)
    return resolved
