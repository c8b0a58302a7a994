"""Translate pipeline failures into categorized, actionable messages.

Translation only affects what the user reads. The failure kind (and thus
the exit status) is never changed, and errors that match no category keep
their original message.
"""

import re
import traceback
from dataclasses import dataclass
from typing import Optional, Sequence

from tsxrender.contracts import BundleError, ConfigExtractionError, RenderError, ValidationError
from tsxrender.schemas.param import DEFAULT_SUPPORTED_LIBRARIES

__all__ = [
    'Diagnostic',
    'translate_error',
    'MISSING_CONFIGURATION_EXPORT',
    'UNRESOLVED_DEPENDENCY',
    'MISSING_FILE',
    'UNKNOWN',
]

MISSING_CONFIGURATION_EXPORT = "missing-configuration-export"
UNRESOLVED_DEPENDENCY = "unresolved-dependency"
MISSING_FILE = "missing-file"
UNKNOWN = "unknown"

_MODULE_PATTERNS = (
    re.compile(r"Can't resolve '([^']+)'"),
    re.compile(r"Cannot find module '([^']+)'"),
)
_UNRESOLVED_MARKERS = ("Module not found", "Can't resolve", "Cannot find module")
_MISSING_FILE_MARKERS = ("ENOENT", "No such file or directory", "File not found")

EXPORT_EXAMPLE = """\
export const {name} = {{
  id: "MyVideo",
  durationInSeconds: 10,
  fps: 30,
  width: 1920,
  height: 1080,
}};"""


@dataclass(frozen=True)
class Diagnostic:
    """User-facing description of a failure.

    Attributes
    ----------
    category : str
        One of the module-level category constants.
    message : str
        Headline, always containing the original error text.
    hints : tuple of str
        Extra lines suggesting a fix.
    module : str, optional
        Offending module name for unresolved dependencies.
    detail : str, optional
        Formatted traceback, only in verbose mode.
    """
    category: str
    message: str
    hints: tuple = ()
    module: Optional[str] = None
    detail: Optional[str] = None

    def lines(self) -> list:
        out = [f"Error: {self.message}"]
        if self.hints:
            out.append("")
            out.extend(self.hints)
        if self.detail:
            out.append("")
            out.append(self.detail.rstrip())
        return out

    def format(self) -> str:
        return "\n".join(self.lines())


def _unresolved_module(text: str) -> Optional[str]:
    for pattern in _MODULE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _mentions_export(exc: BaseException, text: str, export_name: str) -> bool:
    """Whether a collaborator failure is about the configuration export itself.

    Only bundle and render errors qualify, and only when the name appears as
    an identifier (not inside a path) in an error that is not already an
    unresolved-module failure.
    """
    if not isinstance(exc, (BundleError, RenderError)):
        return False
    if any(marker in text for marker in _UNRESOLVED_MARKERS):
        return False
    identifier = re.compile(rf"(?<![\w$./\\]){re.escape(export_name)}(?![\w$/\\]|\.\w)")
    return identifier.search(text) is not None


def translate_error(
    exc: BaseException,
    verbose: bool = False,
    supported_libraries: Optional[Sequence[str]] = None,
    export_name: str = "compositionConfig",
) -> Diagnostic:
    """Classify ``exc`` and build a Diagnostic for it.

    Parameters
    ----------
    exc : BaseException
        The error that terminated the run.
    verbose : bool
        Attach the full traceback.
    supported_libraries : sequence of str, optional
        Listed in the hint for unresolved dependencies.
    export_name : str
        Name of the configuration export, used for matching and hints.

    Returns
    -------
    Diagnostic
    """
    text = str(exc) or type(exc).__name__
    libraries = list(supported_libraries if supported_libraries is not None
                     else DEFAULT_SUPPORTED_LIBRARIES)
    detail = None
    if verbose:
        detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    if isinstance(exc, ConfigExtractionError) or _mentions_export(exc, text, export_name):
        hints = [f"Ensure your TSX file exports a {export_name} object:", ""]
        hints.extend(EXPORT_EXAMPLE.format(name=export_name).splitlines())
        return Diagnostic(
            category=MISSING_CONFIGURATION_EXPORT,
            message=f"Failed to extract composition config: {text}",
            hints=tuple(hints),
            detail=detail,
        )

    if any(marker in text for marker in _UNRESOLVED_MARKERS):
        module = _unresolved_module(text)
        if module:
            headline = f"Module '{module}' is not installed in the renderer"
        else:
            headline = "Your TSX file uses a dependency not included in the renderer"
        hints = [headline, "", "Supported libraries:"]
        hints.extend(f"  - {lib}" for lib in libraries)
        return Diagnostic(
            category=UNRESOLVED_DEPENDENCY,
            message=f"Render failed: {text}",
            hints=tuple(hints),
            module=module,
            detail=detail,
        )

    if isinstance(exc, FileNotFoundError) or any(m in text for m in _MISSING_FILE_MARKERS):
        return Diagnostic(
            category=MISSING_FILE,
            message=text if isinstance(exc, ValidationError) else f"Render failed: {text}",
            hints=("A required file or directory does not exist; check the paths involved.",),
            detail=detail,
        )

    return Diagnostic(
        category=UNKNOWN,
        message=text if isinstance(exc, ValidationError) else f"Render failed: {text}",
        detail=detail,
    )
