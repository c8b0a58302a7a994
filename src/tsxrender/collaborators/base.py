"""Collaborator interfaces consumed by the pipeline.

The bundler, composition resolver, renderer and browser provisioner are
external services. The orchestrator only depends on these abstract
interfaces; ``tsxrender.collaborators.remotion`` provides implementations
backed by the Remotion CLI, and tests substitute in-memory fakes.

Progress callbacks receive a fraction and an optional sequence number::

    on_progress(0.42, sequence=17)

Implementations should send fractions in [0, 1]; the orchestrator clamps
and de-duplicates them anyway.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Protocol, Sequence, Union


class ProgressCallback(Protocol):
    def __call__(self, fraction: float, sequence: Optional[int] = None) -> None: ...


@dataclass(frozen=True)
class ResolutionOverrides:
    """Directories prepended to the bundler's module and loader search paths.

    Lets the staged entry resolve shared dependencies (``react``,
    ``remotion``, ...) that live next to the renderer rather than next to
    the user's file.
    """
    module_dirs: tuple = ()
    loader_dirs: tuple = ()

    @classmethod
    def from_dirs(cls, dirs: Sequence[Union[str, Path]]) -> "ResolutionOverrides":
        resolved = tuple(str(Path(d).expanduser().resolve()) for d in dirs)
        return cls(module_dirs=resolved, loader_dirs=resolved)

    def apply(self, existing: Optional[Sequence[str]] = None, loader: bool = False) -> list:
        """Prepend the override dirs to ``existing`` (default ``['node_modules']``)."""
        prepend = self.loader_dirs if loader else self.module_dirs
        return list(prepend) + list(existing or ["node_modules"])

    def __bool__(self) -> bool:
        return bool(self.module_dirs or self.loader_dirs)


@dataclass(frozen=True)
class CompositionHandle:
    """A composition selected from a bundle.

    Metadata fields are None until the resolver knows them or the
    orchestrator overrides them from the descriptor.
    """
    id: str
    bundle_location: str
    duration_in_frames: Optional[int] = None
    fps: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    props: dict = field(default_factory=dict)

    def with_overrides(self, descriptor) -> "CompositionHandle":
        """Copy with frames, fps and dimensions taken from ``descriptor``."""
        return replace(
            self,
            duration_in_frames=descriptor.duration_in_frames,
            fps=descriptor.fps,
            width=descriptor.width,
            height=descriptor.height,
        )


class Bundler(ABC):
    """Compiles a staged entry module into a servable bundle."""

    @abstractmethod
    async def bundle(
        self,
        entry_path: Path,
        overrides: ResolutionOverrides,
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Bundle ``entry_path`` and return the bundle location.

        Raises
        ------
        BundleError
            If compilation fails (unresolved modules, syntax errors...).
        """


class CompositionResolver(ABC):
    """Looks up a composition by id inside a bundle."""

    @abstractmethod
    async def select_composition(self, bundle_location: str, composition_id: str) -> CompositionHandle:
        """Return the handle for ``composition_id``.

        Raises
        ------
        CompositionNotFoundError
            If the bundle has no composition with that id.
        """


class Renderer(ABC):
    """Renders frames and encodes them into the output container."""

    @abstractmethod
    async def render_media(
        self,
        composition: CompositionHandle,
        output_path: Path,
        codec: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Render ``composition`` to ``output_path``.

        The output is written atomically or not at all.

        Raises
        ------
        RenderError
            If rendering or encoding fails.
        """


class BrowserProvisioner(ABC):
    """Makes the headless browser used for rendering available."""

    @abstractmethod
    async def ensure_available(self, on_progress: Optional[ProgressCallback] = None) -> None:
        """Download the browser if it is missing.

        Raises
        ------
        BundleError
            If the browser cannot be provisioned.
        """
