"""Render pipeline orchestration.

Drives one source file through validation, config extraction, staging,
bundling, composition selection and rendering. Collaborators are awaited
in turn on a single event loop; the staging project is held in an
``AsyncExitStack`` so it is released exactly once on every exit path
before the result is reported.
"""

import time
import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from tsxrender.collaborators import ResolutionOverrides, build_collaborators
from tsxrender.composition import extract_composition_config, validate_source_file
from tsxrender.contracts import (
    BundleError,
    ConfigExtractionError,
    ContractViolation,
    RenderError,
    RenderPipelineError,
    StagingError,
    ValidationError,
    require,
)
from tsxrender.pipeline.diagnostics import Diagnostic, translate_error
from tsxrender.pipeline.phases import Phase, PipelineRun
from tsxrender.pipeline.progress import PhaseProgress
from tsxrender.schemas import InternalConfig
from tsxrender.setup_directories import get_log_path, resolve_output_path
from tsxrender.staging import staged_project

__all__ = ['RenderPipeline', 'PipelineResult', 'setup_logging']

logger = logging.getLogger(__name__)

# Error type used when a collaborator raises something outside the taxonomy.
PHASE_ERRORS = {
    Phase.VALIDATING: ValidationError,
    Phase.EXTRACTING: ConfigExtractionError,
    Phase.STAGING: StagingError,
    Phase.BUNDLING: BundleError,
    Phase.SELECTING: RenderError,
    Phase.RENDERING: RenderError,
}


def setup_logging(config: InternalConfig) -> Optional[Path]:
    """Configure the root logger from ``config.logging``.

    Installs a console handler on stderr and, when ``logging.file`` is set,
    a file handler. Existing root handlers are replaced.

    Returns
    -------
    Path or None
        The log file in use.
    """
    log_level = getattr(logging, config.logging.level.upper(), logging.INFO)
    log_path = get_log_path(config.logging.file)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if log_path is not None:
        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(log_level)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    logger.debug("Logging: level=%s, file=%s", config.logging.level, log_path)
    return log_path


@dataclass
class PipelineResult:
    """Outcome of one run.

    ``output_path`` is only meaningful when ``ok``; ``error`` and
    ``diagnostic`` are only set when not.
    """
    ok: bool
    input_path: Path
    output_path: Optional[Path]
    descriptor: object
    phase: Phase
    failed_phase: Optional[Phase] = None
    error: Optional[RenderPipelineError] = None
    diagnostic: Optional[Diagnostic] = None
    elapsed: float = 0.0


class RenderPipeline:
    """Runs the render pipeline for single source files.

    Parameters
    ----------
    config : InternalConfig
        Resolved runtime configuration.
    bundler, resolver, renderer : collaborators
        Implementations of the interfaces in ``tsxrender.collaborators.base``.
    provisioner : BrowserProvisioner, optional
        Run at the start of the bundling phase when given.
    progress_sink : callable, optional
        ``sink(label, fraction)`` receiving monotonic progress values.
    on_phase : callable, optional
        ``on_phase(run)`` called after every phase transition.
    verbose : bool
        Attach tracebacks to failure diagnostics.

    Example usage::

        pipeline = RenderPipeline.from_config(config)
        result = asyncio.run(pipeline.run("demo.tsx"))
        if result.ok:
            print(result.output_path)
    """

    def __init__(
        self,
        config: InternalConfig,
        bundler,
        resolver,
        renderer,
        provisioner=None,
        progress_sink: Optional[Callable[[str, float], None]] = None,
        on_phase: Optional[Callable[[PipelineRun], None]] = None,
        verbose: bool = False,
    ):
        self.config = config
        self.bundler = bundler
        self.resolver = resolver
        self.renderer = renderer
        self.provisioner = provisioner
        self.progress_sink = progress_sink
        self.on_phase = on_phase
        self.verbose = verbose

    @classmethod
    def from_config(cls, config: InternalConfig, **kwargs) -> "RenderPipeline":
        """Pipeline wired to the Remotion CLI collaborators."""
        return cls(config, **build_collaborators(config), **kwargs)

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def _steps(self):
        return (
            (Phase.VALIDATING, self._validate),
            (Phase.EXTRACTING, self._extract),
            (Phase.STAGING, self._stage),
            (Phase.BUNDLING, self._bundle),
            (Phase.SELECTING, self._select),
            (Phase.RENDERING, self._render),
        )

    def _notify(self, run: PipelineRun) -> None:
        if self.on_phase is not None:
            self.on_phase(run)

    async def run(self, input_path, output_path=None) -> PipelineResult:
        """Render ``input_path`` to ``output_path`` (generated when None).

        Pipeline errors never propagate; they are reported in the result.
        ContractViolation propagates after cleanup since it indicates a bug.
        """
        run = PipelineRun(input_path, output_path)
        started = time.monotonic()
        error = None
        self._notify(run)

        try:
            async with AsyncExitStack() as scope:
                for phase, step in self._steps():
                    if phase is not run.phase:
                        run.advance(phase)
                        self._notify(run)
                    logger.debug("Entering phase %s", phase.value)
                    await step(run, scope)
        except ContractViolation:
            logger.exception("Pipeline contract violated during %s", run.phase.value)
            raise
        except RenderPipelineError as e:
            error = e
        except Exception as e:
            error = self._wrap(run.phase, e)

        # The exit stack has released the staging project at this point.
        elapsed = time.monotonic() - started
        if error is None:
            run.advance(Phase.DONE)
            self._notify(run)
            logger.info("Rendered %s in %.1fs", run.output_path, elapsed)
            return PipelineResult(
                ok=True,
                input_path=run.input_path,
                output_path=run.output_path,
                descriptor=run.descriptor,
                phase=run.phase,
                elapsed=elapsed,
            )

        error.phase = run.phase.value
        run.fail(error)
        self._notify(run)
        logger.error("Pipeline failed during %s: %s", error.phase, error)
        diagnostic = translate_error(
            error,
            verbose=self.verbose,
            supported_libraries=self.config.diagnostics.supported_libraries,
            export_name=self.config.source.config_export,
        )
        return PipelineResult(
            ok=False,
            input_path=run.input_path,
            output_path=None,
            descriptor=run.descriptor,
            phase=run.phase,
            failed_phase=run.failed_phase,
            error=error,
            diagnostic=diagnostic,
            elapsed=elapsed,
        )

    def run_sync(self, input_path, output_path=None) -> PipelineResult:
        """Blocking wrapper around ``run`` for callers without an event loop."""
        return asyncio.run(self.run(input_path, output_path))

    @staticmethod
    def _wrap(phase: Phase, exc: Exception) -> RenderPipelineError:
        error_cls = PHASE_ERRORS.get(phase, RenderError)
        wrapped = error_cls(str(exc) or type(exc).__name__)
        wrapped.__cause__ = exc
        wrapped.__traceback__ = exc.__traceback__
        return wrapped

    def _progress(self, run: PipelineRun, label: str) -> PhaseProgress:
        progress = PhaseProgress(label, sink=self.progress_sink)
        run.progress[label] = progress
        return progress

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _validate(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        run.input_path = validate_source_file(run.input_path, self.config.source.extension)
        run.output_path = resolve_output_path(
            run.input_path,
            run.requested_output,
            extension=self.config.output.extension,
            overwrite=self.config.output.overwrite,
        )
        logger.info("Input: %s", run.input_path)
        logger.info("Output: %s", run.output_path)

    async def _extract(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        descriptor = extract_composition_config(run.input_path, self.config.source.config_export)
        run.descriptor = descriptor
        logger.info(
            "Composition %s: %ss @ %dfps, %s, %d frames",
            descriptor.id,
            descriptor.duration_in_seconds,
            descriptor.fps,
            descriptor.resolution,
            descriptor.duration_in_frames,
        )

    async def _stage(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        staging = self.config.staging
        project = await scope.enter_async_context(
            staged_project(
                run.input_path,
                run.descriptor,
                parent_dir=staging.parent_dir,
                prefix=staging.prefix,
                entry_dir=staging.entry_dir,
            )
        )
        run.attach_staging(project)

    async def _bundle(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        if self.provisioner is not None:
            browser = self._progress(run, "Browser")
            try:
                await self.provisioner.ensure_available(browser)
            finally:
                browser.close()

        overrides = ResolutionOverrides.from_dirs(self.config.dependency_search_dirs())
        if overrides:
            logger.debug("Module resolution overrides: %s", list(overrides.module_dirs))

        progress = self._progress(run, "Bundling")
        try:
            run.bundle_location = await self.bundler.bundle(
                run.staging_project.entry_path, overrides, progress
            )
        finally:
            progress.close()
        logger.info("Bundle ready at %s", run.bundle_location)

    async def _select(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        run.composition = await self.resolver.select_composition(
            run.bundle_location, run.descriptor.id
        )
        logger.debug("Selected composition %s", run.composition.id)

    async def _render(self, run: PipelineRun, scope: AsyncExitStack) -> None:
        composition = run.composition.with_overrides(run.descriptor)
        require(
            composition.duration_in_frames is not None and composition.duration_in_frames >= 1,
            f"Composition {composition.id} reached the renderer with no frames",
        )
        try:
            run.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RenderError(f"Cannot create output directory {run.output_path.parent}: {e}") from e

        progress = self._progress(run, "Rendering")
        try:
            await self.renderer.render_media(
                composition, run.output_path, self.config.renderer.codec, progress
            )
        finally:
            progress.close()
