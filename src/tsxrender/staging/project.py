"""Disposable build project around a single source file.

Each pipeline run gets a fresh, uniquely named directory created with
``tempfile.mkdtemp``. The run owns it exclusively and must release it
exactly once; ``release()`` is idempotent and never raises.

Projects that are still alive when the interpreter exits (including exits
triggered by SIGTERM, see ``install_exit_handlers``) are released by an
``atexit`` hook.
"""

import re
import atexit
import shutil
import signal
import asyncio
import logging
import tempfile
import threading
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, Union

from tsxrender.contracts import ContractViolation, StagingError, assert_staged
from tsxrender.staging import templates

__all__ = [
    'StagingProject',
    'create_staging_project',
    'staged_project',
    'release_all',
    'install_exit_handlers',
]

logger = logging.getLogger(__name__)

_live_projects = set()
_live_lock = threading.Lock()


class StagingProject:
    """A staged build project owned by one pipeline run.

    Parameters
    ----------
    root_path : Path
        Absolute path of the staging directory.
    entry_path : Path
        Entry module passed to the bundler.
    """

    def __init__(self, root_path: Path, entry_path: Path):
        self.root_path = Path(root_path)
        self.entry_path = Path(entry_path)
        self._released = False
        with _live_lock:
            _live_projects.add(self)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the staging directory.

        Safe to call more than once and when the directory is already gone.
        Filesystem errors are logged and swallowed so that cleanup never
        masks the run's primary result.
        """
        if self._released:
            return
        self._released = True
        with _live_lock:
            _live_projects.discard(self)

        try:
            shutil.rmtree(self.root_path)
            logger.debug("Removed staging directory %s", self.root_path)
        except FileNotFoundError:
            logger.debug("Staging directory %s already removed", self.root_path)
        except OSError as e:
            logger.warning("Failed to remove staging directory %s: %s", self.root_path, e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"StagingProject({str(self.root_path)!r}, {state})"


def _slug(composition_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]", "_", composition_id)[:40]


def create_staging_project(
    input_path: Union[str, Path],
    descriptor,
    parent_dir: Optional[Union[str, Path]] = None,
    prefix: str = "tsxrender-",
    entry_dir: str = "src",
) -> StagingProject:
    """Materialize a staging project that wires ``input_path`` into a composition.

    Parameters
    ----------
    input_path : str or Path
        Absolute path of the user's source file. Never modified or moved.
    descriptor : CompositionDescriptor
        Render parameters; ``id`` becomes the composition id.
    parent_dir : str or Path, optional
        Directory to create the project in (default: system temp dir).
    prefix : str
        Prefix of the generated directory name.
    entry_dir : str
        Subdirectory holding the entry and root modules.

    Returns
    -------
    StagingProject
        Live project; the caller owns it and must release it.

    Raises
    ------
    StagingError
        On any filesystem failure. Partially written projects are removed
        before the error propagates.
    """
    input_path = Path(input_path)
    if parent_dir is not None:
        parent_dir = str(Path(parent_dir).expanduser())

    try:
        root = Path(tempfile.mkdtemp(prefix=f"{prefix}{_slug(descriptor.id)}-", dir=parent_dir))
    except OSError as e:
        raise StagingError(f"Cannot create staging directory: {e}") from e

    project = StagingProject(root.resolve(), root.resolve() / entry_dir / "index.ts")
    src_dir = project.entry_path.parent

    try:
        src_dir.mkdir(parents=True, exist_ok=True)
        (project.root_path / "package.json").write_text(
            templates.render_json(templates.PACKAGE_JSON), encoding="utf-8"
        )
        (project.root_path / "tsconfig.json").write_text(
            templates.render_json(templates.TSCONFIG_JSON), encoding="utf-8"
        )
        (src_dir / "Root.tsx").write_text(
            templates.render_root_module(input_path, descriptor), encoding="utf-8"
        )
        project.entry_path.write_text(templates.render_entry_module(), encoding="utf-8")
    except OSError as e:
        project.release()
        raise StagingError(f"Failed to write staging project in {root}: {e}") from e

    try:
        assert_staged(project)
    except ContractViolation:
        project.release()
        raise
    logger.info("Staging project created at %s", project.root_path)
    return project


def _release_created(future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    future.result().release()


@asynccontextmanager
async def staged_project(input_path, descriptor, **kwargs):
    """Async scope that stages a project and always releases it.

    Usage::

        async with staged_project(path, descriptor) as project:
            await bundler.bundle(project.entry_path, ...)
    """
    creating = asyncio.ensure_future(
        asyncio.to_thread(create_staging_project, input_path, descriptor, **kwargs)
    )
    try:
        project = await asyncio.shield(creating)
    except asyncio.CancelledError:
        # The worker thread cannot be interrupted; release whatever it produces
        creating.add_done_callback(_release_created)
        raise
    try:
        yield project
    finally:
        project.release()


def release_all() -> None:
    """Release every project still alive in this process."""
    with _live_lock:
        projects = list(_live_projects)
    for project in projects:
        logger.info("Releasing leftover staging directory %s", project.root_path)
        project.release()


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


def install_exit_handlers() -> None:
    """Make SIGTERM unwind the stack so cleanup blocks and atexit hooks run.

    SIGINT already raises KeyboardInterrupt. Must be called from the main
    thread.
    """
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _raise_system_exit)


atexit.register(release_all)
