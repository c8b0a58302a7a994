"""Remotion CLI implementations of the collaborator interfaces.

Each collaborator shells out to the ``remotion`` command line tool with
``asyncio.create_subprocess_exec`` and turns its console output into
progress callbacks. The CLI redraws progress lines with carriage returns,
so output is split on both ``\\r`` and ``\\n``.

Commands used::

    remotion browser ensure
    remotion bundle <entry> --out-dir=<dir>
    remotion compositions <serve-url> --quiet
    remotion render <serve-url> <id> <output> --codec=... --frames=0-N

Resolution overrides are written to ``remotion.config.ts`` in the staged
project root (``Config.overrideWebpackConfig``) and mirrored in
``NODE_PATH`` so the config file itself can import ``@remotion/cli``.
"""

import os
import re
import json
import uuid
import codecs
import asyncio
import logging
import contextlib
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from tsxrender.collaborators.base import (
    Bundler,
    BrowserProvisioner,
    CompositionHandle,
    CompositionResolver,
    ProgressCallback,
    Renderer,
    ResolutionOverrides,
)
from tsxrender.contracts import BundleError, CompositionNotFoundError, RenderError

__all__ = [
    'RemotionCli',
    'RemotionBrowserProvisioner',
    'RemotionBundler',
    'RemotionCompositionResolver',
    'RemotionRenderer',
    'build_collaborators',
    'partial_output_path',
    'write_webpack_override',
]

logger = logging.getLogger(__name__)

PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")
FRACTION_RE = re.compile(r"(\d+)\s*/\s*(\d+)")
LINE_SPLIT_RE = re.compile(r"[\r\n]")

# Lines kept from collaborator output for error messages
ERROR_TAIL_LINES = 25

CONFIG_FILENAME = "remotion.config.ts"

WEBPACK_OVERRIDE = """\
import {{Config}} from '@remotion/cli/config';

const moduleDirs: string[] = {module_dirs};
const loaderDirs: string[] = {loader_dirs};

Config.overrideWebpackConfig((current) => {{
  return {{
    ...current,
    resolve: {{
      ...current.resolve,
      modules: [...moduleDirs, ...(current.resolve?.modules ?? ['node_modules'])],
    }},
    resolveLoader: {{
      ...current.resolveLoader,
      modules: [...loaderDirs, ...(current.resolveLoader?.modules ?? ['node_modules'])],
    }},
  }};
}});
"""


@dataclass
class CommandResult:
    returncode: int
    lines: List[str]

    def tail(self, n: int = ERROR_TAIL_LINES) -> str:
        return "\n".join(line for line in self.lines[-n:] if line.strip())


class RemotionCli:
    """Runs ``remotion`` subcommands and streams their output.

    Parameters
    ----------
    command : sequence of str
        Base command, e.g. ``["npx", "--no-install", "remotion"]``.
    cwd : str or Path, optional
        Working directory for commands that don't specify one.
    timeout : int, optional
        Seconds before a command is killed.
    node_path : sequence of str, optional
        Directories prepended to ``NODE_PATH``.
    log_level : str
        Value for Remotion's ``--log`` flag.
    """

    def __init__(self, command: Sequence[str], cwd=None, timeout: Optional[int] = None,
                 node_path: Sequence[str] = (), log_level: str = "error"):
        self.command = list(command)
        self.cwd = str(cwd) if cwd else None
        self.timeout = timeout
        self.node_path = list(node_path)
        self.log_level = log_level

    @classmethod
    def from_config(cls, config) -> "RemotionCli":
        """Build from an InternalConfig, preferring the renderer's local binary."""
        command = list(config.renderer.command)
        cwd = None
        if config.renderer.renderer_dir:
            renderer_dir = Path(config.renderer.renderer_dir).expanduser().resolve()
            cwd = renderer_dir
            local_bin = renderer_dir / "node_modules" / ".bin" / "remotion"
            if local_bin.exists():
                command = [str(local_bin)]
        return cls(
            command,
            cwd=cwd,
            timeout=config.renderer.timeout_sec,
            node_path=config.dependency_search_dirs(),
            log_level=config.renderer.log_level,
        )

    def _env(self) -> dict:
        env = os.environ.copy()
        if self.node_path:
            existing = env.get("NODE_PATH")
            parts = self.node_path + ([existing] if existing else [])
            env["NODE_PATH"] = os.pathsep.join(parts)
        return env

    async def run(self, args: Sequence[str], on_line: Optional[Callable[[str], None]] = None,
                  cwd=None) -> CommandResult:
        """Run ``remotion <args>``, feeding each output line to ``on_line``.

        Raises
        ------
        FileNotFoundError
            If the command executable does not exist.
        asyncio.TimeoutError
            If the command exceeds ``timeout``.

        The child is killed before any exception (including cancellation)
        leaves this method.
        """
        cmd = self.command + list(args)
        logger.debug("Running: %s", " ".join(cmd))

        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=str(cwd) if cwd else self.cwd,
            env=self._env(),
        )

        lines: List[str] = []

        def emit(line):
            if not line.strip():
                return
            lines.append(line)
            logger.debug("remotion: %s", line)
            if on_line is not None:
                on_line(line)

        async def pump():
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            pending = ""
            while True:
                chunk = await process.stdout.read(4096)
                if not chunk:
                    break
                pending += decoder.decode(chunk)
                *complete, pending = LINE_SPLIT_RE.split(pending)
                for line in complete:
                    emit(line)
            if pending:
                emit(pending)
            await process.wait()

        try:
            await asyncio.wait_for(pump(), timeout=self.timeout)
        except BaseException:
            # Timeout, cancellation or SystemExit: the child must not outlive the call
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
            raise

        return CommandResult(process.returncode, lines)


def _percent_reporter(on_progress: Optional[ProgressCallback]) -> Callable[[str], None]:
    """Line handler turning ``NN%`` into ``on_progress(NN / 100)``."""
    sequence = 0

    def handle(line: str) -> None:
        nonlocal sequence
        match = PERCENT_RE.search(line)
        if match and on_progress is not None:
            sequence += 1
            on_progress(float(match.group(1)) / 100.0, sequence=sequence)

    return handle


def _project_root(entry_path: Path) -> Path:
    """Nearest ancestor of the entry module holding a package.json."""
    for parent in Path(entry_path).parents:
        if (parent / "package.json").exists():
            return parent
    return Path(entry_path).parent


def write_webpack_override(project_root: Path, overrides: ResolutionOverrides) -> Path:
    """Write ``remotion.config.ts`` prepending the override search dirs."""
    path = Path(project_root) / CONFIG_FILENAME
    path.write_text(
        WEBPACK_OVERRIDE.format(
            module_dirs=json.dumps(list(overrides.module_dirs)),
            loader_dirs=json.dumps(list(overrides.loader_dirs)),
        ),
        encoding="utf-8",
    )
    return path


class RemotionBrowserProvisioner(BrowserProvisioner):
    """``remotion browser ensure``."""

    def __init__(self, cli: RemotionCli):
        self.cli = cli

    async def ensure_available(self, on_progress: Optional[ProgressCallback] = None) -> None:
        try:
            result = await self.cli.run(
                ["browser", "ensure", f"--log={self.cli.log_level}"],
                on_line=_percent_reporter(on_progress),
            )
        except FileNotFoundError as e:
            raise BundleError(f"Remotion CLI not found (ENOENT): {e}") from e
        except asyncio.TimeoutError as e:
            raise BundleError("Browser download timed out") from e

        if result.returncode != 0:
            raise BundleError(f"Browser provisioning failed:\n{result.tail()}")


class RemotionBundler(Bundler):
    """``remotion bundle`` into ``<project>/build``."""

    def __init__(self, cli: RemotionCli, out_dir_name: str = "build"):
        self.cli = cli
        self.out_dir_name = out_dir_name

    async def bundle(self, entry_path: Path, overrides: ResolutionOverrides,
                     on_progress: Optional[ProgressCallback] = None) -> str:
        project_root = _project_root(entry_path)
        out_dir = project_root / self.out_dir_name

        try:
            if overrides:
                write_webpack_override(project_root, overrides)
            result = await self.cli.run(
                [
                    "bundle",
                    str(entry_path),
                    f"--out-dir={out_dir}",
                    f"--log={self.cli.log_level}",
                ],
                on_line=_percent_reporter(on_progress),
                cwd=project_root,
            )
        except FileNotFoundError as e:
            raise BundleError(f"Remotion CLI not found (ENOENT): {e}") from e
        except OSError as e:
            raise BundleError(f"Cannot prepare bundle in {project_root}: {e}") from e
        except asyncio.TimeoutError as e:
            raise BundleError("Bundling timed out") from e

        if result.returncode != 0:
            raise BundleError(f"Bundling failed:\n{result.tail()}")
        return str(out_dir)


class RemotionCompositionResolver(CompositionResolver):
    """``remotion compositions --quiet`` prints the ids in the bundle."""

    def __init__(self, cli: RemotionCli):
        self.cli = cli

    async def list_compositions(self, bundle_location: str) -> List[str]:
        try:
            result = await self.cli.run(
                ["compositions", bundle_location, "--quiet", f"--log={self.cli.log_level}"]
            )
        except FileNotFoundError as e:
            raise RenderError(f"Remotion CLI not found (ENOENT): {e}", phase="selecting") from e
        except asyncio.TimeoutError as e:
            raise RenderError("Listing compositions timed out", phase="selecting") from e

        if result.returncode != 0:
            raise RenderError(f"Could not list compositions:\n{result.tail()}", phase="selecting")
        return [token for line in result.lines for token in line.split()]

    async def select_composition(self, bundle_location: str, composition_id: str) -> CompositionHandle:
        available = await self.list_compositions(bundle_location)
        if composition_id not in available:
            raise CompositionNotFoundError(composition_id, available)
        return CompositionHandle(id=composition_id, bundle_location=bundle_location)


def partial_output_path(output_path: Path) -> Path:
    """Sibling of ``output_path`` the renderer writes to before the final rename.

    The suffix stays last so Remotion still infers the container from it.
    """
    output_path = Path(output_path)
    token = uuid.uuid4().hex[:8]
    return output_path.with_name(f"{output_path.stem}.partial-{token}{output_path.suffix}")


class RemotionRenderer(Renderer):
    """``remotion render`` into a partial file, renamed onto the output on success.

    A failed or interrupted render never leaves anything at ``output_path``.
    """

    def __init__(self, cli: RemotionCli):
        self.cli = cli

    def build_args(self, composition: CompositionHandle, output_path: Path, codec: str) -> List[str]:
        args = [
            "render",
            composition.bundle_location,
            composition.id,
            str(output_path),
            f"--codec={codec}",
            f"--log={self.cli.log_level}",
        ]
        if composition.width is not None:
            args.append(f"--width={composition.width}")
        if composition.height is not None:
            args.append(f"--height={composition.height}")
        if composition.duration_in_frames is not None:
            args.append(f"--frames=0-{composition.duration_in_frames - 1}")
        return args

    async def render_media(self, composition: CompositionHandle, output_path: Path, codec: str,
                           on_progress: Optional[ProgressCallback] = None) -> None:
        counters = {"render": 0.0, "encode": 0.0}
        sequence = 0

        def handle(line: str) -> None:
            # Rendering and encoding each count for half of the progress
            nonlocal sequence
            match = FRACTION_RE.search(line)
            if not match or on_progress is None:
                return
            done, total = int(match.group(1)), int(match.group(2))
            if total <= 0:
                return
            stage = "encode" if re.search(r"encod|stitch", line, re.IGNORECASE) else "render"
            counters[stage] = min(done / total, 1.0)
            sequence += 1
            on_progress((counters["render"] + counters["encode"]) / 2.0, sequence=sequence)

        output_path = Path(output_path)
        partial = partial_output_path(output_path)
        try:
            try:
                result = await self.cli.run(self.build_args(composition, partial, codec), on_line=handle)
            except FileNotFoundError as e:
                raise RenderError(f"Remotion CLI not found (ENOENT): {e}") from e
            except asyncio.TimeoutError as e:
                raise RenderError("Rendering timed out") from e

            if result.returncode != 0:
                raise RenderError(f"Rendering failed:\n{result.tail()}")
            if not partial.is_file():
                raise RenderError(f"Renderer exited cleanly but wrote no file at {partial}")
            try:
                os.replace(partial, output_path)
            except OSError as e:
                raise RenderError(f"Cannot move rendered video to {output_path}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                partial.unlink(missing_ok=True)

        if on_progress is not None:
            on_progress(1.0, sequence=sequence + 1)


def build_collaborators(config) -> dict:
    """Remotion-backed collaborators sharing one CLI runner."""
    cli = RemotionCli.from_config(config)
    return {
        "provisioner": RemotionBrowserProvisioner(cli),
        "bundler": RemotionBundler(cli),
        "resolver": RemotionCompositionResolver(cli),
        "renderer": RemotionRenderer(cli),
    }
