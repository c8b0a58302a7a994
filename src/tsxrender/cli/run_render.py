"""Core render pipeline execution logic.

This module contains the actual pipeline runner and the ``render`` command.
Scripts are thin wrappers; this is the real implementation.
"""

import sys
import json
import asyncio
import logging
import argparse
import importlib.util
from pathlib import Path
from typing import Optional, Dict, Any

import pydantic

from tsxrender import __version__
from tsxrender.composition.validators import strip_quotes
from tsxrender.contracts import ContractViolation
from tsxrender.pipeline import Phase, PipelineResult, RenderPipeline, setup_logging
from tsxrender.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig
from tsxrender.staging import install_exit_handlers


logger = logging.getLogger(__name__)

BANNER_WIDTH = 60


def load_user_config_dict(config_path: str) -> dict:
    """Read the ``CONFIG`` dict from a user config module.

    The module is executed as ordinary Python, so it may compute values
    (paths relative to ``__file__``, environment lookups). The dict is
    returned as-is; UserConfig validates it.

    Parameters
    ----------
    config_path : str
        Python file defining ``CONFIG = {...}``.

    Returns
    -------
    dict

    Raises
    ------
    FileNotFoundError
        If ``config_path`` does not exist.
    ValueError
        If the module defines no dict named ``CONFIG*``.
    """
    path = Path(config_path).expanduser()
    if not path.is_file():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("tsxrender_user_config", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    candidates = [
        value for name, value in sorted(vars(module).items())
        if name.startswith("CONFIG") and isinstance(value, dict)
    ]
    if not candidates:
        raise ValueError(f"No CONFIG dict found in {path}")
    return candidates[0]


class ConsoleReporter:
    """Prints phase summaries and a single rewritten progress line."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout
        self._line_open = False

    def _print(self, text: str = "") -> None:
        self.end_line()
        print(text, file=self.stream, flush=True)

    def end_line(self) -> None:
        if self._line_open:
            print(file=self.stream, flush=True)
            self._line_open = False

    def progress(self, label: str, fraction: float) -> None:
        print(f"\r  {label}: {int(round(fraction * 100)):3d}%", end="", file=self.stream, flush=True)
        self._line_open = True
        if fraction >= 1.0:
            self.end_line()

    def phase(self, run) -> None:
        if run.phase is Phase.EXTRACTING:
            self._print(f"Input:  {run.input_path}")
            self._print(f"Output: {run.output_path}")
        elif run.phase is Phase.STAGING:
            d = run.descriptor
            self._print(f"Composition: {d.id}")
            self._print(f"Duration:    {d.duration_in_seconds}s @ {d.fps}fps")
            self._print(f"Resolution:  {d.resolution}")
            self._print(f"Frames:      {d.duration_in_frames}")
        elif run.phase is Phase.BUNDLING:
            self._print("\nBundling...")
        elif run.phase is Phase.RENDERING:
            self._print("Rendering...")
        elif run.phase in (Phase.DONE, Phase.FAILED):
            self.end_line()


def run_render_pipeline(
    input_path: str,
    output_path: Optional[str] = None,
    user_config_path: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None,
    verbose: bool = False,
) -> PipelineResult:
    """Render one TSX composition file to a video.

    This is the core pipeline execution function. It:
    1. Loads and resolves configuration (Param < User < CLI)
    2. Configures logging
    3. Runs the render pipeline on a fresh event loop
    4. Prints the outcome (diagnostic on failure)

    Parameters
    ----------
    input_path : str
        Source file to render.
    output_path : str, optional
        Destination video. Generated beside the input when omitted.
    user_config_path : str, optional
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI argument overrides. Keys: log_level, log_file, codec,
        overwrite. All optional.
    verbose : bool, optional
        If True, enable DEBUG logging, print the resolved config and
        include tracebacks in failure output.

    Returns
    -------
    PipelineResult

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If no CONFIG dict is found in the config file.
    pydantic.ValidationError
        If configuration validation fails.

    Examples
    --------
    Render with defaults::

        run_render_pipeline("videos/demo.tsx")

    Render with overrides::

        run_render_pipeline(
            "videos/demo.tsx",
            output_path="out/demo.webm",
            cli_args={"codec": "vp9", "overwrite": True},
        )
    """
    param_cfg = ParamConfig()  # Expert defaults

    user_cfg = None
    if user_config_path:
        user_cfg = UserConfig.model_validate(load_user_config_dict(user_config_path))

    cli_dict = {k: v for k, v in (cli_args or {}).items() if v is not None}
    cli_dict["verbose"] = verbose
    cli_cfg = CLIConfig.model_validate(cli_dict)

    config = resolve_config(param_cfg, user_cfg, cli_cfg)
    setup_logging(config)

    print(f"\n{'=' * BANNER_WIDTH}")
    print(f"tsxrender {__version__} - TSX to video")
    print('=' * BANNER_WIDTH)
    if user_config_path:
        print(f"Config: {user_config_path}")
    print(f"Codec:  {config.renderer.codec}")

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2))
    print('=' * BANNER_WIDTH)

    reporter = ConsoleReporter()
    pipeline = RenderPipeline.from_config(
        config,
        progress_sink=reporter.progress,
        on_phase=reporter.phase,
        verbose=verbose,
    )
    result = asyncio.run(pipeline.run(input_path, output_path))

    if result.ok:
        print(f"\n{'=' * BANNER_WIDTH}")
        print("Render complete")
        print(f"Output: {result.output_path}")
        print(f"Time:   {result.elapsed:.1f}s")
        print('=' * BANNER_WIDTH)
    else:
        print(f"\n{result.diagnostic.format()}", file=sys.stderr)
    return result


class _ArgumentParser(argparse.ArgumentParser):
    """Exits with status 1 (not 2) on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="render",
        description="Render a Remotion TSX composition file to a video",
    )
    parser.add_argument("input", nargs="?", help="Path to the .tsx composition file")
    parser.add_argument("--input", dest="input_opt", metavar="PATH", help="Alternative to the positional input")
    parser.add_argument("--output", "-o", help="Output video path (default: <name>_<timestamp>.mp4 beside the input)")
    parser.add_argument("--config", help="Path to user config file (Python file with CONFIG dict)")
    parser.add_argument("--codec", help="Override video codec (h264, h265, vp8, vp9, prores, gif)")
    parser.add_argument("--overwrite", action="store_true", default=None, help="Replace an existing --output file")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Override log level")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and full tracebacks")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None) -> int:
    """Entry point for the ``render`` command. Returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    input_path = args.input_opt or args.input
    if input_path:
        input_path = strip_quotes(input_path.strip())
    if not input_path:
        parser.print_usage(sys.stderr)
        print("Error: no input file given", file=sys.stderr)
        return 1

    output_path = strip_quotes(args.output.strip()) if args.output else None

    install_exit_handlers()

    try:
        result = run_render_pipeline(
            input_path,
            output_path=output_path,
            user_config_path=args.config,
            cli_args={
                "codec": args.codec,
                "overwrite": args.overwrite,
                "log_level": args.log_level,
                "log_file": args.log_file,
            },
            verbose=args.verbose,
        )
    except pydantic.ValidationError as e:
        print(f"Error: invalid configuration\n{e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ContractViolation as e:
        print(f"Internal error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1

    return 0 if result.ok else 1


if __name__ == "__main__":
    sys.exit(main())
