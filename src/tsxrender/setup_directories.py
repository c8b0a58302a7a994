"""
Output and log path setup for the render pipeline.

- Default output sits beside the input: <stem>_<UTC timestamp>.<ext>
- Timestamps are second precision with ':' and '.' replaced by '-'
  so they are safe in filenames on every platform
- Generated paths never clobber an existing file (numeric suffix)
- Explicit paths are only overwritten when asked to
"""

from pathlib import Path
from datetime import datetime, timezone

from tsxrender.contracts import ValidationError


def output_timestamp(now=None):
    """
    Filename-safe UTC timestamp, e.g. ``2026-10-17T12-30-05``.

    Parameters
    ----------
    now : datetime, optional
        Instant to format. Naive datetimes are taken as UTC. Defaults to
        the current time.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="seconds")
    return iso[:19].replace(":", "-").replace(".", "-")


def default_output_path(input_path, extension="mp4", now=None):
    """
    Get the generated output path for ``input_path``.

    Parameters
    ----------
    input_path : str or Path
        Validated source file.
    extension : str
        Output container extension, without the dot.
    now : datetime, optional
        Timestamp source (for tests).

    Returns
    -------
    Path
        ``<input dir>/<stem>_<timestamp>.<extension>``, with ``_1``, ``_2``...
        appended to the name if that file already exists.

    Example
    -------
    >>> default_output_path('/videos/demo.tsx', now=datetime(2026, 10, 17, 12, 30, 5))
    Path('/videos/demo_2026-10-17T12-30-05.mp4')
    """
    input_path = Path(input_path)
    extension = extension.lstrip(".")
    base = f"{input_path.stem}_{output_timestamp(now)}"

    candidate = input_path.parent / f"{base}.{extension}"
    counter = 1
    while candidate.exists():
        candidate = input_path.parent / f"{base}_{counter}.{extension}"
        counter += 1
    return candidate


def resolve_output_path(input_path, requested=None, extension="mp4", overwrite=False, now=None):
    """
    Decide where the rendered file goes.

    Parameters
    ----------
    input_path : str or Path
        Validated source file.
    requested : str or Path, optional
        Path given with ``--output``. None means generate one.
    extension : str
        Extension for generated paths.
    overwrite : bool
        Allow an explicit path that already exists.
    now : datetime, optional
        Timestamp source for generated paths.

    Returns
    -------
    Path
        Absolute output path. Nothing is created on disk.

    Raises
    ------
    ValidationError
        If an explicit path is a directory, or exists and ``overwrite``
        is off.
    """
    if requested is None or str(requested).strip() == "":
        return default_output_path(input_path, extension, now).resolve()

    output_path = Path(str(requested).strip()).expanduser().resolve()
    if output_path.is_dir():
        raise ValidationError(f"Output path is a directory: {output_path}")
    if output_path.exists() and not overwrite:
        raise ValidationError(
            f"Output file already exists: {output_path} (use --overwrite to replace it)"
        )
    return output_path


def get_log_path(log_file):
    """
    Get the log file path, creating its parent directory.

    Parameters
    ----------
    log_file : str or Path or None
        Configured log file. None disables file logging.

    Returns
    -------
    Path or None
    """
    if not log_file:
        return None
    log_path = Path(log_file).expanduser().resolve()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return log_path
