"""Source file validation runs before any resource is allocated."""

import os

import pytest

from tsxrender.composition import validate_source_file
from tsxrender.composition.validators import strip_quotes
from tsxrender.contracts import ValidationError

pytestmark = pytest.mark.unit


def test_valid_file_resolved_absolute(portrait_tsx, monkeypatch):
    monkeypatch.chdir(portrait_tsx.parent)

    resolved = validate_source_file("demo.tsx")

    assert resolved.is_absolute()
    assert resolved == portrait_tsx.resolve()


def test_missing_file(temp_dir):
    with pytest.raises(ValidationError, match="File not found"):
        validate_source_file(temp_dir / "nope.tsx")


def test_directory_rejected(temp_dir):
    folder = temp_dir / "folder.tsx"
    folder.mkdir()

    with pytest.raises(ValidationError, match="Not a file"):
        validate_source_file(folder)


def test_ts_extension_rejected(write_source):
    path = write_source("demo.ts", "export const compositionConfig = {};")

    with pytest.raises(ValidationError, match=r"\.tsx file, got: \.ts") as exc_info:
        validate_source_file(path)
    assert exc_info.value.phase == "validating"


def test_extension_check_case_insensitive(write_source):
    path = write_source("Demo.TSX", "export const compositionConfig = {};")

    assert validate_source_file(path).name == "Demo.TSX"


def test_quotes_stripped(portrait_tsx):
    assert validate_source_file(f'"{portrait_tsx}"') == portrait_tsx.resolve()


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="permission bits not enforced")
def test_unreadable_file(portrait_tsx):
    portrait_tsx.chmod(0)
    try:
        with pytest.raises(ValidationError, match="not readable"):
            validate_source_file(portrait_tsx)
    finally:
        portrait_tsx.chmod(0o644)


@pytest.mark.parametrize("raw, expected", [
    ("'a.tsx'", "a.tsx"),
    ('"a.tsx"', "a.tsx"),
    ("a.tsx", "a.tsx"),
    ("'a.tsx\"", "'a.tsx\""),
    ("'", "'"),
])
def test_strip_quotes(raw, expected):
    assert strip_quotes(raw) == expected
