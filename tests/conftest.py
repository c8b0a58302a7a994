"""Root-level pytest fixtures for the tsxrender test suite.

Provides shared configuration fixtures following Pydantic-based architecture.
All tests must use these fixtures instead of creating raw dict configs.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from tsxrender.schemas import ParamConfig, UserConfig, resolve_config


SAMPLE_TSX = """\
import React from 'react';
import { useCurrentFrame, AbsoluteFill } from 'remotion';

export const compositionConfig = {
  id: 'CybersecurityShield',
  durationInSeconds: 12, // Match the loop requirement
  fps: 30,
  width: 3840, // 4K Resolution
  height: 2160,
};

export default function Shield() {
  const frame = useCurrentFrame();
  return <AbsoluteFill style={{ opacity: frame / 360 }} />;
}
"""

PORTRAIT_TSX = """\
export const compositionConfig = {
  id: "X",
  durationInSeconds: 5,
  fps: 30,
  width: 1080,
  height: 1920,
};

export default () => null;
"""


# =============================================================================
# Configuration Fixtures (Pydantic-based)
# =============================================================================

@pytest.fixture
def param_config():
    """Expert configuration with all defaults.

    Use this as the base for all test configs. Override specific values
    using make_config or by creating custom UserConfig instances.
    """
    return ParamConfig()


@pytest.fixture
def internal_config(param_config):
    """Fully validated runtime configuration (no overrides)."""
    return resolve_config(param_config, None, None)


@pytest.fixture
def make_config(param_config):
    """Factory fixture for creating custom test configs.

    Returns a callable that accepts UserConfig-compatible kwargs.

    Examples
    --------
    >>> def test_custom_codec(make_config):
    ...     config = make_config(codec="vp9")
    ...     assert config.renderer.codec == "vp9"
    """
    def _make(**user_overrides):
        """Create InternalConfig with user overrides."""
        if user_overrides:
            user = UserConfig(**user_overrides)
            return resolve_config(param_config, user, None)
        else:
            return resolve_config(param_config, None, None)

    return _make


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def temp_dir():
    """Temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def staging_parent(temp_dir):
    """Directory to hold staging projects so tests can count them."""
    d = temp_dir / "staging"
    d.mkdir()
    return d


# =============================================================================
# Source File Fixtures
# =============================================================================

@pytest.fixture
def write_source(temp_dir):
    """Factory writing a source file into temp_dir.

    Examples
    --------
    >>> path = write_source("demo.tsx", "export const compositionConfig = {...};")
    """
    def _write(name, content):
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_tsx(write_source):
    """4K, 12 second composition in the shape users actually write."""
    return write_source("input.tsx", SAMPLE_TSX)


@pytest.fixture
def portrait_tsx(write_source):
    """5 second 1080x1920 composition with id "X"."""
    return write_source("demo.tsx", PORTRAIT_TSX)
