import logging

import pytest

from tsxrender.pipeline import RenderPipeline
from tests.helpers.fake_collaborators import make_fakes


@pytest.fixture(autouse=True)
def restore_root_logger(monkeypatch):
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setattr("tsxrender.cli.run_render.install_exit_handlers", lambda: None)
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def user_config_file(temp_dir, staging_parent):
    """User config file sending staging projects to staging_parent."""
    path = temp_dir / "user_config.py"
    path.write_text(f"CONFIG = {{'STAGING_DIR': {str(staging_parent)!r}, 'LOG_LEVEL': 'info'}}\n")
    return path


@pytest.fixture
def fake_pipeline(monkeypatch):
    """Route RenderPipeline.from_config to fake collaborators.

    Returns the dict of fakes so tests can inspect or replace them before
    main() runs.
    """
    fakes = make_fakes()

    def from_config(config, **kwargs):
        return RenderPipeline(config, **fakes, **kwargs)

    monkeypatch.setattr(RenderPipeline, "from_config", staticmethod(from_config))
    return fakes
