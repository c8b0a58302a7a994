import pytest

from tsxrender.pipeline import RenderPipeline
from tests.helpers.fake_collaborators import make_fakes


@pytest.fixture
def pipeline_config(make_config, staging_parent):
    """InternalConfig whose staging projects land in staging_parent."""
    return make_config(staging_dir=str(staging_parent))


@pytest.fixture
def make_pipeline(pipeline_config):
    """Factory building a RenderPipeline over fake collaborators.

    Keyword arguments replace individual fakes (bundler=..., renderer=...)
    or set pipeline options (progress_sink=..., on_phase=..., config=...).
    """
    def _make(config=None, **overrides):
        options = {k: overrides.pop(k) for k in ("progress_sink", "on_phase", "verbose") if k in overrides}
        fakes = make_fakes(**overrides)
        pipeline = RenderPipeline(config or pipeline_config, **fakes, **options)
        return pipeline, fakes

    return _make
