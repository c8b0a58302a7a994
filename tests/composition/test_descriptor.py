"""CompositionDescriptor frame arithmetic and validation."""

import pytest
from pydantic import ValidationError

from tsxrender.composition import CompositionDescriptor
from tsxrender.composition.descriptor import frames_for

pytestmark = pytest.mark.unit


def make(**overrides):
    data = {"id": "X", "durationInSeconds": 5, "fps": 30, "width": 1080, "height": 1920}
    data.update(overrides)
    return CompositionDescriptor.model_validate(data)


def test_frames_rounded():
    assert make().duration_in_frames == 150
    assert make(durationInSeconds=12).duration_in_frames == 360
    assert make(durationInSeconds=1.01, fps=30).duration_in_frames == 30
    assert make(durationInSeconds=1.05, fps=30).duration_in_frames == 32


@pytest.mark.parametrize("seconds, fps, expected", [
    (0.5, 1, 1),   # exactly half a frame rounds up
    (2.5, 1, 3),
    (0.25, 2, 1),
    (0.2, 2, 0),
])
def test_frames_for_rounds_half_up(seconds, fps, expected):
    assert frames_for(seconds, fps) == expected


def test_zero_frames_rejected():
    with pytest.raises(ValidationError, match="yields no frames"):
        make(durationInSeconds=0.001)


@pytest.mark.parametrize("seconds", [float("inf"), float("nan")])
def test_non_finite_duration_rejected(seconds):
    with pytest.raises(ValidationError, match="durationInSeconds"):
        make(durationInSeconds=seconds)


def test_duration_overflowing_frame_count_rejected():
    with pytest.raises(ValidationError, match="too many frames"):
        make(durationInSeconds=1e308)


def test_frozen():
    descriptor = make()
    with pytest.raises(ValidationError):
        descriptor.fps = 60


def test_snake_case_names_accepted():
    descriptor = CompositionDescriptor(
        id="X", duration_in_seconds=2, fps=25, width=10, height=10
    )
    assert descriptor.duration_in_frames == 50
