"""Composition descriptor: render parameters recovered from a source file."""

import math

from pydantic import ConfigDict, Field, model_validator

from tsxrender.schemas.base import RenderBaseModel

__all__ = ['CompositionDescriptor', 'REQUIRED_FIELDS', 'frames_for']

# Source-side (camelCase) names, in the order they are reported when missing
REQUIRED_FIELDS = ("id", "durationInSeconds", "fps", "width", "height")


def frames_for(duration_in_seconds: float, fps: int) -> int:
    """Frame count for a duration, rounding halves up like ``Math.round``."""
    return int(math.floor(duration_in_seconds * fps + 0.5))


class CompositionDescriptor(RenderBaseModel):
    """Immutable render parameters of one composition.

    Field names follow Python conventions; the camelCase names used in the
    source file are accepted as aliases.

    Examples
    --------
    >>> d = CompositionDescriptor.model_validate(
    ...     {"id": "X", "durationInSeconds": 5, "fps": 30, "width": 1080, "height": 1920}
    ... )
    >>> d.duration_in_frames
    150
    """

    id: str = Field(min_length=1)
    duration_in_seconds: float = Field(gt=0, allow_inf_nan=False, alias="durationInSeconds")
    fps: int = Field(gt=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    model_config = ConfigDict(
        extra='forbid',
        str_strip_whitespace=True,
        frozen=True,
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def require_at_least_one_frame(self):
        """Duration and fps must yield a finite count of at least one frame."""
        if not math.isfinite(self.duration_in_seconds * self.fps):
            raise ValueError(
                f"durationInSeconds={self.duration_in_seconds} at {self.fps}fps "
                f"yields too many frames"
            )
        if frames_for(self.duration_in_seconds, self.fps) < 1:
            raise ValueError(
                f"durationInSeconds={self.duration_in_seconds} at {self.fps}fps "
                f"yields no frames"
            )
        return self

    @property
    def duration_in_frames(self) -> int:
        return frames_for(self.duration_in_seconds, self.fps)

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"
