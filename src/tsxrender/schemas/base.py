"""Shared pydantic base for every tsxrender schema."""

from pydantic import BaseModel, ConfigDict


class RenderBaseModel(BaseModel):
    """Strict base model.

    Unknown keys are errors, assignments are re-validated and string
    values arrive stripped. Subclasses tighten this further (InternalConfig
    and CompositionDescriptor are frozen).
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )
