"""Layered configuration resolution.

``resolve_config()`` is the one place where configuration layers meet:

    ParamConfig (expert defaults) < UserConfig (config file) < CLIConfig (flags)

The layers are flattened to nested dicts, merged, normalized once more
through ParamConfig and frozen into an InternalConfig.
"""

from typing import Optional, Type, Union

from pydantic import BaseModel

from tsxrender.schemas.param import ParamConfig
from tsxrender.schemas.user import UserConfig
from tsxrender.schemas.cli import CLIConfig
from tsxrender.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Merge ``overrides`` into a copy of ``base``, left to right.

    Nested dicts merge key by key; anything else (lists included) is
    replaced wholesale.

    Examples
    --------
    >>> deep_merge({"renderer": {"codec": "h264", "log_level": "error"}},
    ...            {"renderer": {"codec": "vp9"}})
    {'renderer': {'codec': 'vp9', 'log_level': 'error'}}
    """
    merged = dict(base)
    for layer in overrides:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = deep_merge(current, value)
            else:
                merged[key] = value
    return merged


def _as_schema(value, schema: Type[BaseModel]):
    """Validate a dict (or None) into ``schema``; pass instances through."""
    if isinstance(value, schema):
        return value
    return schema.model_validate(value or {})


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Build the runtime configuration from all layers.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert defaults. Required.
    user_cfg : dict or UserConfig, optional
        Values from the user's config file.
    cli_cfg : dict or CLIConfig, optional
        Values from command-line flags.

    Returns
    -------
    InternalConfig
        Frozen configuration handed to runtime code.

    Raises
    ------
    pydantic.ValidationError
        If any layer, or the merged result, is invalid.

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), UserConfig(CODEC="H265"))
    >>> config.renderer.codec
    'h265'
    """
    param = _as_schema(param_cfg, ParamConfig)
    user = _as_schema(user_cfg, UserConfig)
    cli = _as_schema(cli_cfg, CLIConfig)

    merged = deep_merge(
        param.model_dump(),
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )

    # Overrides bypassed ParamConfig's validators (extension dots, case)
    normalized = ParamConfig.model_validate(merged).model_dump()
    return InternalConfig.model_validate(normalized)
