"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs with aliases for common naming patterns
(e.g., RENDERER_DIR → renderer_dir, CODEC → codec), so a user config file
can be written in the same UPPERCASE style as shell environment settings.

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults.
"""

from typing import Literal, Optional
from pydantic import ConfigDict, Field, field_validator
from tsxrender.schemas.base import RenderBaseModel


class UserConfig(RenderBaseModel):
    """User-facing configuration schema.
    
    Flat, forgiving, and uses UPPERCASE aliases. Users only specify
    what they want to override from ParamConfig defaults.
    
    Usage
    -----
        user_cfg = UserConfig(
            renderer_dir="~/tools/remotion-renderer",
            codec="h265",
            log_file="/tmp/render.log",
        )
        
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """
    
    # Source settings
    source_extension: Optional[str] = Field(None, alias="SOURCE_EXTENSION")
    config_export: Optional[str] = Field(None, alias="CONFIG_EXPORT")
    
    # Staging settings
    staging_dir: Optional[str] = Field(None, alias="STAGING_DIR")
    staging_prefix: Optional[str] = Field(None, alias="STAGING_PREFIX")
    
    # Renderer settings
    remotion_command: Optional[list[str]] = Field(None, alias="REMOTION_COMMAND")
    renderer_dir: Optional[str] = Field(None, alias="RENDERER_DIR")
    node_modules_dirs: Optional[list[str]] = Field(None, alias="NODE_MODULES_DIRS")
    codec: Optional[str] = Field(None, alias="CODEC")
    renderer_log_level: Optional[Literal["verbose", "info", "warn", "error"]] = Field(
        None, alias="RENDERER_LOG_LEVEL"
    )
    timeout_sec: Optional[int] = Field(None, alias="TIMEOUT_SEC")
    
    # Output settings
    output_extension: Optional[str] = Field(None, alias="OUTPUT_EXTENSION")
    overwrite: Optional[bool] = Field(None, alias="OVERWRITE")
    
    # Logging settings
    log_level: Optional[str] = Field(None, alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, alias="LOG_FILE")
    
    # Diagnostics
    supported_libraries: Optional[list[str]] = Field(None, alias="SUPPORTED_LIBRARIES")
    
    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        str_strip_whitespace=True,
        populate_by_name=True,  # Accept both 'codec' and 'CODEC'
    )
    
    @field_validator("codec", mode="before")
    @classmethod
    def normalize_codec(cls, v):
        """Normalize codec names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v
    
    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper().strip()
        return v
    
    @field_validator("remotion_command", mode="before")
    @classmethod
    def split_command_string(cls, v):
        """Allow the command as a single whitespace-separated string."""
        if isinstance(v, str):
            return v.split()
        return v
    
    def to_internal_overrides(self) -> dict:
        """Convert flat user settings to the nested internal structure.
        
        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        mapping = {
            ("source", "extension"): self.source_extension,
            ("source", "config_export"): self.config_export,
            ("staging", "parent_dir"): self.staging_dir,
            ("staging", "prefix"): self.staging_prefix,
            ("renderer", "command"): self.remotion_command,
            ("renderer", "renderer_dir"): self.renderer_dir,
            ("renderer", "node_modules_dirs"): self.node_modules_dirs,
            ("renderer", "codec"): self.codec,
            ("renderer", "log_level"): self.renderer_log_level,
            ("renderer", "timeout_sec"): self.timeout_sec,
            ("output", "extension"): self.output_extension,
            ("output", "overwrite"): self.overwrite,
            ("logging", "level"): self.log_level,
            ("logging", "file"): self.log_file,
            ("diagnostics", "supported_libraries"): self.supported_libraries,
        }
        
        overrides = {}
        for (section, key), value in mapping.items():
            if value is not None:
                overrides.setdefault(section, {})[key] = value
        
        return overrides
