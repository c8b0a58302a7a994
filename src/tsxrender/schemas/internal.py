"""InternalConfig: Authoritative runtime configuration.

This is the ONLY config schema that runtime code sees. It is fully validated,
normalized, and contains NO optional fields that processing code depends on.

All .get() calls, fallback defaults, and validation logic are FORBIDDEN in
runtime code - everything is explicit here.
"""

from pathlib import Path
from typing import Literal, Optional
from pydantic import ConfigDict, Field
from tsxrender.schemas.base import RenderBaseModel


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalSourceConfig(RenderBaseModel):
    """Runtime source file configuration."""
    extension: str
    config_export: str


class InternalStagingConfig(RenderBaseModel):
    """Runtime staging configuration."""
    parent_dir: Optional[str]  # None means the system temp directory
    prefix: str
    entry_dir: str


class InternalRendererConfig(RenderBaseModel):
    """Runtime Remotion toolchain configuration."""
    command: list[str] = Field(min_length=1)
    renderer_dir: Optional[str]
    node_modules_dirs: list[str]
    codec: Literal["h264", "h265", "vp8", "vp9", "prores", "gif"]
    log_level: Literal["verbose", "info", "warn", "error"]
    timeout_sec: Optional[int]


class InternalOutputConfig(RenderBaseModel):
    """Runtime output configuration."""
    extension: str
    overwrite: bool


class InternalLoggingConfig(RenderBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    file: Optional[str]


class InternalDiagnosticsConfig(RenderBaseModel):
    """Runtime diagnostics configuration."""
    supported_libraries: list[str]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(RenderBaseModel):
    """Authoritative runtime configuration.
    
    Runtime modules receive InternalConfig and access fields directly:
    
        def __init__(self, config: InternalConfig):
            self.codec = config.renderer.codec  # NOT .get()
    
    Rules
    -----
    - NO .get() calls
    - NO fallback defaults
    - NO validation
    
    All of that happens during config resolution, not in runtime code.
    """
    
    source: InternalSourceConfig
    staging: InternalStagingConfig
    renderer: InternalRendererConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig
    diagnostics: InternalDiagnosticsConfig
    
    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )

    def dependency_search_dirs(self) -> list[str]:
        """Module directories prepended to the bundler's resolution paths.

        Explicit ``node_modules_dirs`` come first, followed by the renderer
        installation's own ``node_modules`` when ``renderer_dir`` is set.
        """
        dirs = list(self.renderer.node_modules_dirs)
        if self.renderer.renderer_dir:
            default = str(Path(self.renderer.renderer_dir).expanduser().resolve() / "node_modules")
            if default not in dirs:
                dirs.append(default)
        return dirs
