"""ParamConfig: Expert defaults for the render pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from tsxrender.schemas.base import RenderBaseModel


DEFAULT_SUPPORTED_LIBRARIES = [
    "react, remotion (core)",
    "three, @react-three/fiber, @react-three/drei",
    "@remotion/* packages (media-utils, noise, shapes, etc.)",
    "framer-motion, d3, lodash, zod",
]


# =============================================================================
# Nested Configuration Models
# =============================================================================

class SourceConfig(RenderBaseModel):
    """Input source file configuration."""
    extension: str = Field(".tsx", description="Required source file extension")
    config_export: str = Field("compositionConfig", description="Name of the exported config literal")

    @field_validator("extension", mode="before")
    @classmethod
    def normalize_extension(cls, v):
        """Lowercase and ensure a leading dot."""
        v = str(v).strip().lower()
        return v if v.startswith(".") else f".{v}"


class StagingConfig(RenderBaseModel):
    """Temporary build project configuration."""
    parent_dir: Optional[str] = Field(None, description="Parent of staging dirs (None = system temp)")
    prefix: str = "tsxrender-"
    entry_dir: str = "src"


class RendererConfig(RenderBaseModel):
    """Remotion toolchain configuration."""
    command: list[str] = Field(default_factory=lambda: ["npx", "--no-install", "remotion"])
    renderer_dir: Optional[str] = Field(None, description="Directory holding the renderer's node_modules")
    node_modules_dirs: list[str] = Field(default_factory=list)
    codec: Literal["h264", "h265", "vp8", "vp9", "prores", "gif"] = "h264"
    log_level: Literal["verbose", "info", "warn", "error"] = "error"
    timeout_sec: Optional[int] = Field(None, ge=1)


class OutputConfig(RenderBaseModel):
    """Output file configuration."""
    extension: str = "mp4"
    overwrite: bool = False

    @field_validator("extension", mode="before")
    @classmethod
    def strip_dot(cls, v):
        """Store the extension without its leading dot."""
        return str(v).strip().lstrip(".").lower()


class LoggingConfig(RenderBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file: Optional[str] = None


class DiagnosticsConfig(RenderBaseModel):
    """User-facing diagnostic hints."""
    supported_libraries: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUPPORTED_LIBRARIES)
    )


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(RenderBaseModel):
    """Complete expert configuration with every default."""
    source: SourceConfig = Field(default_factory=SourceConfig)
    staging: StagingConfig = Field(default_factory=StagingConfig)
    renderer: RendererConfig = Field(default_factory=RendererConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)
