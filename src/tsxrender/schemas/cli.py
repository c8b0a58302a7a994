"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: log level, codec, overwrite behaviour.

This schema handles command-line arguments parsed by argparse.
"""

from typing import Literal, Optional
from pydantic import model_validator
from tsxrender.schemas.base import RenderBaseModel


class CLIConfig(RenderBaseModel):
    """Command-line configuration overrides.
    
    Highest priority in config resolution.
    
    Notes
    -----
    ``verbose=True`` without an explicit ``log_level`` sets the level to
    DEBUG (schema responsibility, not runtime).
    """
    
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_file: Optional[str] = None
    codec: Optional[str] = None
    overwrite: Optional[bool] = None
    verbose: bool = False
    
    @model_validator(mode="after")
    def infer_debug_from_verbose(self):
        """Verbose runs log at DEBUG unless a level was given explicitly."""
        if self.verbose and self.log_level is None:
            self.log_level = "DEBUG"
        return self
    
    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.
        
        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}
        
        logging_overrides = {}
        if self.log_level is not None:
            logging_overrides["level"] = self.log_level
        if self.log_file is not None:
            logging_overrides["file"] = self.log_file
        if logging_overrides:
            overrides["logging"] = logging_overrides
        
        if self.codec is not None:
            overrides["renderer"] = {"codec": self.codec.lower()}
        
        if self.overwrite is not None:
            overrides["output"] = {"overwrite": self.overwrite}
        
        return overrides
