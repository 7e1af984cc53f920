"""Configuration loading and validation for ScaleX services.

Main components:
- ConfigLoader: Load and validate serverless.yml-style service files
- validate_scaling: Region-aware checks on declared scaling policies
- Environment variable substitution (${VAR_NAME} pattern)
"""

from scalex.config.env_loader import get_env_var, load_env_file, substitute_env_vars
from scalex.config.loader import ConfigLoader, validate_scaling

__all__ = [
    "ConfigLoader",
    "validate_scaling",
    "substitute_env_vars",
    "get_env_var",
    "load_env_file",
]
