"""Shared utilities and error handling for ScaleX."""

from scalex.lib.errors import (
    ConfigError,
    DeploymentError,
    ReconciliationError,
    ResolutionError,
    ScalexError,
    StateNotFoundError,
    StateStoreError,
)

__all__ = [
    "ConfigError",
    "DeploymentError",
    "ReconciliationError",
    "ResolutionError",
    "ScalexError",
    "StateNotFoundError",
    "StateStoreError",
]
